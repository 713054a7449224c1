"""
Launch script for TeamSync Workspace.

Starts the remote data service, waits for it, then runs the workspace web
app and opens it in the browser.

Usage:
    python run.py [--local-only]
"""
import os
import subprocess
import sys
import threading
import time
import urllib.error
import urllib.request
import webbrowser

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
DATA_SERVICE_PORT = int(os.environ.get("PORT", "3000"))
DATA_SERVICE_URL = f"http://localhost:{DATA_SERVICE_PORT}"
DATA_SERVICE_HEALTH = f"{DATA_SERVICE_URL}/healthz"
APP_URL = "http://localhost:8000"
MAX_WAIT_SECONDS = 30


def _print(msg: str) -> None:
    print(f"[run] {msg}")


def check_python_deps() -> bool:
    """Check that required Python packages are installed."""
    missing = []
    for pkg in ["fastapi", "uvicorn", "httpx"]:
        try:
            __import__(pkg)
        except ImportError:
            missing.append(pkg)

    if missing:
        _print(f"Missing Python packages: {', '.join(missing)}")
        _print("Install with: pip install -e .[test]")
        return False
    return True


def start_data_service() -> subprocess.Popen | None:
    """Start the remote data service as a child process."""
    _print(f"Starting data service on port {DATA_SERVICE_PORT}...")
    try:
        return subprocess.Popen(
            [sys.executable, "-m", "src.sync_server.app"],
            cwd=PROJECT_ROOT,
        )
    except OSError as e:
        _print(f"ERROR starting data service: {e}")
        return None


def wait_for_data_service() -> bool:
    """Wait until the data service health endpoint responds."""
    _print(f"Waiting for data service at {DATA_SERVICE_HEALTH} ...")
    start = time.time()

    while time.time() - start < MAX_WAIT_SECONDS:
        try:
            req = urllib.request.Request(DATA_SERVICE_HEALTH, method="GET")
            with urllib.request.urlopen(req, timeout=3) as resp:
                if resp.status == 200:
                    _print("Data service is healthy.")
                    return True
        except (urllib.error.URLError, ConnectionError, OSError):
            pass

        time.sleep(1)

    _print(f"ERROR: Data service did not become healthy within {MAX_WAIT_SECONDS}s.")
    return False


def open_browser() -> None:
    """Wait for the web server to be ready, then open the browser."""
    for _ in range(30):
        try:
            req = urllib.request.Request(APP_URL, method="GET")
            with urllib.request.urlopen(req, timeout=2) as resp:
                if resp.status in (200, 307):
                    _print(f"Opening browser at {APP_URL}")
                    webbrowser.open(APP_URL)
                    return
        except (urllib.error.URLError, ConnectionError, OSError):
            pass
        time.sleep(1)
    _print("WARNING: Could not verify server is running. Open manually: " + APP_URL)
    webbrowser.open(APP_URL)


def launch_app(remote_url: str) -> None:
    """Launch the workspace web app via uvicorn."""
    _print(f"Launching TeamSync Workspace at {APP_URL} ...")

    threading.Thread(target=open_browser, daemon=True).start()

    env = dict(os.environ, TEAMSYNC_REMOTE_URL=remote_url)
    subprocess.run(
        [sys.executable, "-m", "src.web.app"],
        cwd=PROJECT_ROOT,
        env=env,
    )


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    _print("=" * 50)
    _print("TeamSync Workspace - Launcher")
    _print("=" * 50)

    _print("Checking Python dependencies...")
    if not check_python_deps():
        return 1
    _print("Python dependencies OK.")

    if "--local-only" in argv:
        _print("Local-only mode: remote sync disabled.")
        launch_app("")
        return 0

    service = start_data_service()
    if service is None:
        _print("Continuing without the data service (local-only).")
        launch_app("")
        return 0

    try:
        if not wait_for_data_service():
            _print("Data service not ready, continuing anyway. Sync will report offline.")
        launch_app(DATA_SERVICE_URL)
    finally:
        service.terminate()
    return 0


if __name__ == "__main__":
    sys.exit(main())
