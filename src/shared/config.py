"""
Runtime configuration read from environment variables.
"""
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_STORAGE_KEY = "teamsync_data_v15"
# Same order of magnitude as a browser's local storage allowance
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class WorkspaceConfig:
    """Settings shared by the web app, the launcher and the sync server."""
    data_root: Path = Path("./data")
    storage_key: str = DEFAULT_STORAGE_KEY
    quota_bytes: int = DEFAULT_QUOTA_BYTES
    remote_url: str = "http://localhost:3000"
    sync_timeout_s: float = 5.0
    sync_interval_s: float = 10.0
    poll_interval_s: float = 1.0
    server_port: int = 3000
    server_data_dir: Path = Path("./server_data")

    @property
    def db_path(self) -> Path:
        return self.data_root / "workspace.sqlite"

    @property
    def sync_enabled(self) -> bool:
        return bool(self.remote_url.strip())

    @classmethod
    def from_env(cls) -> "WorkspaceConfig":
        return cls(
            data_root=Path(os.environ.get("TEAMSYNC_DATA_ROOT", "./data")),
            storage_key=os.environ.get("TEAMSYNC_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            quota_bytes=_env_int("TEAMSYNC_QUOTA_BYTES", DEFAULT_QUOTA_BYTES),
            remote_url=os.environ.get("TEAMSYNC_REMOTE_URL", "http://localhost:3000"),
            sync_timeout_s=_env_float("TEAMSYNC_SYNC_TIMEOUT", 5.0),
            sync_interval_s=_env_float("TEAMSYNC_SYNC_INTERVAL", 10.0),
            poll_interval_s=_env_float("TEAMSYNC_POLL_INTERVAL", 1.0),
            server_port=_env_int("PORT", 3000),
            server_data_dir=Path(os.environ.get("TEAMSYNC_SERVER_DATA", "./server_data")),
        )
