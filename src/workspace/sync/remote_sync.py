"""
Best-effort whole-document sync with the remote persistence service.

Conflict policy is last-writer-wins on lastUpdated, with no merging: a push
replaces the remote document, an adopted pull replaces the local one. A pull
can race a local write; the staleness check runs on a fresh read inside the
coordinator transaction so an old response never overwrites a newer local
document. Failures leave the local store untouched.
"""
import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Optional

import httpx

from src.shared.app_state import AppState
from src.shared.errors import (
    NetworkUnavailable,
    RemoteServiceError,
    WorkspaceError,
    format_remote_error,
)
from src.workspace.state_coordinator import StateCoordinator
from src.workspace.storage.schema_migrator import migrate

log = logging.getLogger(__name__)

DATA_PATH = "/api/data"


@dataclass
class PushResult:
    accepted: bool
    timestamp: Optional[int] = None
    error: Optional[str] = None


@dataclass
class SyncStatus:
    online: bool
    applied: bool = False
    remote_timestamp: Optional[int] = None
    error: Optional[str] = None


def adopt_remote(remote: AppState, local: AppState) -> AppState:
    """
    Return the document to keep when local meets remote.

    The remote copy wins only if strictly newer. Session fields stay local.
    Returns local itself when nothing should change.
    """
    if (remote.last_updated or 0) <= (local.last_updated or 0):
        return local
    return dataclasses.replace(
        remote,
        current_user=local.current_user,
        theme=local.theme,
        llm_config=local.llm_config,
    )


class RemoteSyncBridge:
    """HTTP client for GET/POST /api/data on the persistence service."""

    def __init__(
        self,
        base_url: str = "",
        timeout_s: float = 5.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            base_url: Service root, e.g. http://localhost:3000
            timeout_s: Per-request timeout
            client: Pre-built httpx client (tests); not closed by close()
        """
        self._owns_client = client is None
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout_s)

    def pull(self) -> Optional[AppState]:
        """
        Fetch the remote document. None when the service holds nothing yet.

        Raises:
            NetworkUnavailable: Service unreachable or timed out.
            RemoteServiceError: Error status or a body that is not a JSON object.
        """
        try:
            resp = self.client.get(DATA_PATH)
        except httpx.TransportError as e:
            raise NetworkUnavailable(f"GET {DATA_PATH} failed: {e}") from e

        if resp.status_code != 200:
            raise RemoteServiceError(
                f"GET {DATA_PATH} returned {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteServiceError(
                f"GET {DATA_PATH} returned invalid JSON", status_code=resp.status_code
            ) from e
        if not isinstance(data, dict):
            raise RemoteServiceError(
                f"GET {DATA_PATH} returned {type(data).__name__}, expected object",
                status_code=resp.status_code,
            )
        if not data:
            return None
        return migrate(data)

    def push(self, state: AppState) -> PushResult:
        """Send the full document. Never raises; failures give accepted=False."""
        try:
            resp = self.client.post(DATA_PATH, json=state.to_dict())
        except httpx.TransportError as e:
            error = NetworkUnavailable(f"POST {DATA_PATH} failed: {e}")
            log.warning("Push failed, staying local-only: %s", error)
            return PushResult(accepted=False, error=format_remote_error(error))

        if resp.status_code != 200:
            error = RemoteServiceError(
                f"POST {DATA_PATH} returned {resp.status_code}",
                status_code=resp.status_code,
            )
            log.warning("Push rejected: %s", error)
            return PushResult(accepted=False, error=format_remote_error(error))

        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            error = RemoteServiceError(
                f"POST {DATA_PATH} returned an unusable body", status_code=resp.status_code
            )
            log.warning("Push response unusable: %s", error)
            return PushResult(accepted=False, error=format_remote_error(error))

        return PushResult(
            accepted=bool(body.get("success")),
            timestamp=body.get("timestamp"),
        )

    def sync_once(self, coordinator: StateCoordinator) -> SyncStatus:
        """Pull and adopt the remote document if it is newer than the local one."""
        try:
            remote = self.pull()
        except (NetworkUnavailable, RemoteServiceError) as e:
            log.warning("Sync pull failed, staying local-only: %s", e)
            return SyncStatus(online=False, error=format_remote_error(e))

        if remote is None:
            return SyncStatus(online=True)

        applied = False

        def adopt(current: AppState) -> AppState:
            nonlocal applied
            kept = adopt_remote(remote, current)
            applied = kept is not current
            return kept

        coordinator.update(adopt, stamp=False)
        if applied:
            log.info("Adopted remote document (lastUpdated=%s)", remote.last_updated)
        return SyncStatus(online=True, applied=applied, remote_timestamp=remote.last_updated)

    def publish(self, coordinator: StateCoordinator) -> PushResult:
        """Push the freshest local document."""
        return self.push(coordinator.current())

    def close(self) -> None:
        if self._owns_client:
            self.client.close()


class PeriodicSync:
    """Runs bridge.sync_once on a daemon thread every interval_s seconds."""

    def __init__(
        self,
        bridge: RemoteSyncBridge,
        coordinator: StateCoordinator,
        interval_s: float = 10.0,
    ):
        self.bridge = bridge
        self.coordinator = coordinator
        self.interval_s = interval_s
        self.last_status: Optional[SyncStatus] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> SyncStatus:
        try:
            status = self.bridge.sync_once(self.coordinator)
        except WorkspaceError as e:
            # Local write failures while adopting must not kill the timer
            log.error("Periodic sync failed: %s", e)
            status = SyncStatus(online=False, error=str(e))
        self.last_status = status
        return status

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="remote-sync", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        self.tick()
        while not self._stop.wait(self.interval_s):
            self.tick()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=self.interval_s + 1)
            self._thread = None
