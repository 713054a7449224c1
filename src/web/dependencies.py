"""
Dependency wiring for FastAPI routes.

The web process is one workspace instance: it owns a single PersistentStore
(one instance id), its coordinator, the change notifier and the sync bridge.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from src.shared.config import WorkspaceConfig
from src.workspace.state_coordinator import StateCoordinator
from src.workspace.storage.persistent_store import PersistentStore
from src.workspace.sync.change_notifier import ChangeNotifier
from src.workspace.sync.remote_sync import PeriodicSync, RemoteSyncBridge

log = logging.getLogger(__name__)

DATA_ROOT = Path(os.environ.get("TEAMSYNC_DATA_ROOT", "./data"))


@dataclass
class WorkspaceRuntime:
    config: WorkspaceConfig
    store: PersistentStore
    coordinator: StateCoordinator
    notifier: ChangeNotifier
    bridge: Optional[RemoteSyncBridge] = None
    periodic_sync: Optional[PeriodicSync] = None
    external_changes: int = field(default=0)

    def on_external_change(self) -> None:
        self.external_changes += 1
        log.info("Workspace changed in another instance; next read reloads it")

    def start(self) -> None:
        self.notifier.subscribe(self.on_external_change)
        self.notifier.start()
        if self.periodic_sync:
            self.periodic_sync.start()

    def stop(self) -> None:
        if self.periodic_sync:
            self.periodic_sync.stop()
        self.notifier.stop()
        if self.bridge:
            self.bridge.close()
        self.store.close()


_runtime: Optional[WorkspaceRuntime] = None


def build_runtime(config: WorkspaceConfig) -> WorkspaceRuntime:
    store = PersistentStore(
        config.db_path, key=config.storage_key, quota_bytes=config.quota_bytes
    )
    coordinator = StateCoordinator(store)
    notifier = ChangeNotifier(store, poll_interval_s=config.poll_interval_s)
    bridge = None
    periodic = None
    if config.sync_enabled:
        bridge = RemoteSyncBridge(config.remote_url, timeout_s=config.sync_timeout_s)
        if config.sync_interval_s > 0:
            periodic = PeriodicSync(bridge, coordinator, interval_s=config.sync_interval_s)
    return WorkspaceRuntime(
        config=config,
        store=store,
        coordinator=coordinator,
        notifier=notifier,
        bridge=bridge,
        periodic_sync=periodic,
    )


def get_runtime() -> WorkspaceRuntime:
    """Return the process-wide runtime, building it on first use."""
    global _runtime
    if _runtime is None:
        config = WorkspaceConfig.from_env()
        config.data_root = DATA_ROOT
        _runtime = build_runtime(config)
    return _runtime


def set_runtime(runtime: Optional[WorkspaceRuntime]) -> None:
    """Replace the runtime (tests, shutdown)."""
    global _runtime
    _runtime = runtime


def get_coordinator() -> StateCoordinator:
    return get_runtime().coordinator


def get_bridge() -> Optional[RemoteSyncBridge]:
    return get_runtime().bridge
