"""
State coordinator: the only mutation entry point for the workspace document.

Every update is a fresh read, a pure compute and a whole-document write.
Within one instance updates are serialized; across instances the last save
wins and an earlier concurrent update is lost. That trade-off is intended.
"""
import dataclasses
import logging
import threading
import time
from typing import Callable

from src.shared.app_state import AppState
from src.workspace.storage.import_validation import validate_import
from src.workspace.storage.persistent_store import PersistentStore
from src.workspace.storage.schema_migrator import migrate

log = logging.getLogger(__name__)

Mutator = Callable[[AppState], AppState]


def _now_ms() -> int:
    return int(time.time() * 1000)


class StateCoordinator:
    """Read-modify-write transactions against a PersistentStore."""

    def __init__(self, store: PersistentStore):
        self.store = store
        self._lock = threading.RLock()

    def current(self) -> AppState:
        """Freshest persisted state."""
        return self.store.load()

    def update(self, mutator: Mutator, stamp: bool = True) -> AppState:
        """
        Apply mutator to the freshest persisted state and save the result.

        The mutator must not modify its argument; it returns a new AppState
        (dataclasses.replace is the usual way). A mutator that hands back its
        argument unchanged is a no-op and nothing is written.

        With stamp=True lastUpdated is set here and always moves forward.
        stamp=False keeps the timestamp the mutator produced (adopting a
        remote copy), which must not be older than the current one.

        Returns:
            The state that was saved.

        Raises:
            CapacityExceeded, StorageWriteFailed: From the store; nothing was saved.
                StorageWriteFailed also covers a medium that could not be read.
            TypeError: If mutator does not return an AppState.
        """
        with self._lock:
            current = self.store.read_document()
            new_state = mutator(current)
            if not isinstance(new_state, AppState):
                raise TypeError(
                    f"Mutator must return AppState, got {type(new_state).__name__}"
                )
            if new_state is current:
                return current
            previous = current.last_updated or 0
            if stamp:
                new_state = dataclasses.replace(
                    new_state, last_updated=max(_now_ms(), previous + 1)
                )
            elif (new_state.last_updated or 0) < previous:
                raise ValueError("Refusing to move lastUpdated backwards")
            self.store.save(new_state)
        return new_state

    def replace_all(self, state: AppState, stamp: bool = True) -> AppState:
        """Overwrite the whole document with state (import, remote pull)."""
        return self.update(lambda _current: state, stamp=stamp)

    def import_backup(self, raw) -> AppState:
        """
        Validate an external backup and make it the current document.

        Raises:
            ImportValidationFailure: Backup rejected; current state untouched.
        """
        doc = validate_import(raw)
        imported = self.replace_all(migrate(doc))
        log.info(
            "Imported backup: %d users, %d teams",
            len(imported.users), len(imported.teams),
        )
        return imported

    def reset(self) -> AppState:
        """Wipe the persisted document and return the re-bootstrapped state."""
        with self._lock:
            self.store.clear()
            return self.store.load()
