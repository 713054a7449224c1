"""
Cross-instance change notification.

Watches the store's revision marker and tells subscribers "reload now" when
another instance wrote or cleared the document. No payload is carried;
subscribers reload the full document themselves.
"""
import logging
import sqlite3
import threading
from typing import Callable, Optional

from src.workspace.storage.persistent_store import PersistentStore

log = logging.getLogger(__name__)

Handler = Callable[[], None]


class ChangeNotifier:
    """Polls the shared medium for foreign writes; own writes are ignored."""

    def __init__(self, store: PersistentStore, poll_interval_s: float = 1.0):
        self.store = store
        self.poll_interval_s = poll_interval_s
        self._handlers: list[Handler] = []
        self._handlers_lock = threading.Lock()
        self._last_revision = self._initial_revision()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _initial_revision(self) -> Optional[int]:
        try:
            marker = self.store.read_revision()
        except sqlite3.Error as e:
            log.warning("Could not read change marker at startup: %s", e)
            return None
        return marker[0] if marker else None

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register handler; returns an idempotent unsubscribe function."""
        with self._handlers_lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._handlers_lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        with self._handlers_lock:
            return len(self._handlers)

    def check(self) -> bool:
        """
        Poll once. Returns True if subscribers were notified.

        A change whose latest writer is this instance is an echo and is
        skipped, even if foreign writes happened in between: our own write
        was made on a fresh read, so it already includes them.
        """
        try:
            marker = self.store.read_revision()
        except sqlite3.Error as e:
            log.warning("Change poll failed: %s", e)
            return False

        if marker is None:
            return False
        revision, writer_id = marker
        if revision == self._last_revision:
            return False
        self._last_revision = revision

        if writer_id == self.store.instance_id:
            return False

        log.debug("Document changed by instance %s (revision %d)", writer_id, revision)
        self._fire()
        return True

    def _fire(self) -> None:
        with self._handlers_lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler()
            except Exception:
                log.exception("Change handler failed")

    # ── Background polling ──

    def start(self) -> None:
        """Start polling on a daemon thread."""
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="change-notifier", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.poll_interval_s):
            self.check()

    def stop(self) -> None:
        """Stop polling and drop every subscriber."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=self.poll_interval_s + 1)
            self._thread = None
        with self._handlers_lock:
            self._handlers.clear()
