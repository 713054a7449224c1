"""
Durable storage for the single workspace document.

The medium is a SQLite file shared by every instance on the machine. Each
instance owns one PersistentStore; they see each other's writes through the
revisions table, which ChangeNotifier watches.
"""
import json
import logging
import sqlite3
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

from src.shared.app_state import AppState, bootstrap_state
from src.shared.config import DEFAULT_QUOTA_BYTES, DEFAULT_STORAGE_KEY
from src.shared.errors import (
    CapacityExceeded,
    CorruptPersistedData,
    StorageWriteFailed,
)
from src.workspace.storage.schema_migrator import migrate

log = logging.getLogger(__name__)

_CAPACITY_ERRORS = ("SQLITE_FULL", "SQLITE_TOOBIG")


def _is_capacity_error(error: sqlite3.Error) -> bool:
    name = getattr(error, "sqlite_errorname", "") or ""
    if name in _CAPACITY_ERRORS:
        return True
    text = str(error).lower()
    return "disk is full" in text or "too big" in text


class PersistentStore:
    """
    Load/save/clear of the workspace document.

    load() never raises: a missing document yields the bootstrap default,
    an unreadable one is logged and also replaced by the bootstrap default.
    save() raises CapacityExceeded when the document does not fit and
    StorageWriteFailed for any other write error.
    """

    def __init__(
        self,
        db_path: Path,
        key: str = DEFAULT_STORAGE_KEY,
        quota_bytes: int = DEFAULT_QUOTA_BYTES,
        instance_id: Optional[str] = None,
    ):
        self.db_path = Path(db_path)
        self.key = key
        self.quota_bytes = quota_bytes
        self.instance_id = instance_id or str(uuid.uuid4())
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS revisions (
                    key TEXT PRIMARY KEY,
                    revision INTEGER NOT NULL,
                    writer_id TEXT NOT NULL,
                    changed_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=10)

    def _bump_revision(self, conn: sqlite3.Connection, now: str):
        conn.execute(
            """INSERT INTO revisions (key, revision, writer_id, changed_at)
               VALUES (?, 1, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   revision = revision + 1,
                   writer_id = excluded.writer_id,
                   changed_at = excluded.changed_at""",
            (self.key, self.instance_id, now),
        )

    # ── Document ──

    def read_raw(self) -> Optional[str]:
        """Return the stored JSON text, or None when nothing is stored."""
        with self._conn() as conn:
            row = conn.execute(
                "SELECT payload FROM documents WHERE key = ?", (self.key,)
            ).fetchone()
        return row[0] if row else None

    def read_document(self) -> AppState:
        """
        Read the freshest persisted state for a read-modify-write.

        Unlike load(), an unreadable medium raises instead of yielding the
        initial state.

        Raises:
            StorageWriteFailed: The medium could not be read.
        """
        try:
            payload = self.read_raw()
        except sqlite3.Error as e:
            log.error("Failed to read workspace document: %s", e)
            raise StorageWriteFailed(f"Failed to read workspace document: {e}") from e
        return self._decode(payload)

    def load(self) -> AppState:
        """Read the freshest persisted state. Never raises."""
        try:
            return self.read_document()
        except StorageWriteFailed:
            log.warning("Workspace document unreadable, showing initial state")
            return bootstrap_state()

    def _decode(self, payload: Optional[str]) -> AppState:
        if payload is None:
            return bootstrap_state()

        try:
            return migrate(json.loads(payload))
        except (json.JSONDecodeError, CorruptPersistedData) as e:
            log.warning(
                "%s: stored document for key %r is unreadable, using initial state: %s",
                CorruptPersistedData.__name__, self.key, e,
            )
            return bootstrap_state()

    def save(self, state: AppState) -> None:
        """
        Serialize and write the whole document.

        Raises:
            CapacityExceeded: Document larger than quota, or medium full.
            StorageWriteFailed: Any other serialization or write failure.
        """
        try:
            payload = json.dumps(state.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            log.error("Workspace document is not serializable: %s", e)
            raise StorageWriteFailed(f"Document is not serializable: {e}") from e

        size = len(payload.encode("utf-8"))
        if size > self.quota_bytes:
            log.error(
                "Save rejected: document is %d bytes, quota is %d bytes",
                size, self.quota_bytes,
            )
            raise CapacityExceeded(
                f"Document of {size} bytes exceeds the {self.quota_bytes} byte quota",
                size_bytes=size,
                quota_bytes=self.quota_bytes,
            )

        now = datetime.now(UTC).isoformat()
        try:
            with self._conn() as conn:
                conn.execute(
                    """INSERT INTO documents (key, payload, saved_at) VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           payload = excluded.payload,
                           saved_at = excluded.saved_at""",
                    (self.key, payload, now),
                )
                self._bump_revision(conn, now)
                conn.commit()
        except sqlite3.Error as e:
            if _is_capacity_error(e):
                log.error("Save rejected by storage medium: %s", e)
                raise CapacityExceeded(
                    f"Storage medium is full: {e}",
                    size_bytes=size,
                    quota_bytes=self.quota_bytes,
                ) from e
            log.error("Failed to save workspace document: %s", e)
            raise StorageWriteFailed(f"Failed to save workspace document: {e}") from e

    def clear(self) -> None:
        """Remove the persisted document. The next load() bootstraps."""
        now = datetime.now(UTC).isoformat()
        try:
            with self._conn() as conn:
                conn.execute("DELETE FROM documents WHERE key = ?", (self.key,))
                self._bump_revision(conn, now)
                conn.commit()
        except sqlite3.Error as e:
            log.error("Failed to clear workspace document: %s", e)
            raise StorageWriteFailed(f"Failed to clear workspace document: {e}") from e
        log.info("Workspace document %r cleared", self.key)

    # ── Change marker ──

    def read_revision(self) -> Optional[tuple[int, str]]:
        """Return (revision, writer_id) of the last change, or None if never written."""
        with self._conn() as conn:
            row = conn.execute(
                "SELECT revision, writer_id FROM revisions WHERE key = ?", (self.key,)
            ).fetchone()
        return (row[0], row[1]) if row else None

    # ── Backup ──

    def export_json(self) -> str:
        """Pretty-printed current document, for backup download."""
        return json.dumps(self.load().to_dict(), ensure_ascii=False, indent=2)

    def close(self) -> None:
        """Connections are opened per operation; nothing to release."""
