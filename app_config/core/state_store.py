"""Durable per-source state backed by SQLite.

One row per configuration source records the last version token that
went through a complete apply cycle.  The store is an explicitly owned
resource: open it at the start of an invocation and close it at the end,
preferably with ``with StateStore(path) as store:``.

Design:
- Single table keyed by ``source_key``; writes are upserts.
- Writes run inside ``BEGIN IMMEDIATE`` so concurrent processes serialise
  on the database lock (waiting up to ``lock_timeout`` seconds).
- Columns are always addressed by name and missing ones are added on open,
  so files written by older or newer releases stay usable.
- ``":memory:"`` gives a throwaway store: every run looks like a first run.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from types import TracebackType

from pydantic import ValidationError

from app_config.core.errors import StoreUnreadableError, StoreWriteError
from app_config.models.state import StateRecord

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# Bumped whenever a column is added.  Never decreases.
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_STATE = """
CREATE TABLE IF NOT EXISTS state_records (
    source_key    TEXT PRIMARY KEY,
    version_token TEXT NOT NULL,
    applied_at    TEXT NOT NULL,
    content       TEXT
);
"""

# Columns added after the first release, with the DDL used to add them.
_LATE_COLUMNS: dict[str, str] = {
    "content": "ALTER TABLE state_records ADD COLUMN content TEXT",
}

_UPSERT = """
INSERT INTO state_records (source_key, version_token, applied_at, content)
VALUES (?, ?, ?, ?)
ON CONFLICT(source_key) DO UPDATE SET
    version_token = excluded.version_token,
    applied_at = excluded.applied_at,
    content = excluded.content
"""

_SELECT = (
    "SELECT source_key, version_token, applied_at, content FROM state_records"
)


class StateStore:
    """Last-applied version per source, persisted in a SQLite file.

    Parameters
    ----------
    db_path:
        Path to the SQLite file (``~`` is expanded, parent directories are
        created) or ``":memory:"``.
    lock_timeout:
        Seconds to wait for another process holding the write lock.
    """

    def __init__(self, db_path: Path | str, *, lock_timeout: float = 30.0) -> None:
        if str(db_path) == MEMORY:
            self._db_path: Path | None = None
        else:
            self._db_path = Path(db_path).expanduser()
        self._lock_timeout = lock_timeout
        self._conn: sqlite3.Connection | None = None

    @property
    def location(self) -> str:
        return str(self._db_path) if self._db_path else MEMORY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> StateStore:
        """Open the database and make sure the schema is current."""
        if self._conn is not None:
            return self

        target = MEMORY
        if self._db_path is not None:
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreUnreadableError(
                    f"Cannot create directory for state file {self._db_path}: {exc}"
                ) from exc
            target = str(self._db_path)

        try:
            conn = sqlite3.connect(
                target, timeout=self._lock_timeout, isolation_level=None
            )
        except sqlite3.Error as exc:
            raise StoreUnreadableError(f"Cannot open state file {target}: {exc}") from exc

        conn.row_factory = sqlite3.Row
        try:
            self._init_schema(conn)
        except sqlite3.Error as exc:
            conn.close()
            raise StoreUnreadableError(
                f"State file {target} is unreadable: {exc}"
            ) from exc

        self._conn = conn
        logger.debug("Opened state store %s", target)
        return self

    def close(self) -> None:
        """Close the connection.  Safe to call more than once."""
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("Closed state store %s", self.location)

    def __enter__(self) -> StateStore:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @staticmethod
    def _init_schema(conn: sqlite3.Connection) -> None:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("BEGIN IMMEDIATE")
        try:
            conn.execute(_CREATE_STATE)
            present = {
                row["name"]
                for row in conn.execute("PRAGMA table_info(state_records)")
            }
            for column, ddl in _LATE_COLUMNS.items():
                if column not in present:
                    conn.execute(ddl)
            (user_version,) = conn.execute("PRAGMA user_version").fetchone()
            if user_version < SCHEMA_VERSION:
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            conn.execute("COMMIT")
        except sqlite3.Error:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreUnreadableError("State store is not open")
        return self._conn

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_last_version(self, source_key: str) -> str | None:
        """Return the last applied version token, or None on a first run."""
        record = self.get_record(source_key)
        return record.version_token if record else None

    def get_record(self, source_key: str) -> StateRecord | None:
        """Return the full state record for a source, or None."""
        conn = self._connection()
        try:
            row = conn.execute(
                f"{_SELECT} WHERE source_key = ?", (source_key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreUnreadableError(
                f"Cannot read state for {source_key}: {exc}"
            ) from exc
        return self._row_to_record(row) if row else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_last_version(
        self,
        source_key: str,
        version_token: str,
        *,
        content: str | None = None,
    ) -> StateRecord:
        """Upsert the record for a source in a single immediate transaction."""
        conn = self._connection()
        record = StateRecord(
            source_key=source_key,
            version_token=version_token,
            content=content,
        )
        try:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(
                _UPSERT,
                (
                    record.source_key,
                    record.version_token,
                    record.applied_at.isoformat(),
                    record.content,
                ),
            )
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StoreWriteError(
                f"Cannot persist version {version_token!r} for {source_key}: {exc}"
            ) from exc

        logger.debug("Persisted %s = %s", source_key, version_token)
        return record

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> StateRecord:
        try:
            return StateRecord(
                source_key=row["source_key"],
                version_token=row["version_token"],
                applied_at=datetime.fromisoformat(row["applied_at"]),
                content=row["content"],
            )
        except (TypeError, ValueError, ValidationError) as exc:
            raise StoreUnreadableError(
                f"Unreadable state record for {row['source_key']}: {exc}"
            ) from exc
