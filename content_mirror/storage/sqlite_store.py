"""SQLite-backed record store and cursor tracker."""

import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog
from pydantic import ValidationError

from content_mirror.errors import StoreError
from content_mirror.models.record import Record
from content_mirror.storage.cursor_tracker import CursorTracker
from content_mirror.storage.record_store import RecordStore

log = structlog.stdlib.get_logger()

ENTRY_CATEGORY = "entry"
ASSET_CATEGORY = "asset"

# Stay well below SQLite's default bound-parameter limit
_DELETE_BATCH_SIZE = 500


class SqliteDatabase:
    """Connection management and schema for the mirror database.

    File databases open a connection per operation. ``:memory:`` databases
    share one connection, serialised by a lock.
    """

    def __init__(self, path: str | Path = ":memory:", timeout: float = 30.0) -> None:
        self.path = str(path)
        self._timeout = timeout
        self._is_memory = self.path == ":memory:"
        self._shared_conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        if not self._is_memory:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, mapping sqlite errors to StoreError."""
        try:
            if self._is_memory:
                with self._lock:
                    if self._shared_conn is None:
                        self._shared_conn = sqlite3.connect(":memory:", check_same_thread=False)
                    with self._shared_conn:
                        yield self._shared_conn
            else:
                conn = sqlite3.connect(self.path, timeout=self._timeout)
                try:
                    with conn:
                        yield conn
                finally:
                    conn.close()
        except sqlite3.Error as e:
            log.error("sqlite_operation_failed", path=self.path, error=str(e))
            raise StoreError(f"SQLite operation failed on {self.path}: {e}", e) from e

    def _ensure_schema(self) -> None:
        with self.connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS records (
                    category TEXT NOT NULL,
                    id TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    PRIMARY KEY (category, id)
                );
                CREATE INDEX IF NOT EXISTS records_id ON records (id);
                CREATE TABLE IF NOT EXISTS sync_state (
                    name TEXT PRIMARY KEY,
                    value TEXT
                );
                """
            )


class SqliteRecordStore(RecordStore):
    """Record store persisting records as JSON payloads in SQLite."""

    def __init__(self, database: SqliteDatabase | str | Path = ":memory:") -> None:
        if not isinstance(database, SqliteDatabase):
            database = SqliteDatabase(database)
        self.database = database
        log.info("sqlite_record_store_initialized", path=database.path)

    def get_all_entries(self) -> list[Record]:
        return self._select(ENTRY_CATEGORY)

    def get_all_assets(self) -> list[Record]:
        return self._select(ASSET_CATEGORY)

    def store_entries(self, records: Iterable[Record]) -> None:
        self._upsert(ENTRY_CATEGORY, records)

    def store_assets(self, records: Iterable[Record]) -> None:
        self._upsert(ASSET_CATEGORY, records)

    def remove_by_ids(self, ids: Iterable[str]) -> None:
        ids = list(dict.fromkeys(ids))
        if not ids:
            return

        removed = 0
        with self.database.connection() as conn:
            for start in range(0, len(ids), _DELETE_BATCH_SIZE):
                batch = ids[start : start + _DELETE_BATCH_SIZE]
                placeholders = ",".join("?" for _ in batch)
                cursor = conn.execute(
                    f"DELETE FROM records WHERE id IN ({placeholders})", batch
                )
                removed += cursor.rowcount
        log.debug("records_removed", requested=len(ids), removed=removed)

    def _upsert(self, category: str, records: Iterable[Record]) -> None:
        rows = [(category, record.id, record.model_dump_json()) for record in records]
        if not rows:
            return

        with self.database.connection() as conn:
            conn.executemany(
                """
                INSERT INTO records (category, id, payload) VALUES (?, ?, ?)
                ON CONFLICT (category, id) DO UPDATE SET payload = excluded.payload
                """,
                rows,
            )
        log.debug("records_stored", category=category, count=len(rows))

    def _select(self, category: str) -> list[Record]:
        with self.database.connection() as conn:
            rows = conn.execute(
                "SELECT id, payload FROM records WHERE category = ? ORDER BY rowid",
                (category,),
            ).fetchall()

        records: list[Record] = []
        for record_id, payload in rows:
            try:
                records.append(Record.model_validate_json(payload))
            except ValidationError as e:
                log.error("stored_record_invalid", record_id=record_id, category=category)
                raise StoreError(f"Stored {category} {record_id} is not a valid record", e) from e
        return records


class SqliteCursorTracker(CursorTracker):
    """Cursor tracker persisting the continuation cursor next to the records."""

    CURSOR_KEY = "sync_token"

    def __init__(self, database: SqliteDatabase | str | Path = ":memory:") -> None:
        if not isinstance(database, SqliteDatabase):
            database = SqliteDatabase(database)
        self.database = database

    def load(self) -> str | None:
        with self.database.connection() as conn:
            row = conn.execute(
                "SELECT value FROM sync_state WHERE name = ?", (self.CURSOR_KEY,)
            ).fetchone()
        return row[0] if row else None

    def save(self, sync_token: str | None) -> None:
        with self.database.connection() as conn:
            if sync_token is None:
                conn.execute("DELETE FROM sync_state WHERE name = ?", (self.CURSOR_KEY,))
            else:
                conn.execute(
                    """
                    INSERT INTO sync_state (name, value) VALUES (?, ?)
                    ON CONFLICT (name) DO UPDATE SET value = excluded.value
                    """,
                    (self.CURSOR_KEY, sync_token),
                )
        log.debug("sync_token_saved", path=self.database.path, has_token=sync_token is not None)
