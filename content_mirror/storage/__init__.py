"""Record storage and cursor persistence for the content mirror."""

from content_mirror.storage.cursor_tracker import CursorTracker, InMemoryCursorTracker
from content_mirror.storage.record_store import InMemoryRecordStore, RecordStore
from content_mirror.storage.sqlite_store import (
    SqliteCursorTracker,
    SqliteDatabase,
    SqliteRecordStore,
)

__all__ = [
    "CursorTracker",
    "InMemoryCursorTracker",
    "InMemoryRecordStore",
    "RecordStore",
    "SqliteCursorTracker",
    "SqliteDatabase",
    "SqliteRecordStore",
]
