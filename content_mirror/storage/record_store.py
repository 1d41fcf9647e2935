"""Record store interface and in-memory implementation."""

import threading
from abc import ABC, abstractmethod
from typing import Iterable

import structlog

from content_mirror.models.record import Record

log = structlog.stdlib.get_logger()


class RecordStore(ABC):
    """Abstract interface for the local mirror's record storage.

    Records are kept in two categories, entries and assets. Storing a record
    whose id already exists in that category replaces it. Removal works by
    identifier across both categories.
    """

    @abstractmethod
    def get_all_entries(self) -> list[Record]:
        """Return all stored entries in insertion order.

        Raises:
            StoreError: If the read fails
        """

    @abstractmethod
    def get_all_assets(self) -> list[Record]:
        """Return all stored assets in insertion order.

        Raises:
            StoreError: If the read fails
        """

    def get_all(self) -> list[Record]:
        """Return all stored entries followed by all stored assets.

        Raises:
            StoreError: If the read fails
        """
        return self.get_all_entries() + self.get_all_assets()

    @abstractmethod
    def store_entries(self, records: Iterable[Record]) -> None:
        """Insert or replace entries.

        Raises:
            StoreError: If the write fails
        """

    @abstractmethod
    def store_assets(self, records: Iterable[Record]) -> None:
        """Insert or replace assets.

        Raises:
            StoreError: If the write fails
        """

    @abstractmethod
    def remove_by_ids(self, ids: Iterable[str]) -> None:
        """Remove records by identifier. Unknown identifiers are ignored.

        Raises:
            StoreError: If the write fails
        """


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed record store with process lifetime."""

    def __init__(self) -> None:
        self._entries: dict[str, Record] = {}
        self._assets: dict[str, Record] = {}
        self._lock = threading.Lock()
        log.info("in_memory_record_store_initialized")

    def get_all_entries(self) -> list[Record]:
        with self._lock:
            return list(self._entries.values())

    def get_all_assets(self) -> list[Record]:
        with self._lock:
            return list(self._assets.values())

    def get_all(self) -> list[Record]:
        with self._lock:
            return list(self._entries.values()) + list(self._assets.values())

    def store_entries(self, records: Iterable[Record]) -> None:
        records = list(records)
        with self._lock:
            for record in records:
                self._entries[record.id] = record
        log.debug("entries_stored", count=len(records))

    def store_assets(self, records: Iterable[Record]) -> None:
        records = list(records)
        with self._lock:
            for record in records:
                self._assets[record.id] = record
        log.debug("assets_stored", count=len(records))

    def remove_by_ids(self, ids: Iterable[str]) -> None:
        removed = 0
        with self._lock:
            for record_id in ids:
                if self._entries.pop(record_id, None) is not None:
                    removed += 1
                if self._assets.pop(record_id, None) is not None:
                    removed += 1
        log.debug("records_removed", count=removed)
