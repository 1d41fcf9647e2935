"""Persistence of the sync continuation cursor."""

import threading
from abc import ABC, abstractmethod

import structlog

log = structlog.stdlib.get_logger()


class CursorTracker(ABC):
    """Loads and saves the continuation cursor between process runs."""

    @abstractmethod
    def load(self) -> str | None:
        """Return the saved cursor, or None if no sync has completed yet.

        Raises:
            StoreError: If the read fails
        """

    @abstractmethod
    def save(self, sync_token: str | None) -> None:
        """Save the cursor. None clears it.

        Raises:
            StoreError: If the write fails
        """


class InMemoryCursorTracker(CursorTracker):
    """Keeps the cursor for the lifetime of the process only."""

    def __init__(self, sync_token: str | None = None) -> None:
        self._sync_token = sync_token
        self._lock = threading.Lock()

    def load(self) -> str | None:
        with self._lock:
            return self._sync_token

    def save(self, sync_token: str | None) -> None:
        with self._lock:
            self._sync_token = sync_token
        log.debug("sync_token_saved", has_token=sync_token is not None)
