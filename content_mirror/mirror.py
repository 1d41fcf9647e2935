"""Caller-facing access to the synchronized content mirror."""

import threading
from typing import Callable, Iterable

import structlog

from content_mirror.errors import ContentMirrorError, ResolutionError, StoreError
from content_mirror.models.record import Record, ResolvedRecord
from content_mirror.resolution.cache import ResolutionCache
from content_mirror.resolution.resolver import ReferenceResolver, create_lookup_map
from content_mirror.storage.record_store import RecordStore
from content_mirror.sync.models import SyncReport
from content_mirror.sync.sync_coordinator import SyncCoordinator

log = structlog.stdlib.get_logger()


class ContentMirror:
    """Syncs before every read and serves records from the local store.

    Every getter runs ``sync`` first and fails outright if it fails; partial
    results are never returned. Reads and resolution on one instance are
    serialised so a resolution sees a single snapshot of entries and assets.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        store: RecordStore,
        resolver: ReferenceResolver | None = None,
        cache: ResolutionCache | None = None,
    ):
        """
        Initialize content mirror.

        Args:
            coordinator: Sync coordinator writing into ``store``
            store: Record store to read from
            resolver: Optional reference resolver (default instance if None)
            cache: Optional resolution cache (fresh single-slot cache if None)
        """
        self._coordinator = coordinator
        self._store = store
        self._resolver = resolver or ReferenceResolver()
        self._cache = cache or ResolutionCache()
        self._lock = threading.RLock()

    @property
    def coordinator(self) -> SyncCoordinator:
        return self._coordinator

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    def sync(self) -> SyncReport:
        """Run one sync round. Raises SyncError on failure.

        Holds the mirror lock so a sync never lands between the reads of an
        open snapshot.
        """
        with self._lock:
            return self._coordinator.sync()

    def get_entries(self) -> list[Record]:
        """Sync, then return all stored entries."""
        log.debug("getting_entries")
        with self._lock:
            self.sync()
            return self._read("entries", self._store.get_all_entries)

    def get_assets(self) -> list[Record]:
        """Sync, then return all stored assets."""
        log.debug("getting_assets")
        with self._lock:
            self.sync()
            return self._read("assets", self._store.get_all_assets)

    def get_all(self) -> list[Record]:
        """Sync, then return all stored entries followed by all stored assets."""
        log.debug("getting_all")
        with self._lock:
            self.sync()
            return self._read("all records", self._store.get_all)

    def get_resolved_entries(self) -> list[ResolvedRecord]:
        """Sync, then return all entries with their links resolved."""
        with self._lock:
            entries = self.get_entries()
            return self.resolve_references(entries)

    def resolve_references(self, entries: Iterable[Record]) -> list[ResolvedRecord]:
        """
        Resolve links in ``entries`` against them and all stored assets.

        Assets are link targets only and never appear in the result. Repeated
        calls with identical entries and assets return the memoized result.

        Args:
            entries: Entries to resolve

        Returns:
            Resolved entries in input order

        Raises:
            StoreError: If stored assets cannot be read
            ResolutionError: If resolution fails on malformed input
        """
        entries = list(entries)
        with self._lock:
            assets = self._read("assets", self._store.get_all_assets)

            def compute() -> list[ResolvedRecord]:
                log.info("resolving_references", entry_count=len(entries), asset_count=len(assets))
                lookup = create_lookup_map(entries + assets)
                return self._resolver.resolve(entries, lookup)

            try:
                return self._cache.get_or_compute(entries, compute, dependencies=assets)
            except ContentMirrorError:
                raise
            except Exception as e:
                log.error("resolution_failed", entry_count=len(entries), error=str(e))
                raise ResolutionError(f"Failed resolving references: {e}", e) from e

    def _read(self, what: str, reader: Callable[[], list[Record]]) -> list[Record]:
        try:
            return reader()
        except ContentMirrorError:
            raise
        except Exception as e:
            log.error("store_read_failed", what=what, error=str(e))
            raise StoreError(f"Failed to read {what} from store: {e}", e) from e
