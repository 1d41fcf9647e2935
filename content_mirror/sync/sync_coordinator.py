"""Synchronization coordinator for incremental mirror updates."""

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from typing import TYPE_CHECKING, Callable

import structlog

from content_mirror.errors import (
    ContentMirrorError,
    StoreError,
    SyncError,
    UpstreamFetchError,
)
from content_mirror.storage.cursor_tracker import CursorTracker, InMemoryCursorTracker
from content_mirror.storage.record_store import RecordStore
from content_mirror.sync.models import DeltaBatch, SyncQuery, SyncReport

if TYPE_CHECKING:
    from content_mirror.ingestion.contentful_client import UpstreamClient

log = structlog.stdlib.get_logger()


class SyncCoordinator:
    """Owns the continuation cursor and applies upstream deltas to the store.

    The cursor is committed only after every apply operation of a round has
    succeeded, so a failed or interrupted round is re-fetched on the next
    call. Calls to ``sync`` on one instance are serialised by a lock.
    """

    def __init__(
        self,
        upstream_client: "UpstreamClient",
        store: RecordStore,
        cursor_tracker: CursorTracker | None = None,
        initial_content_type: str | None = None,
        max_workers: int = 4,
    ):
        """
        Initialize sync coordinator.

        Args:
            upstream_client: Client performing one sync round per call
            store: Record store receiving upserts and removals
            cursor_tracker: Optional cursor persistence (in-memory if None)
            initial_content_type: Content type filter for the initial sync
            max_workers: Threads used to apply a round's four change sets

        Raises:
            StoreError: If the saved cursor cannot be loaded
        """
        self._upstream_client = upstream_client
        self._store = store
        self._cursor_tracker: CursorTracker = cursor_tracker or InMemoryCursorTracker()
        self._initial_content_type = initial_content_type
        self._max_workers = max_workers
        self._lock = threading.Lock()
        self._sync_token: str | None = self._cursor_tracker.load()

        log.info("sync_coordinator_initialized", has_sync_token=self._sync_token is not None)

    @property
    def sync_token(self) -> str | None:
        """Cursor of the last committed sync round."""
        return self._sync_token

    def reset(self) -> None:
        """Forget the cursor so the next sync performs an initial fetch.

        Raises:
            StoreError: If the cleared cursor cannot be saved
        """
        with self._lock:
            self._cursor_tracker.save(None)
            self._sync_token = None
        log.info("sync_coordinator_reset")

    def build_query(self) -> SyncQuery:
        """Build the continuation query for the next round."""
        if self._sync_token is None:
            return SyncQuery.initial_sync(content_type=self._initial_content_type)
        return SyncQuery.delta(self._sync_token)

    def sync(self) -> SyncReport:
        """
        Bring the store up to date with the upstream repository.

        Returns:
            SyncReport describing the round; ``cursor_advanced`` is False when
            the upstream reported no changes

        Raises:
            SyncError: If the upstream fetch or any store operation fails. The
                cursor is left unchanged.
        """
        with self._lock:
            return self._sync()

    def _sync(self) -> SyncReport:
        start_time = datetime.now()
        query = self.build_query()
        log.info("sync_started", initial=query.initial)

        try:
            batch = self._upstream_client.sync(query)
        except Exception as e:
            if not isinstance(e, ContentMirrorError):
                e = UpstreamFetchError(f"Upstream sync failed: {e}", e)
            log.error("sync_fetch_failed", initial=query.initial, error=str(e))
            raise SyncError(f"Sync failed while fetching from upstream: {e}", e) from e

        if batch.next_sync_token == self._sync_token:
            log.info("sync_no_changes")
            end_time = datetime.now()
            return SyncReport(
                initial=query.initial,
                cursor_advanced=False,
                sync_token=self._sync_token,
                start_time=start_time,
                end_time=end_time,
                duration_seconds=(end_time - start_time).total_seconds(),
            )

        log.info(
            "sync_updates_found",
            entries=len(batch.entries),
            assets=len(batch.assets),
            deleted_entries=len(batch.deleted_entry_ids),
            deleted_assets=len(batch.deleted_asset_ids),
        )

        self.apply_batch(batch)

        try:
            self._cursor_tracker.save(batch.next_sync_token)
        except Exception as e:
            if not isinstance(e, ContentMirrorError):
                e = StoreError(f"Failed to save sync token: {e}", e)
            log.error("sync_token_save_failed", error=str(e))
            raise SyncError(f"Sync failed while saving the cursor: {e}", e) from e
        self._sync_token = batch.next_sync_token

        end_time = datetime.now()
        report = SyncReport(
            initial=query.initial,
            cursor_advanced=True,
            sync_token=self._sync_token,
            entries_upserted=len(batch.entries),
            assets_upserted=len(batch.assets),
            entries_deleted=len(batch.deleted_entry_ids),
            assets_deleted=len(batch.deleted_asset_ids),
            start_time=start_time,
            end_time=end_time,
            duration_seconds=(end_time - start_time).total_seconds(),
        )

        log.info(
            "sync_applied",
            initial=report.initial,
            total_changes=report.total_changes,
            duration_seconds=report.duration_seconds,
        )
        return report

    def apply_batch(self, batch: DeltaBatch) -> None:
        """
        Apply a delta batch's four change sets to the store concurrently.

        Deleted assets go through the same removal path as deleted entries.
        Returns only after every operation has finished.

        Args:
            batch: Delta batch to apply

        Raises:
            SyncError: If any of the operations failed
        """
        operations: dict[str, Callable[[], None]] = {
            "store_entries": lambda: self._store.store_entries(batch.entries),
            "store_assets": lambda: self._store.store_assets(batch.assets),
            "remove_entries": lambda: self._store.remove_by_ids(batch.deleted_entry_ids),
            "remove_assets": lambda: self._store.remove_by_ids(batch.deleted_asset_ids),
        }

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = {executor.submit(operation): name for name, operation in operations.items()}
            wait(futures)

        errors: list[StoreError] = []
        for future, name in futures.items():
            error = future.exception()
            if error is None:
                continue
            if not isinstance(error, StoreError):
                error = StoreError(f"{name} failed: {error}", error)
            log.error("sync_apply_failed", operation=name, error=str(error))
            errors.append(error)

        if errors:
            raise SyncError(
                f"Sync failed while applying changes ({len(errors)} of {len(operations)} "
                f"operations failed): {errors[0]}",
                errors[0],
            ) from errors[0]
