"""Centralized provider module for upstream clients and record stores.

This module provides factory functions for the collaborators the mirror is
wired from. Developers can modify these functions to swap implementations
without changing other code.

Default implementations:
- Upstream: ContentfulClient (Content Delivery sync API over requests)
- Store: InMemoryRecordStore, or SqliteRecordStore for a persistent mirror
"""

import structlog

from content_mirror.ingestion.contentful_client import ContentfulClient, UpstreamClient
from content_mirror.mirror import ContentMirror
from content_mirror.models.config import AppConfig, ContentfulConfig, StoreConfig
from content_mirror.storage.cursor_tracker import CursorTracker, InMemoryCursorTracker
from content_mirror.storage.record_store import InMemoryRecordStore, RecordStore
from content_mirror.storage.sqlite_store import (
    SqliteCursorTracker,
    SqliteDatabase,
    SqliteRecordStore,
)
from content_mirror.sync.sync_coordinator import SyncCoordinator

log = structlog.stdlib.get_logger()


def get_upstream_client(config: ContentfulConfig) -> UpstreamClient:
    """Get the configured upstream client.

    Args:
        config: Contentful connection settings

    Returns:
        UpstreamClient instance
    """
    log.info("initializing_upstream_client", provider="Contentful", host=config.host)
    return ContentfulClient(
        space_id=config.space_id,
        access_token=config.access_token,
        host=config.host,
        environment=config.environment,
        timeout_seconds=config.timeout_seconds,
        max_retries=config.max_retries,
    )


def get_storage(config: StoreConfig) -> tuple[RecordStore, CursorTracker]:
    """Get the configured record store together with its cursor tracker.

    The SQLite backend keeps both in one database so the cursor and the
    records it describes persist together.

    Args:
        config: Store settings

    Returns:
        (record store, cursor tracker)

    Raises:
        ValueError: If the store type is not supported
        StoreError: If the database cannot be opened
    """
    log.info("initializing_record_store", store_type=config.type)

    if config.type == "memory":
        return InMemoryRecordStore(), InMemoryCursorTracker()

    if config.type == "sqlite":
        database = SqliteDatabase(config.path)
        return SqliteRecordStore(database), SqliteCursorTracker(database)

    raise ValueError(f"Unsupported store type: {config.type}")


def build_mirror(config: AppConfig) -> ContentMirror:
    """Wire a ContentMirror from application configuration.

    Args:
        config: Application configuration

    Returns:
        Ready-to-use ContentMirror; no sync has run yet
    """
    upstream_client = get_upstream_client(config.contentful)
    store, cursor_tracker = get_storage(config.store)
    coordinator = SyncCoordinator(
        upstream_client=upstream_client,
        store=store,
        cursor_tracker=cursor_tracker,
        initial_content_type=config.contentful.initial_content_type,
    )
    log.info("content_mirror_built", store_type=config.store.type)
    return ContentMirror(coordinator=coordinator, store=store)
