"""Synchronization components for incremental mirror updates."""

from content_mirror.sync.models import DeltaBatch, SyncQuery, SyncReport
from content_mirror.sync.sync_coordinator import SyncCoordinator

__all__ = [
    "DeltaBatch",
    "SyncCoordinator",
    "SyncQuery",
    "SyncReport",
]
