"""Data models for synchronization operations."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from content_mirror.models.record import Record


class SyncQuery(BaseModel):
    """Continuation query sent to the upstream client."""

    initial: bool = Field(default=False, description="Request a full initial fetch")
    sync_token: str | None = Field(
        default=None, description="Continuation cursor for a delta fetch"
    )
    content_type: str | None = Field(
        default=None, description="Content type filter (initial fetch only)"
    )
    resolve_links: bool = Field(
        default=False, description="Server-side link expansion; always disabled for sync"
    )

    @model_validator(mode="after")
    def check_mode(self) -> "SyncQuery":
        if self.initial == (self.sync_token is not None):
            raise ValueError("exactly one of initial or sync_token must be set")
        if self.content_type is not None and not self.initial:
            raise ValueError("content_type filter is only supported on the initial sync")
        return self

    @classmethod
    def initial_sync(cls, content_type: str | None = None) -> "SyncQuery":
        return cls(initial=True, content_type=content_type, resolve_links=False)

    @classmethod
    def delta(cls, sync_token: str) -> "SyncQuery":
        return cls(sync_token=sync_token, resolve_links=False)


class DeltaBatch(BaseModel):
    """Upserts, deletions and the new cursor returned by one sync round."""

    next_sync_token: str = Field(default=..., min_length=1, description="New continuation cursor")
    entries: list[Record] = Field(default_factory=list, description="Created or updated entries")
    assets: list[Record] = Field(default_factory=list, description="Created or updated assets")
    deleted_entry_ids: list[str] = Field(
        default_factory=list, description="Identifiers of deleted entries"
    )
    deleted_asset_ids: list[str] = Field(
        default_factory=list, description="Identifiers of deleted assets"
    )

    @property
    def has_changes(self) -> bool:
        """Check if there are any changes to apply."""
        return bool(
            self.entries or self.assets or self.deleted_entry_ids or self.deleted_asset_ids
        )

    @property
    def total_changes(self) -> int:
        """Get total number of changes."""
        return (
            len(self.entries)
            + len(self.assets)
            + len(self.deleted_entry_ids)
            + len(self.deleted_asset_ids)
        )


class SyncReport(BaseModel):
    """Report of a single sync round."""

    initial: bool = Field(default=False, description="True if this was an initial fetch")
    cursor_advanced: bool = Field(
        default=False, description="False when the upstream reported no new cursor"
    )
    sync_token: str | None = Field(default=None, description="Cursor held after the round")
    entries_upserted: int = Field(default=0, ge=0, description="Number of entries stored")
    assets_upserted: int = Field(default=0, ge=0, description="Number of assets stored")
    entries_deleted: int = Field(default=0, ge=0, description="Number of entries removed")
    assets_deleted: int = Field(default=0, ge=0, description="Number of assets removed")
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Sync duration in seconds")
    start_time: datetime = Field(..., description="Sync start timestamp")
    end_time: datetime = Field(..., description="Sync end timestamp")

    @property
    def total_changes(self) -> int:
        """Get total number of changes applied."""
        return (
            self.entries_upserted
            + self.assets_upserted
            + self.entries_deleted
            + self.assets_deleted
        )
