"""Data models for the content mirror."""

from content_mirror.models.config import (
    AppConfig,
    ContentfulConfig,
    LoggingConfig,
    StoreConfig,
)
from content_mirror.models.record import (
    Link,
    Record,
    RecordKind,
    ResolvedRecord,
    UnresolvedLink,
)

__all__ = [
    "Record",
    "RecordKind",
    "Link",
    "ResolvedRecord",
    "UnresolvedLink",
    "AppConfig",
    "ContentfulConfig",
    "LoggingConfig",
    "StoreConfig",
]
