"""Local, queryable mirror of a remote content repository with link resolution."""

from content_mirror.errors import (
    ConfigurationError,
    ContentMirrorError,
    ErrorKind,
    ResolutionError,
    StoreError,
    SyncError,
    UpstreamFetchError,
)
from content_mirror.mirror import ContentMirror

__all__ = [
    "ConfigurationError",
    "ContentMirror",
    "ContentMirrorError",
    "ErrorKind",
    "ResolutionError",
    "StoreError",
    "SyncError",
    "UpstreamFetchError",
]
