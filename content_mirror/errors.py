"""Error taxonomy for the content mirror."""

from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of failure surfaced to callers."""

    UPSTREAM_FETCH = "upstream_fetch"
    STORE = "store"
    SYNC = "sync"
    RESOLUTION = "resolution"
    CONFIGURATION = "configuration"


class ContentMirrorError(Exception):
    """Base error carrying an error kind and the underlying cause.

    The cause is chained through ``__cause__`` so tracebacks keep the
    original failure.
    """

    kind: ErrorKind = ErrorKind.SYNC

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class UpstreamFetchError(ContentMirrorError):
    """Raised when the remote content repository cannot be read."""

    kind = ErrorKind.UPSTREAM_FETCH


class StoreError(ContentMirrorError):
    """Raised when the record store fails to read or write."""

    kind = ErrorKind.STORE


class ResolutionError(ContentMirrorError):
    """Raised when reference resolution hits malformed input."""

    kind = ErrorKind.RESOLUTION


class SyncError(ContentMirrorError):
    """Raised when a sync round fails.

    ``source_kind`` tells which collaborator failed (upstream or store).
    """

    kind = ErrorKind.SYNC

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message, cause)
        if isinstance(cause, ContentMirrorError):
            self.source_kind: ErrorKind = cause.kind
        else:
            self.source_kind = ErrorKind.SYNC


class ConfigurationError(ContentMirrorError):
    """Raised when configuration is invalid or missing."""

    kind = ErrorKind.CONFIGURATION
