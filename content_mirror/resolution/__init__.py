"""Link resolution and memoization for mirrored entries."""

from content_mirror.resolution.cache import ResolutionCache, fingerprint
from content_mirror.resolution.resolver import LookupMap, ReferenceResolver, create_lookup_map

__all__ = [
    "LookupMap",
    "ReferenceResolver",
    "ResolutionCache",
    "create_lookup_map",
    "fingerprint",
]
