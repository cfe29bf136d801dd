"""
Member resolution — symbolic member names to reusable MemberDescriptors.

Lookups are memoised per (type, name, signature shape, kinds); misses are
cached as NOT_FOUND so that probing renamed members costs O(1) after the
first attempt.
"""

from .cache import ResolutionCache, default_cache
from .member_resolver import MemberResolver
from .models import NOT_FOUND, CacheStatistics, NotFound, Resolution, ResolutionKey

__all__ = [
    "MemberResolver",
    "ResolutionCache",
    "default_cache",
    "NOT_FOUND",
    "NotFound",
    "Resolution",
    "ResolutionKey",
    "CacheStatistics",
]
