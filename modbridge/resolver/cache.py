"""
ResolutionCache — process-wide, append-only memo of member lookups.

Concurrency
───────────
• Reads take no lock: a dict lookup is atomic and entries never change once
  written.
• First writes for a key run under one re-entrant lock so that the host is
  introspected once per key. Correctness does not depend on it: writing the
  same computed descriptor twice is harmless.
• Hit/miss counters on the lock-free path are approximate under contention.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Hashable, Iterable, Optional

from modbridge.host.models import MemberDescriptor

from .models import NOT_FOUND, CacheStatistics, Resolution, ResolutionKey

__all__ = ["ResolutionCache", "default_cache"]

logger = logging.getLogger(__name__)

_MISSING = object()


class ResolutionCache:
    """Memoises (key → descriptor | NOT_FOUND) and (type → member table)."""

    def __init__(self) -> None:
        self._entries: dict[ResolutionKey, Resolution] = {}
        self._tables: dict[Hashable, tuple[MemberDescriptor, ...]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._introspections = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: ResolutionKey) -> bool:
        return key in self._entries

    def peek(self, key: ResolutionKey) -> Optional[Resolution]:
        """Cached outcome for `key` without computing it; None if never resolved."""
        found = self._entries.get(key, _MISSING)
        return None if found is _MISSING else found

    def get_or_compute(self, key: ResolutionKey, compute: Callable[[], Resolution]) -> Resolution:
        found = self._entries.get(key, _MISSING)
        if found is not _MISSING:
            self._hits += 1
            return found

        with self._lock:
            found = self._entries.get(key, _MISSING)
            if found is not _MISSING:
                self._hits += 1
                return found
            self._misses += 1
            outcome = compute()
            self._entries.setdefault(key, outcome)
            if outcome is NOT_FOUND:
                logger.debug("ResolutionCache: cached miss for %s", key.name)
            return self._entries[key]

    def member_table(
        self,
        type_token: Hashable,
        load: Callable[[], Iterable[MemberDescriptor]],
    ) -> tuple[MemberDescriptor, ...]:
        table = self._tables.get(type_token, _MISSING)
        if table is not _MISSING:
            return table

        with self._lock:
            table = self._tables.get(type_token, _MISSING)
            if table is not _MISSING:
                return table
            self._introspections += 1
            loaded = tuple(load())
            self._tables.setdefault(type_token, loaded)
            return self._tables[type_token]

    def statistics(self) -> CacheStatistics:
        entries = list(self._entries.values())
        return CacheStatistics(
            entries=len(entries),
            not_found=sum(1 for e in entries if e is NOT_FOUND),
            member_tables=len(self._tables),
            hits=self._hits,
            misses=self._misses,
            introspections=self._introspections,
        )


_DEFAULT_CACHE: Optional[ResolutionCache] = None
_DEFAULT_LOCK = threading.Lock()


def default_cache() -> ResolutionCache:
    """The process-wide cache, created on first use and never torn down."""
    global _DEFAULT_CACHE
    if _DEFAULT_CACHE is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_CACHE is None:
                _DEFAULT_CACHE = ResolutionCache()
    return _DEFAULT_CACHE
