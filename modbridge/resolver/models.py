"""
Data models for the resolver module.

ResolutionKey   — (type token, member name, signature shape, member kinds)
NOT_FOUND       — cached negative outcome of a lookup
CacheStatistics — counters for monitoring cache effectiveness
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional, Union

from modbridge.host.models import MemberDescriptor, MemberKind, SignatureShape

__all__ = ["ResolutionKey", "NotFound", "NOT_FOUND", "Resolution", "CacheStatistics"]


@dataclass(frozen=True)
class ResolutionKey:
    type_token: Hashable
    name:       str
    shape:      Optional[SignatureShape]
    kinds:      frozenset[MemberKind]


class NotFound:
    """Singleton marker for 'no such member'. Falsy, cacheable, comparable by identity."""

    _instance: Optional["NotFound"] = None

    def __new__(cls) -> "NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = NotFound()

Resolution = Union[MemberDescriptor, NotFound]


@dataclass(frozen=True)
class CacheStatistics:
    entries:         int   # cached keys, found + not found
    not_found:       int   # cached negative entries
    member_tables:   int   # types whose member table has been introspected
    hits:            int
    misses:          int
    introspections:  int   # host member-table queries actually performed

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def __str__(self) -> str:
        return (
            f"CacheStatistics(entries={self.entries}, not_found={self.not_found}, "
            f"types={self.member_tables}, hit_rate={self.hit_rate:.0%})"
        )
