"""
MemberResolver — symbolic member name → MemberDescriptor, memoised.

Lookup order for resolve(type_token, name, shape, kinds):
  1. Cached outcome for the full key (found or NOT_FOUND).
  2. The type's member table (declared + inherited, most-derived first),
     itself cached per type.
  3. Members named `name` whose kind is in `kinds` and whose parameter list
     accepts `shape.arity`; among overloads of the most-derived declaring
     type, the best SignatureShape.score() wins.
  4. Accessor aliases: `get_X` → readable field/property X,
     `set_X` → writable field/property X (prefixes from BridgeConfig).

Never raises for a missing member: NOT_FOUND is an ordinary outcome when
host schemas shift between versions and call sites probe several names.
"""

from __future__ import annotations

import logging
from typing import Hashable, Iterable, Optional

from modbridge.config import BridgeConfig
from modbridge.host.base import AbstractIntrospectionProvider
from modbridge.host.models import (
    ANY_KIND,
    MemberDescriptor,
    MemberKind,
    SignatureShape,
)

from .cache import ResolutionCache
from .models import NOT_FOUND, CacheStatistics, Resolution, ResolutionKey

__all__ = ["MemberResolver"]

logger = logging.getLogger(__name__)


class MemberResolver:
    """
    Resolves members against one introspection provider.

    A cache may be shared between resolvers only when their providers expose
    identical member tables for the same type tokens.
    """

    def __init__(
        self,
        introspection: AbstractIntrospectionProvider,
        cache: Optional[ResolutionCache] = None,
        config: Optional[BridgeConfig] = None,
    ) -> None:
        self._introspection = introspection
        self._cache = cache if cache is not None else ResolutionCache()
        self._config = config or BridgeConfig()
        self._types: dict[str, Optional[Hashable]] = {}

    @property
    def introspection(self) -> AbstractIntrospectionProvider:
        return self._introspection

    # ── Public API ────────────────────────────────────────────────────────

    def resolve(
        self,
        type_token: Hashable,
        name: str,
        shape: Optional[SignatureShape] = None,
        kinds: Iterable[MemberKind] = ANY_KIND,
    ) -> Resolution:
        """Return the MemberDescriptor for `name` on `type_token`, or NOT_FOUND."""
        if not name:
            return NOT_FOUND
        key = ResolutionKey(type_token, name, shape, frozenset(kinds))
        return self._cache.get_or_compute(key, lambda: self._lookup(key))

    def members(self, type_token: Hashable) -> tuple[MemberDescriptor, ...]:
        """Cached member table of `type_token`; empty if introspection failed."""
        return self._cache.member_table(type_token, lambda: self._load(type_token))

    def resolve_type(self, name: str) -> Optional[Hashable]:
        """Find a type token by name through the provider, memoising the answer."""
        if name in self._types:
            return self._types[name]
        try:
            token = self._introspection.find_type(name)
        except Exception as exc:  # noqa: BLE001 — host lookup fault == unknown type
            logger.warning("MemberResolver: find_type(%r) failed — %s", name, exc)
            token = None
        self._types.setdefault(name, token)
        return self._types[name]

    def statistics(self) -> CacheStatistics:
        return self._cache.statistics()

    # ── Internal helpers ──────────────────────────────────────────────────

    def _load(self, type_token: Hashable) -> Iterable[MemberDescriptor]:
        try:
            table = tuple(self._introspection.members(type_token))
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "MemberResolver: introspection of %r failed — %s", type_token, exc
            )
            return ()
        logger.debug("MemberResolver: loaded %d members for %r", len(table), type_token)
        return table

    def _lookup(self, key: ResolutionKey) -> Resolution:
        table = self.members(key.type_token)
        found = self._pick(table, key.name, key.shape, key.kinds)
        if found is not None:
            return found

        alias = self._alias(table, key)
        if alias is not None:
            logger.debug("MemberResolver: %s resolved via accessor alias %s", key.name, alias.name)
            return alias
        return NOT_FOUND

    @staticmethod
    def _pick(
        table: tuple[MemberDescriptor, ...],
        name: str,
        shape: Optional[SignatureShape],
        kinds: frozenset[MemberKind],
    ) -> Optional[MemberDescriptor]:
        candidates = [
            d for d in table
            if d.name == name and d.kind in kinds and (shape is None or shape.matches(d))
        ]
        if not candidates:
            return None
        # Only overloads on the most-derived declaring type compete
        declaring = candidates[0].declaring_type
        overloads = [d for d in candidates if d.declaring_type == declaring]
        if shape is None or len(overloads) == 1:
            return overloads[0]
        return max(overloads, key=shape.score)

    def _alias(self, table: tuple[MemberDescriptor, ...], key: ResolutionKey) -> Optional[MemberDescriptor]:
        getter, setter = self._config.accessor_prefixes
        value_kinds = frozenset({MemberKind.FIELD, MemberKind.PROPERTY})
        arity = key.shape.arity if key.shape is not None else None

        if getter and key.name.startswith(getter) and len(key.name) > len(getter) and arity in (None, 0):
            target = self._pick(table, key.name[len(getter):], None, value_kinds)
            if target is not None and target.readable:
                return target
        if setter and key.name.startswith(setter) and len(key.name) > len(setter) and arity in (None, 1):
            target = self._pick(table, key.name[len(setter):], None, value_kinds)
            if target is not None and target.writable:
                return target
        return None
