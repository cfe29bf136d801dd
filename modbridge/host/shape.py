"""Serialisable dump of a host type's member table — the TypeShape format."""

from __future__ import annotations

import json
import re as _re
from dataclasses import dataclass, field
from typing import Any, Hashable

from .base import AbstractIntrospectionProvider
from .models import MemberDescriptor, MemberKind

__all__ = ["MemberShape", "TypeShape", "describe_type"]


@dataclass
class MemberShape:
    name:      str
    kind:      str            # "method" | "field" | "property"
    type:      str            # value / return type, "" if unknown
    declaring: str
    params:    list[str] = field(default_factory=list)
    is_static: bool = False

    @classmethod
    def from_descriptor(cls, descriptor: MemberDescriptor) -> "MemberShape":
        params = [p.name for p in descriptor.parameters]
        if descriptor.variadic:
            params.append("*args")
        return cls(
            name=descriptor.name,
            kind=descriptor.kind.value,
            type=_type_label(descriptor.value_type),
            declaring=descriptor.declaring_type,
            params=params,
            is_static=descriptor.is_static,
        )

    def to_dict(self) -> dict:
        d: dict = {"name": self.name, "kind": self.kind, "type": self.type}
        if self.kind == MemberKind.METHOD.value:
            d["params"] = list(self.params)
        if self.is_static:
            d["static"] = True
        d["declaring"] = self.declaring
        return d


@dataclass
class TypeShape:
    """
    Member table of one host type, as seen through the bridge.
    Produced by describe_type(); printed by the `inspect` CLI command.
    """
    name:    str
    bases:   list[str] = field(default_factory=list)
    members: list[MemberShape] = field(default_factory=list)

    # ── Serialisation ─────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "name":    self.name,
            "bases":   list(self.bases),
            "members": [m.to_dict() for m in self.members],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    def to_text(self, inherited: bool = True) -> str:
        """
        Compact listing, one member per line::

            [game.Building : Entity]
              number: int [field]
              displayName: str [property]
              Upgrade(level) -> bool  (game.Entity)
        """
        parents = f" : {', '.join(self.bases)}" if self.bases else ""
        lines = [f"[{self.name}{parents}]"]
        for m in self.members:
            if not inherited and m.declaring != self.name:
                continue
            static_tag = "static " if m.is_static else ""
            origin = f"  ({m.declaring})" if m.declaring != self.name else ""
            if m.kind == MemberKind.METHOD.value:
                returns = f" -> {m.type}" if m.type else ""
                lines.append(f"  {static_tag}{m.name}({', '.join(m.params)}){returns}{origin}")
            else:
                type_tag = f": {m.type}" if m.type else ""
                lines.append(f"  {static_tag}{m.name}{type_tag} [{m.kind}]{origin}")
        return "\n".join(lines)

    # ── Convenience ───────────────────────────────────────────────────────────

    def find_member(self, name: str) -> MemberShape | None:
        """Case-insensitive member lookup by name."""
        name_lower = name.lower()
        for m in self.members:
            if m.name.lower() == name_lower:
                return m
        return None

    def search(self, fragment: str) -> list[MemberShape]:
        """Members whose CamelCase/snake_case tokens contain `fragment`
        (e.g. "eventbus" finds `_gameEventBus`)."""
        needle = fragment.lower()
        return [m for m in self.members if needle in "".join(_tokens(m.name))]


def describe_type(provider: AbstractIntrospectionProvider, type_token: Hashable) -> TypeShape:
    """Build a TypeShape from the provider's member table for `type_token`."""
    return TypeShape(
        name=provider.type_name(type_token),
        bases=list(provider.base_names(type_token)),
        members=[MemberShape.from_descriptor(d) for d in provider.members(type_token)],
    )


# ── Helpers ───────────────────────────────────────────────────────────────────

_TOKEN_RE = _re.compile(r"[A-Z][a-z]+|[A-Z]+(?=[A-Z]|$)|[a-z]+|\d+")


def _tokens(name: str) -> list[str]:
    return [t.lower() for t in _TOKEN_RE.findall(name)]


def _type_label(value_type: Any) -> str:
    if value_type is None:
        return ""
    if isinstance(value_type, str):
        return value_type
    if isinstance(value_type, type):
        return value_type.__qualname__
    return str(value_type).replace("typing.", "")
