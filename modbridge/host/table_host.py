"""
TableHost — host provider driven by a generated binding table.

Models runtimes where the bridge cannot use language reflection and instead
ships a table of type descriptions (as produced by an IL2CPP/Mono structure
dump): each RecordType lists its fields and bound method implementations and
names its parent type. Objects are Records that the host may destroy at any
time, leaving the proxy dangling — the case the validity check exists for.

Dump format accepted by TableHost.from_dict()::

    {
      "classes": [
        {"name": "Building", "namespace": "Game", "parent": "Entity",
         "fields": [{"name": "number", "type": "int32", "default": 0},
                    {"name": "registry", "type": "object", "static": true}]}
      ]
    }

Method implementations cannot travel in a dump; attach them afterwards with
bind_method().
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence

from .base import HostProvider
from .models import MemberDescriptor, MemberKind, ParameterInfo, ParamKind

__all__ = [
    "FieldSpec",
    "MethodSpec",
    "RecordType",
    "Record",
    "BoxedValue",
    "HostList",
    "RecordDestroyedError",
    "TableHost",
]

logger = logging.getLogger(__name__)


class RecordDestroyedError(RuntimeError):
    """Host-side fault: the record behind a handle has been destroyed."""


# ── Table models ──────────────────────────────────────────────────────────────

@dataclass
class FieldSpec:
    name:      str
    type:      str  = "object"   # "int32" | "float" | "string" | type name …
    default:   Any  = None
    is_static: bool = False
    readonly:  bool = False

    def to_dict(self) -> dict:
        d = {"name": self.name, "type": self.type}
        if self.default is not None:
            d["default"] = self.default
        if self.is_static:
            d["static"] = True
        if self.readonly:
            d["readonly"] = True
        return d


@dataclass
class MethodSpec:
    name:      str
    impl:      Callable[..., Any]
    params:    tuple[str, ...] = ()    # parameter type names
    returns:   str  = "void"
    is_static: bool = False


@dataclass(eq=False)
class RecordType:
    """One entry of the binding table. Identity-hashed: it is the type token."""
    name:      str
    namespace: str = ""
    parent:    Optional[str] = None
    fields:    list[FieldSpec]  = field(default_factory=list)
    methods:   list[MethodSpec] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    def to_dict(self) -> dict:
        d: dict = {"name": self.name, "namespace": self.namespace}
        if self.parent:
            d["parent"] = self.parent
        d["fields"] = [f.to_dict() for f in self.fields]
        return d

    def __repr__(self) -> str:
        return f"RecordType({self.full_name})"


class Record:
    """A host object: a typed bag of field values that can be destroyed."""

    __slots__ = ("record_type", "values", "destroyed")

    def __init__(self, record_type: RecordType, values: Optional[dict] = None) -> None:
        self.record_type = record_type
        self.values: dict = dict(values or {})
        self.destroyed = False

    def destroy(self) -> None:
        self.destroyed = True

    def __repr__(self) -> str:
        state = " destroyed" if self.destroyed else ""
        return f"<Record {self.record_type.full_name}{state}>"


@dataclass(frozen=True)
class BoxedValue:
    """A boxed host scalar (e.g. an Il2CppSystem.Int32 behind an object ref)."""
    value: Any


class HostList:
    """
    Host-side list exposing only Count/get_Item, like an IL2CPP List<T> proxy.
    It is deliberately not a Python iterable.
    """

    __iter__ = None  # type: ignore[assignment]

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._items = list(items)

    @property
    def Count(self) -> int:  # noqa: N802 — host naming
        return len(self._items)

    def get_Item(self, index: int) -> Any:  # noqa: N802
        return self._items[index]


# ── Provider ──────────────────────────────────────────────────────────────────

class TableHost(HostProvider):
    """Host provider over a table of RecordTypes."""

    name = "table"

    def __init__(self, record_types: Iterable[RecordType] = ()) -> None:
        self._types: dict[str, RecordType] = {}
        self._statics: dict[tuple[str, str], Any] = {}
        for record_type in record_types:
            self.define(record_type)

    # ── Table construction ────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict) -> "TableHost":
        host = cls()
        for entry in data.get("classes", []):
            host.define(RecordType(
                name=entry["name"],
                namespace=entry.get("namespace", ""),
                parent=entry.get("parent"),
                fields=[
                    FieldSpec(
                        name=f["name"],
                        type=f.get("type", "object"),
                        default=f.get("default"),
                        is_static=bool(f.get("static", False)),
                        readonly=bool(f.get("readonly", False)),
                    )
                    for f in entry.get("fields", [])
                ],
            ))
        return host

    @classmethod
    def from_json(cls, text: str) -> "TableHost":
        return cls.from_dict(json.loads(text))

    def to_dict(self) -> dict:
        seen: list[RecordType] = []
        for record_type in self._types.values():
            if record_type not in seen:
                seen.append(record_type)
        return {"classes": [t.to_dict() for t in seen]}

    def define(self, record_type: RecordType) -> RecordType:
        self._types[record_type.name] = record_type
        self._types[record_type.full_name] = record_type
        for spec in record_type.fields:
            if spec.is_static:
                self._statics.setdefault((record_type.full_name, spec.name), spec.default)
        logger.debug("TableHost: defined %s (parent=%s)", record_type.full_name, record_type.parent)
        return record_type

    def bind_method(
        self,
        type_name: str,
        name: str,
        impl: Callable[..., Any],
        params: Sequence[str] = (),
        returns: str = "void",
        is_static: bool = False,
    ) -> None:
        """Attach a method implementation. `impl(target, *args)`; target is the
        RecordType for static methods."""
        record_type = self._types[type_name]
        record_type.methods.append(
            MethodSpec(name=name, impl=impl, params=tuple(params), returns=returns, is_static=is_static)
        )

    def new(self, type_name: str, **values: Any) -> Record:
        """Instantiate a record with field defaults from its whole parent chain."""
        record_type = self._types[type_name]
        defaults: dict = {}
        for ancestor in reversed(list(self._chain(record_type))):
            for spec in ancestor.fields:
                if not spec.is_static:
                    defaults[spec.name] = spec.default
        defaults.update(values)
        return Record(record_type, defaults)

    # ── Introspection ─────────────────────────────────────────────────────

    def type_of(self, handle: Any) -> Hashable:
        if isinstance(handle, Record):
            return handle.record_type
        raise TypeError(f"TableHost cannot type {type(handle).__name__}")

    def type_name(self, type_token: Hashable) -> str:
        if isinstance(type_token, RecordType):
            return type_token.full_name
        return str(type_token)

    def base_names(self, type_token: Hashable) -> tuple[str, ...]:
        parent = getattr(type_token, "parent", None)
        return (parent,) if parent else ()

    def find_type(self, name: str) -> Optional[Hashable]:
        return self._types.get(name)

    def is_alive(self, handle: Any) -> bool:
        if handle is None:
            return False
        if isinstance(handle, Record):
            return not handle.destroyed
        return isinstance(handle, RecordType)

    def members(self, type_token: Hashable) -> Iterable[MemberDescriptor]:
        seen: set[str] = set()
        result: list[MemberDescriptor] = []
        for record_type in self._chain(type_token):
            declaring = record_type.full_name
            for spec in record_type.methods:
                # overloads share a name; only a subclass redefinition hides them
                if spec.name in seen:
                    continue
                result.append(MemberDescriptor(
                    name=spec.name,
                    kind=MemberKind.METHOD,
                    declaring_type=declaring,
                    parameters=tuple(
                        ParameterInfo(name=f"arg{i}", kind=ParamKind.of_type(t), host_type=t)
                        for i, t in enumerate(spec.params)
                    ),
                    value_type=spec.returns,
                    is_static=spec.is_static,
                    accessor=spec,
                ))
            for spec in record_type.fields:
                if spec.name in seen:
                    continue
                result.append(MemberDescriptor(
                    name=spec.name,
                    kind=MemberKind.FIELD,
                    declaring_type=declaring,
                    value_type=spec.type,
                    is_static=spec.is_static,
                    writable=not spec.readonly,
                    accessor=spec,
                ))
            seen.update(d.name for d in result)
        return result

    # ── Invocation ────────────────────────────────────────────────────────

    def call(self, descriptor: MemberDescriptor, target: Any, args: Sequence[Any]) -> Any:
        if descriptor.kind is not MemberKind.METHOD:
            if args:
                raise TypeError(f"{descriptor.name} is a field, not callable")
            return self.get_value(descriptor, target)
        self._check(target)
        return descriptor.accessor.impl(target, *args)

    def get_value(self, descriptor: MemberDescriptor, target: Any) -> Any:
        self._check(target)
        if descriptor.is_static:
            return self._statics.get((descriptor.declaring_type, descriptor.name))
        if descriptor.name not in target.values:
            raise KeyError(f"{descriptor.declaring_type}.{descriptor.name} is not set")
        return target.values[descriptor.name]

    def set_value(self, descriptor: MemberDescriptor, target: Any, value: Any) -> None:
        self._check(target)
        if not descriptor.writable:
            raise AttributeError(f"{descriptor.name!r} is read-only")
        if descriptor.is_static:
            self._statics[(descriptor.declaring_type, descriptor.name)] = value
            return
        target.values[descriptor.name] = value

    def unbox(self, value: Any) -> Any:
        if isinstance(value, BoxedValue):
            return value.value
        return value

    def iterate(self, value: Any) -> Optional[list]:
        if isinstance(value, HostList):
            return [value.get_Item(i) for i in range(value.Count)]
        if isinstance(value, (list, tuple)):
            return list(value)
        return None

    # ── Internal helpers ──────────────────────────────────────────────────

    def _chain(self, record_type: RecordType) -> Iterable[RecordType]:
        """The type followed by its ancestors; stops on unknown parents or cycles."""
        visited: set[str] = set()
        current: Optional[RecordType] = record_type
        while current is not None and current.full_name not in visited:
            visited.add(current.full_name)
            yield current
            current = self._types.get(current.parent) if current.parent else None

    @staticmethod
    def _check(target: Any) -> None:
        if isinstance(target, Record) and target.destroyed:
            raise RecordDestroyedError(f"{target.record_type.full_name} record was destroyed")
