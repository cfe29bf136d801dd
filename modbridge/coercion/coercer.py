"""
TypeCoercer — converts values crossing the bridge boundary.

Host → caller  (to_caller_type)
───────────────────────────────
  None                        → None for every expected type (absent)
  boxed scalar                → unboxed through the host first
  bool                        ← bool, int
  int                         ← int, bool, finite float (round-half-even), numeric str
  float                       ← int, float, numeric str
  str                         ← str, bytes (utf-8), numbers, enum members,
                                objects whose type defines its own __str__
  Enum subclass               ← member, member value, member name
  list/Sequence/tuple/set[X]  ← host collection, materialised eagerly in order
  dict/Mapping[K, V]          ← host mapping, values coerced
  HandleWrapper subclass      ← raw handle, wrapped through the wrapper builder
  Optional[X] / X | None      → coerced as X
  Any / object                → passed through

Caller → host  (to_host_value)
──────────────────────────────
  wrappers unwrap to their handle, sequences unwrap element-wise, numbers
  widen/narrow toward the declared ParamKind.

Every mismatch raises CoercionError; the facade turns it into an outcome.
"""

from __future__ import annotations

import collections.abc as cabc
import enum
import logging
import math
import numbers
import types
import typing
from typing import Any, Callable, Optional

from modbridge.exceptions import CoercionError
from modbridge.host.base import AbstractInvocationProvider
from modbridge.host.models import ParameterInfo, ParamKind

__all__ = ["TypeCoercer", "WrapperBuilder"]

logger = logging.getLogger(__name__)

#: builds a wrapper of the given class around a raw host handle
WrapperBuilder = Callable[[type, Any], Any]

_LIST_ORIGINS = (list, cabc.Sequence, cabc.MutableSequence, cabc.Iterable, cabc.Collection)
_SET_ORIGINS = (set, frozenset, cabc.Set, cabc.MutableSet)
_MAP_ORIGINS = (dict, cabc.Mapping, cabc.MutableMapping)
_UNION_ORIGINS = (typing.Union, types.UnionType)


class TypeCoercer:
    """
    Stateless apart from its collaborators.

    Parameters
    ----------
    host           : invocation provider used for unboxing and iterating
                     host collections
    wrapper_builder: called as builder(wrapper_cls, handle) when the expected
                     type is a wrapper class; defaults to wrapper_cls(handle)
    """

    def __init__(
        self,
        host: AbstractInvocationProvider,
        wrapper_builder: Optional[WrapperBuilder] = None,
    ) -> None:
        self._host = host
        self._wrapper_builder = wrapper_builder

    # ── Host → caller ─────────────────────────────────────────────────────

    def to_caller_type(self, host_value: Any, expected: Any = Any) -> Any:
        """Convert `host_value` to `expected`; raises CoercionError on mismatch."""
        value = self._host.unbox(host_value)
        if value is None:
            return None

        options = _union_members(expected)
        if options is not None:
            return self._first_option(value, options)

        if expected is Any or expected is object or expected is None:
            return value

        origin = typing.get_origin(expected)
        if origin is not None:
            return self._to_generic(value, expected, origin)

        if not isinstance(expected, type):
            # TypeVar, Literal, NewType … nothing to check against
            return value

        if _is_wrapper_type(expected):
            return self._to_wrapper(value, expected)
        if expected is bool:
            return _to_bool(value)
        if issubclass(expected, enum.Enum):
            return _to_enum(value, expected)
        if expected is int:
            return _to_int(value)
        if expected is float:
            return _to_float(value)
        if expected is str:
            return _to_str(value)
        if expected in (list, tuple, set, frozenset):
            return expected(self._materialise(value))
        if expected is dict:
            return self._to_mapping(value, Any, Any)
        if isinstance(value, expected):
            return value
        raise CoercionError(
            f"cannot coerce {type(value).__name__} to {expected.__name__}"
        )

    # ── Caller → host ─────────────────────────────────────────────────────

    def to_host_value(self, caller_value: Any, parameter: Optional[ParameterInfo] = None) -> Any:
        """Convert a caller argument into the host representation of `parameter`."""
        if caller_value is None:
            return None

        handle = _unwrap_handle(caller_value)
        if handle is not caller_value:
            return handle

        if isinstance(caller_value, (list, tuple, set, frozenset)):
            return type(caller_value)(self.to_host_value(v) for v in caller_value)

        kind = parameter.kind if parameter is not None else ParamKind.ANY
        if kind is ParamKind.INT:
            if isinstance(caller_value, enum.Enum):
                return _to_int(caller_value.value)
            if not isinstance(caller_value, bool):
                return _to_int(caller_value)
        elif kind is ParamKind.FLOAT and not isinstance(caller_value, bool):
            return _to_float(caller_value)
        elif kind is ParamKind.BOOL:
            return _to_bool(caller_value)
        elif kind is ParamKind.STR and isinstance(caller_value, enum.Enum):
            return caller_value.name
        return caller_value

    # ── Defaults ──────────────────────────────────────────────────────────

    @staticmethod
    def neutral_default(expected: Any = Any) -> Any:
        """Zero/empty/absent value of `expected`."""
        if _union_members(expected) is not None:
            return None
        target = typing.get_origin(expected) or expected
        if target is bool:
            return False
        if target is int:
            return 0
        if target is float:
            return 0.0
        if target is str:
            return ""
        if target is tuple:
            return ()
        if target is frozenset:
            return frozenset()
        if target in _SET_ORIGINS:
            return set()
        if target in _MAP_ORIGINS:
            return {}
        if target in _LIST_ORIGINS:
            return []
        return None

    # ── Internal helpers ──────────────────────────────────────────────────

    def _first_option(self, value: Any, options: tuple) -> Any:
        errors = []
        for option in options:
            try:
                return self.to_caller_type(value, option)
            except CoercionError as exc:
                errors.append(str(exc))
        raise CoercionError("; ".join(errors) or f"no union member accepts {type(value).__name__}")

    def _to_generic(self, value: Any, expected: Any, origin: Any) -> Any:
        args = typing.get_args(expected)
        if origin is tuple:
            items = self._materialise(value)
            if len(args) == 2 and args[1] is Ellipsis:
                return tuple(self._element(v, args[0]) for v in items)
            if args and args != ((),):
                if len(args) != len(items):
                    raise CoercionError(
                        f"expected {len(args)} elements, host collection has {len(items)}"
                    )
                return tuple(self._element(v, t) for v, t in zip(items, args))
            return tuple(items)
        if origin in _SET_ORIGINS:
            element = args[0] if args else Any
            converted = (self._element(v, element) for v in self._materialise(value))
            return frozenset(converted) if origin is frozenset else set(converted)
        if origin in _MAP_ORIGINS:
            key_type, value_type = args if len(args) == 2 else (Any, Any)
            return self._to_mapping(value, key_type, value_type)
        if origin in _LIST_ORIGINS:
            element = args[0] if args else Any
            return [self._element(v, element) for v in self._materialise(value)]
        if origin is type:
            if isinstance(value, type):
                return value
            raise CoercionError(f"expected a type, got {type(value).__name__}")
        # Literal, Annotated, Callable … not coercible, passed through
        return value

    def _element(self, value: Any, expected: Any) -> Any:
        return self.to_caller_type(value, expected)

    def _materialise(self, value: Any) -> list:
        items = self._host.iterate(value)
        if items is None:
            raise CoercionError(f"{type(value).__name__} is not a host collection")
        return items

    def _to_mapping(self, value: Any, key_type: Any, value_type: Any) -> dict:
        if not isinstance(value, cabc.Mapping):
            raise CoercionError(f"{type(value).__name__} is not a mapping")
        return {
            self.to_caller_type(k, key_type): self.to_caller_type(v, value_type)
            for k, v in value.items()
        }

    def _to_wrapper(self, value: Any, wrapper_cls: type) -> Any:
        if isinstance(value, wrapper_cls):
            return value
        handle = _unwrap_handle(value)
        try:
            if self._wrapper_builder is not None:
                wrapped = self._wrapper_builder(wrapper_cls, handle)
            else:
                wrapped = wrapper_cls(handle)
        except Exception as exc:  # noqa: BLE001
            raise CoercionError(f"cannot build {wrapper_cls.__name__}: {exc}") from exc
        if wrapped is None:
            raise CoercionError(f"cannot build {wrapper_cls.__name__} around {type(handle).__name__}")
        return wrapped


# ── Scalar conversions ────────────────────────────────────────────────────────

def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Integral):
        return bool(value)
    raise CoercionError(f"cannot coerce {type(value).__name__} to bool")


def _to_int(value: Any) -> int:
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            raise CoercionError(f"cannot coerce {value!r} to int") from None
    if isinstance(value, numbers.Real):
        number = float(value)
        if not math.isfinite(number):
            raise CoercionError(f"cannot narrow {number} to int")
        # round() rounds half to even
        return int(round(number))
    raise CoercionError(f"cannot coerce {type(value).__name__} to int")


def _to_float(value: Any) -> float:
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise CoercionError(f"cannot coerce {value!r} to float") from None
    raise CoercionError(f"cannot coerce {type(value).__name__} to float")


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CoercionError(f"bytes are not utf-8: {exc}") from None
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (bool, numbers.Number)):
        return str(value)
    if type(value).__str__ is not object.__str__:
        return str(value)
    raise CoercionError(f"{type(value).__name__} has no string form")


def _to_enum(value: Any, enum_cls: type) -> enum.Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        pass
    if isinstance(value, str) and value in enum_cls.__members__:
        return enum_cls.__members__[value]
    raise CoercionError(f"{value!r} is not a {enum_cls.__name__}")


# ── Typing helpers ────────────────────────────────────────────────────────────

def _union_members(expected: Any) -> Optional[tuple]:
    """Non-None members of a Union/Optional annotation; None if not a union."""
    if typing.get_origin(expected) not in _UNION_ORIGINS:
        return None
    return tuple(a for a in typing.get_args(expected) if a is not type(None))


def _is_wrapper_type(expected: type) -> bool:
    from modbridge.wrappers.base import HandleWrapper
    return issubclass(expected, HandleWrapper)


def _unwrap_handle(value: Any) -> Any:
    from modbridge.wrappers.base import HandleWrapper
    if isinstance(value, HandleWrapper):
        return value.native_object()
    return value
