"""
PythonHost — host provider backed by Python's own reflection.

Member tables are built from the type alone (never from an instance), by
walking the MRO most-derived first:

  • functions, staticmethods, classmethods   → METHOD
  • property / cached_property               → PROPERTY
  • annotated names, __slots__, dataclass    → FIELD (instance)
    fields, annotated class defaults
  • any other class attribute                → FIELD (static)

Instance attributes that are only ever assigned in __init__ and never
declared are invisible to the type, exactly like undeclared members on a
managed runtime type.

Static access passes the type token itself as the target.
"""

from __future__ import annotations

import ctypes
import functools
import importlib
import inspect
import logging
import sys
import types
import typing
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence

from .base import HostProvider
from .models import MemberDescriptor, MemberKind, ParameterInfo, ParamKind

__all__ = ["PythonHost"]

logger = logging.getLogger(__name__)

_STRING_TYPES = (str, bytes, bytearray)


class PythonHost(HostProvider):
    """Host provider for plain Python objects."""

    name = "python"

    def __init__(
        self,
        include_private: bool = True,
        alive_check: Optional[Callable[[Any], bool]] = None,
    ) -> None:
        self._include_private = include_private
        self._alive_check = alive_check
        self._registered: dict[str, type] = {}

    # ── Type registry ─────────────────────────────────────────────────────

    def register_type(self, cls: type, alias: str = "") -> type:
        """Make `cls` discoverable by find_type() under its name (and `alias`)."""
        self._registered[cls.__name__] = cls
        self._registered[self.type_name(cls)] = cls
        if alias:
            self._registered[alias] = cls
        return cls

    # ── Introspection ─────────────────────────────────────────────────────

    def type_of(self, handle: Any) -> Hashable:
        return type(handle)

    def type_name(self, type_token: Hashable) -> str:
        cls = type_token
        module = getattr(cls, "__module__", "")
        qualname = getattr(cls, "__qualname__", repr(cls))
        if not module or module == "builtins":
            return qualname
        return f"{module}.{qualname}"

    def base_names(self, type_token: Hashable) -> tuple[str, ...]:
        bases = getattr(type_token, "__bases__", ())
        return tuple(b.__qualname__ for b in bases if b is not object)

    def find_type(self, name: str) -> Optional[Hashable]:
        if not name:
            return None
        if name in self._registered:
            return self._registered[name]

        module_name, sep, attr_path = name.replace(":", ".").rpartition(".")
        if sep:
            found = _import_attr(module_name, attr_path)
            if isinstance(found, type):
                return found

        # Simple name: scan loaded modules, like scanning loaded assemblies
        for module in list(sys.modules.values()):
            candidate = getattr(module, "__dict__", {}).get(name)
            if isinstance(candidate, type) and candidate.__name__ == name:
                return candidate
        return None

    def is_alive(self, handle: Any) -> bool:
        if handle is None:
            return False
        if self._alive_check is None:
            return True
        return bool(self._alive_check(handle))

    def members(self, type_token: Hashable) -> Iterable[MemberDescriptor]:
        if not isinstance(type_token, type):
            raise TypeError(f"PythonHost type tokens are classes, got {type_token!r}")

        seen: set[str] = set()
        result: list[MemberDescriptor] = []
        for klass in inspect.getmro(type_token):
            if klass is object:
                continue
            declaring = self.type_name(klass)
            namespace = vars(klass)
            annotations = _annotations(klass)

            names = list(namespace)
            names += [n for n in annotations if n not in namespace]
            names += [n for n in _slot_names(klass) if n not in namespace and n not in annotations]

            for name in names:
                if name in seen or not self._visible(name):
                    continue
                descriptor = self._describe(
                    declaring, name, namespace.get(name, _MISSING), annotations,
                )
                if descriptor is None:
                    continue
                seen.add(name)
                result.append(descriptor)
        logger.debug("PythonHost: %s exposes %d members", self.type_name(type_token), len(result))
        return result

    # ── Invocation ────────────────────────────────────────────────────────

    def call(self, descriptor: MemberDescriptor, target: Any, args: Sequence[Any]) -> Any:
        if descriptor.kind is not MemberKind.METHOD:
            if args:
                raise TypeError(f"{descriptor.name} is a {descriptor.kind.value}, not callable")
            return self.get_value(descriptor, target)

        accessor = descriptor.accessor
        owner = target if isinstance(target, type) else type(target)
        if isinstance(accessor, staticmethod):
            return accessor.__func__(*args)
        if isinstance(accessor, classmethod):
            return accessor.__get__(None, owner)(*args)
        if inspect.isfunction(accessor):
            if isinstance(target, type):
                raise TypeError(f"{descriptor.name} needs an instance, got type {target.__name__}")
            return accessor.__get__(target, owner)(*args)
        return getattr(target, descriptor.name)(*args)

    def get_value(self, descriptor: MemberDescriptor, target: Any) -> Any:
        if descriptor.kind is MemberKind.PROPERTY and not isinstance(target, type):
            if not descriptor.readable:
                raise AttributeError(f"property {descriptor.name!r} is write-only")
            return descriptor.accessor.__get__(target, type(target))
        return getattr(target, descriptor.name)

    def set_value(self, descriptor: MemberDescriptor, target: Any, value: Any) -> None:
        if not descriptor.writable:
            raise AttributeError(f"{descriptor.name!r} is read-only")
        if descriptor.is_static and not isinstance(target, type):
            target = type(target)
        setattr(target, descriptor.name, value)

    def unbox(self, value: Any) -> Any:
        if isinstance(value, ctypes._SimpleCData):
            return value.value
        return value

    def iterate(self, value: Any) -> Optional[list]:
        if value is None or isinstance(value, _STRING_TYPES):
            return None
        try:
            iterator = iter(value)
        except TypeError:
            return None
        return list(iterator)

    # ── Internal helpers ──────────────────────────────────────────────────

    def _visible(self, name: str) -> bool:
        if name.startswith("__") and name.endswith("__"):
            return False
        if name.startswith("_") and not self._include_private:
            return False
        return True

    def _describe(
        self,
        declaring: str,
        name: str,
        attr: Any,
        annotations: dict,
    ) -> Optional[MemberDescriptor]:
        if isinstance(attr, property):
            return MemberDescriptor(
                name=name,
                kind=MemberKind.PROPERTY,
                declaring_type=declaring,
                value_type=_return_annotation(attr.fget),
                readable=attr.fget is not None,
                writable=attr.fset is not None,
                accessor=attr,
            )
        if isinstance(attr, functools.cached_property):
            return MemberDescriptor(
                name=name,
                kind=MemberKind.PROPERTY,
                declaring_type=declaring,
                value_type=_return_annotation(attr.func),
                writable=True,
                accessor=attr,
            )
        if isinstance(attr, (staticmethod, classmethod)):
            params, variadic = _parameters(attr.__func__, skip_first=isinstance(attr, classmethod))
            return MemberDescriptor(
                name=name,
                kind=MemberKind.METHOD,
                declaring_type=declaring,
                parameters=params,
                value_type=_return_annotation(attr.__func__),
                is_static=True,
                variadic=variadic,
                accessor=attr,
            )
        if inspect.isfunction(attr):
            params, variadic = _parameters(attr, skip_first=True)
            return MemberDescriptor(
                name=name,
                kind=MemberKind.METHOD,
                declaring_type=declaring,
                parameters=params,
                value_type=_return_annotation(attr),
                variadic=variadic,
                accessor=attr,
            )
        if isinstance(attr, types.MethodDescriptorType):
            # methods of C-implemented types, e.g. list.append
            params, variadic = _parameters(attr, skip_first=True)
            return MemberDescriptor(
                name=name,
                kind=MemberKind.METHOD,
                declaring_type=declaring,
                parameters=params,
                variadic=variadic,
                accessor=attr,
            )
        annotation = annotations.get(name)
        if attr is _MISSING or isinstance(attr, types.MemberDescriptorType) \
                or (name in annotations and not _is_classvar(annotation)):
            # declared instance field (annotation, slot or annotated default)
            return MemberDescriptor(
                name=name,
                kind=MemberKind.FIELD,
                declaring_type=declaring,
                value_type=annotation,
                writable=True,
                accessor=attr if attr is not _MISSING else None,
            )
        if isinstance(attr, (types.GetSetDescriptorType, types.WrapperDescriptorType)):
            return None
        return MemberDescriptor(
            name=name,
            kind=MemberKind.FIELD,
            declaring_type=declaring,
            value_type=type(attr),
            is_static=True,
            writable=True,
            accessor=attr,
        )


# ── Module helpers ────────────────────────────────────────────────────────────

_MISSING = object()


def _import_attr(module_name: str, attr_path: str) -> Any:
    """Resolve `module.attr.path`, shortening the module part until it imports."""
    parts = module_name.split(".") + attr_path.split(".")
    for split in range(len(parts) - 1, 0, -1):
        try:
            obj: Any = importlib.import_module(".".join(parts[:split]))
        except ImportError:
            continue
        for part in parts[split:]:
            obj = getattr(obj, part, None)
            if obj is None:
                break
        else:
            return obj
    return None


def _annotations(klass: type) -> dict:
    try:
        return inspect.get_annotations(klass, eval_str=True)
    except Exception:  # noqa: BLE001 — unresolved forward refs stay as strings
        return inspect.get_annotations(klass)


def _is_classvar(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return typing.get_origin(annotation) is typing.ClassVar


def _slot_names(klass: type) -> list[str]:
    slots = vars(klass).get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    return [s for s in slots if s not in ("__dict__", "__weakref__")]


def _hints(func: Callable) -> dict:
    try:
        return typing.get_type_hints(func)
    except Exception:  # noqa: BLE001
        return getattr(func, "__annotations__", {}) or {}


def _return_annotation(func: Optional[Callable]) -> Any:
    if func is None:
        return None
    return _hints(func).get("return")


def _parameters(func: Callable, skip_first: bool) -> tuple[tuple[ParameterInfo, ...], bool]:
    """Positional parameters of `func` (minus self/cls) and whether it takes *args."""
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return (), True

    hints = _hints(func)
    params: list[ParameterInfo] = []
    variadic = False
    positional = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    for index, param in enumerate(signature.parameters.values()):
        if index == 0 and skip_first and param.kind in positional:
            continue
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            variadic = True
            continue
        if param.kind not in positional:
            continue
        annotation = hints.get(param.name)
        if annotation is None and param.annotation is not inspect.Parameter.empty:
            annotation = param.annotation
        params.append(ParameterInfo(
            name=param.name,
            kind=ParamKind.of_type(annotation),
            host_type=annotation,
            has_default=param.default is not inspect.Parameter.empty,
        ))
    return tuple(params), variadic
