"""
WrapperFactory — builds domain wrappers around handles the bridge returns.

Two ways in:
  create(Building, handle)  the caller names the wrapper class
  wrap(handle)              the class is looked up by the handle's host type
                            name, with the native suffix stripped
                            ("BuildingNative" → "Building")

Wrapper classes are registered by host type name, either explicitly or with
the decorator form::

    @register_wrapper("Building")
    class Building(HandleWrapper): ...

Custom converters replace the default `wrapper_cls(handle, bridge=...)`
construction for one wrapper class.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

from .base import HandleWrapper

if TYPE_CHECKING:
    from modbridge.bridge.invoker import SafeInvoker

__all__ = ["WrapperFactory", "default_factory", "register_wrapper"]

logger = logging.getLogger(__name__)

#: converter(handle, bridge) → wrapper
Converter = Callable[[Any, Optional["SafeInvoker"]], HandleWrapper]


class WrapperFactory:
    """Registry of wrapper classes keyed by host type name."""

    def __init__(self) -> None:
        self._wrappers: dict[str, type[HandleWrapper]] = {}
        self._converters: dict[type, Converter] = {}
        self._lock = threading.Lock()

    # ── Registration ──────────────────────────────────────────────────────

    def register(
        self,
        type_name: Union[str, type, None] = None,
        wrapper_cls: Optional[type[HandleWrapper]] = None,
    ):
        """
        Register `wrapper_cls` for host type `type_name`.

        Usable as ``register("Building", Building)``, as ``@register("Building")``
        and as a bare ``@register`` (keyed by the class name).
        """
        if isinstance(type_name, type):
            return self._add(type_name.__name__, type_name)
        if wrapper_cls is not None:
            return self._add(type_name or wrapper_cls.__name__, wrapper_cls)

        def decorator(cls: type[HandleWrapper]) -> type[HandleWrapper]:
            return self._add(type_name or cls.__name__, cls)
        return decorator

    def register_converter(self, wrapper_cls: type, converter: Converter) -> None:
        with self._lock:
            self._converters[wrapper_cls] = converter
        logger.debug("WrapperFactory: custom converter for %s", wrapper_cls.__name__)

    def is_supported(self, wrapper_cls: type) -> bool:
        return wrapper_cls in self._converters or wrapper_cls in self._wrappers.values()

    def wrapper_for(self, type_name: str, native_suffix: str = "Native") -> Optional[type[HandleWrapper]]:
        """Wrapper class registered for a host type name, with or without `native_suffix`."""
        simple = type_name.replace(":", ".").rsplit(".", 1)[-1]
        candidates = (type_name, simple, _strip(type_name, native_suffix), _strip(simple, native_suffix))
        for name in candidates:
            if name in self._wrappers:
                return self._wrappers[name]
        return None

    @property
    def registered(self) -> dict[str, type[HandleWrapper]]:
        return dict(self._wrappers)

    # ── Construction ──────────────────────────────────────────────────────

    def create(
        self,
        wrapper_cls: type[HandleWrapper],
        handle: Any,
        bridge: Optional["SafeInvoker"] = None,
    ) -> Optional[HandleWrapper]:
        """
        Wrap `handle` in `wrapper_cls`. A failing converter or constructor is
        logged and yields None.
        """
        converter = self._converters.get(wrapper_cls)
        try:
            if converter is not None:
                return converter(handle, bridge)
            return wrapper_cls(handle, bridge=bridge)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "WrapperFactory: failed to build %s around %s: %s",
                wrapper_cls.__name__, type(handle).__name__, exc,
            )
            return None

    def wrap(self, handle: Any, bridge: Optional["SafeInvoker"] = None) -> Any:
        """
        Wrap `handle` in the class registered for its host type.
        None stays None; a handle with no registered wrapper is returned as-is.
        """
        if handle is None:
            return None
        if isinstance(handle, HandleWrapper):
            return handle
        if bridge is None:
            from modbridge.bridge.invoker import get_default_bridge
            bridge = get_default_bridge()

        type_name = bridge.type_name(handle)
        wrapper_cls = self.wrapper_for(type_name, bridge.config.native_suffix) if type_name else None
        if wrapper_cls is None:
            logger.warning("WrapperFactory: no wrapper registered for %s", type_name or type(handle).__name__)
            return handle
        return self.create(wrapper_cls, handle, bridge=bridge)

    # ── Internal helpers ──────────────────────────────────────────────────

    def _add(self, type_name: str, wrapper_cls: type[HandleWrapper]) -> type[HandleWrapper]:
        if not (isinstance(wrapper_cls, type) and issubclass(wrapper_cls, HandleWrapper)):
            raise TypeError(f"{wrapper_cls!r} is not a HandleWrapper subclass")
        with self._lock:
            self._wrappers[type_name] = wrapper_cls
        logger.debug("WrapperFactory: %s → %s", type_name, wrapper_cls.__name__)
        return wrapper_cls


def _strip(name: str, suffix: str) -> str:
    if suffix and name.endswith(suffix) and len(name) > len(suffix):
        return name[: -len(suffix)]
    return name


# ── Process-wide default ──────────────────────────────────────────────────────

_DEFAULT_FACTORY: Optional[WrapperFactory] = None
_DEFAULT_LOCK = threading.Lock()


def default_factory() -> WrapperFactory:
    """The factory bridges use when none is given; created on first use."""
    global _DEFAULT_FACTORY
    if _DEFAULT_FACTORY is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_FACTORY is None:
                _DEFAULT_FACTORY = WrapperFactory()
    return _DEFAULT_FACTORY


def register_wrapper(type_name: Union[str, type, None] = None, wrapper_cls: Optional[type] = None):
    """register() on the default factory; same call forms."""
    return default_factory().register(type_name, wrapper_cls)
