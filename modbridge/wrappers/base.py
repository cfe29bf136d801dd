"""
HandleWrapper — root of every domain wrapper.

A domain wrapper pairs one opaque handle with a SafeInvoker and adds only
typed accessors on top::

    class Building(HandleWrapper):
        @property
        def name(self) -> str:
            return self._get_first_field(["displayName", "localizedName", "title"], str)

        def upgrade(self, level: int) -> bool:
            return self._invoke("Upgrade", level, expected=bool)

Wrappers hold no state of their own: equality and hashing follow the host
identity of the handle.

Member lookup goes by the handle's type, never the instance. On the Python
host an attribute that is only assigned in ``__init__`` is therefore not a
member: ``_get_field("x")`` reports NOT_FOUND until the class declares it,
e.g. with an annotation ``x: int`` or a ``__slots__`` entry.
"""

from __future__ import annotations

from typing import Any, Hashable, Iterable, Optional

from modbridge.bridge.fallback import CandidateSpec
from modbridge.bridge.invoker import SafeInvoker, get_default_bridge
from modbridge.bridge.models import InvocationResult
from modbridge.host.shape import TypeShape

__all__ = ["HandleWrapper"]

_UNSET: Any = object()


class HandleWrapper:
    """
    Base class for wrappers over opaque host objects.

    Parameters
    ----------
    handle : the host object (may be None)
    bridge : SafeInvoker to route calls through; the process-wide default
             bridge when omitted
    """

    def __init__(self, handle: Any, bridge: Optional[SafeInvoker] = None) -> None:
        self._handle = handle
        self._bridge = bridge

    @property
    def bridge(self) -> SafeInvoker:
        return self._bridge if self._bridge is not None else get_default_bridge()

    # ── Validity & introspection ──────────────────────────────────────────

    def is_valid(self) -> bool:
        """True iff the handle is non-null and the host says it is still alive."""
        if self._handle is None:
            return False
        return self.bridge.is_valid(self._handle)

    def native_object(self) -> Any:
        return self._handle

    def native_type(self) -> Optional[Hashable]:
        """Runtime type token of the handle; None when invalid."""
        if not self.is_valid():
            return None
        return self.bridge.host.type_of(self._handle)

    def native_type_name(self) -> str:
        return self.bridge.type_name(self._handle)

    def describe(self) -> Optional[TypeShape]:
        """Member table of the wrapped object's runtime type."""
        return self.bridge.describe(self._handle)

    # ── Bridge helpers for subclasses ─────────────────────────────────────

    def _invoke(self, member: str, *args: Any, expected: Any = Any, default: Any = _UNSET) -> Any:
        return self.bridge.invoke(
            self._handle, member, *args, expected=expected, default=self._default(expected, default),
        )

    def _invoke_void(self, member: str, *args: Any) -> None:
        self.bridge.invoke_void(self._handle, member, *args)

    def _try_invoke(self, member: str, *args: Any, expected: Any = Any) -> InvocationResult:
        return self.bridge.try_invoke(self._handle, member, *args, expected=expected)

    def _get_field(self, name: str, expected: Any = Any, default: Any = _UNSET) -> Any:
        return self.bridge.get_field(
            self._handle, name, expected=expected, default=self._default(expected, default),
        )

    def _try_get_field(self, name: str, expected: Any = Any) -> InvocationResult:
        return self.bridge.try_get_field(self._handle, name, expected=expected)

    def _set_field(self, name: str, value: Any) -> bool:
        return self.bridge.set_field(self._handle, name, value)

    def _invoke_first(
        self,
        candidates: Iterable[CandidateSpec],
        *args: Any,
        expected: Any = Any,
        default: Any = _UNSET,
        accept_none: bool = True,
    ) -> Any:
        return self.bridge.invoke_first(
            self._handle, candidates, *args,
            expected=expected, default=self._default(expected, default), accept_none=accept_none,
        )

    def _get_first_field(
        self,
        candidates: Iterable[CandidateSpec],
        expected: Any = Any,
        default: Any = _UNSET,
        accept_none: bool = False,
    ) -> Any:
        return self.bridge.get_first_field(
            self._handle, candidates,
            expected=expected, default=self._default(expected, default), accept_none=accept_none,
        )

    def _default(self, expected: Any, default: Any) -> Any:
        return self.bridge.coercer.neutral_default(expected) if default is _UNSET else default

    # ── Identity ──────────────────────────────────────────────────────────

    def _identity(self) -> Optional[Hashable]:
        if self._handle is None:
            return None
        return self.bridge.host.identity(self._handle)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, HandleWrapper):
            return NotImplemented
        mine = self._identity()
        # a null-handle wrapper is equal only to itself
        return mine is not None and mine == other._identity()

    def __hash__(self) -> int:
        identity = self._identity()
        return id(self) if identity is None else hash(identity)

    def __repr__(self) -> str:
        if self._handle is None:
            return f"<{type(self).__name__} null>"
        state = "" if self.is_valid() else " invalid"
        return f"<{type(self).__name__} {self.native_type_name() or type(self._handle).__name__}{state}>"
