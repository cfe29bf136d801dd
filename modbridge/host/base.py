"""Abstract host provider interfaces the bridge is written against."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Hashable, Iterable, Optional, Sequence

from .models import MemberDescriptor

__all__ = ["AbstractIntrospectionProvider", "AbstractInvocationProvider", "HostProvider"]


class AbstractIntrospectionProvider(ABC):
    """
    Answers questions about host types without touching object state.

    A "type token" is whatever the host uses to identify a runtime type
    (a Python class, a table entry, an IL2CPP class pointer …). It must be
    hashable because the resolver keys its cache on it.
    """

    @abstractmethod
    def type_of(self, handle: Any) -> Hashable:
        """Runtime type token of `handle` (its actual type, not a declared one)."""

    @abstractmethod
    def type_name(self, type_token: Hashable) -> str:
        """Human-readable, qualified name of a type token."""

    @abstractmethod
    def members(self, type_token: Hashable) -> Iterable[MemberDescriptor]:
        """
        Declared and inherited members of the type, most-derived first.

        A member redefined in a subclass must appear before the base
        definition so that the resolver picks the override.
        """

    @abstractmethod
    def find_type(self, name: str) -> Optional[Hashable]:
        """Look up a type token by simple or qualified name; None if unknown."""

    def is_alive(self, handle: Any) -> bool:
        """
        True iff `handle` is non-null and the host has not invalidated it.
        Hosts whose objects can be destroyed underneath a proxy override this.
        """
        return handle is not None

    def identity(self, handle: Any) -> Hashable:
        """Identity key of the host object behind `handle`."""
        return id(handle)

    def base_names(self, type_token: Hashable) -> tuple[str, ...]:
        """Names of the direct base types, for dumps; empty if unknown."""
        return ()


class AbstractInvocationProvider(ABC):
    """Performs member access on a host object using a resolved descriptor."""

    @abstractmethod
    def call(self, descriptor: MemberDescriptor, target: Any, args: Sequence[Any]) -> Any:
        """Invoke a method. `target` is the type token for static members."""

    @abstractmethod
    def get_value(self, descriptor: MemberDescriptor, target: Any) -> Any:
        """Read a field or property."""

    @abstractmethod
    def set_value(self, descriptor: MemberDescriptor, target: Any, value: Any) -> None:
        """Write a field or property."""

    def unbox(self, value: Any) -> Any:
        """Unwrap a boxed host scalar; identity by default."""
        return value

    def iterate(self, value: Any) -> Optional[list]:
        """
        Materialise a host collection into a list, in source order.
        Returns None when `value` is not a collection.
        """
        return None


class HostProvider(AbstractIntrospectionProvider, AbstractInvocationProvider):
    """Convenience base for hosts that implement both capabilities."""

    #: short name used by host.factory.get_host()
    name: str = ""
