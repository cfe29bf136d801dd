"""Factory function — returns a host provider by short name."""

from __future__ import annotations

from typing import Any, Callable

from modbridge.exceptions import UnsupportedHostError

from .base import HostProvider
from .python_host import PythonHost
from .table_host import TableHost

__all__ = ["get_host", "register_host"]

_HOST_MAP: dict[str, Callable[..., HostProvider]] = {
    "python": PythonHost,
    "table":  TableHost,
}


def register_host(name: str, factory: Callable[..., HostProvider]) -> None:
    """Make a custom host provider available to get_host()."""
    _HOST_MAP[name.lower()] = factory


def get_host(kind: str = "python", **options: Any) -> HostProvider:
    """
    Build the host provider registered under `kind`.

    Parameters
    ----------
    kind    : "python" | "table" | any name passed to register_host()
    options : forwarded to the provider constructor

    Raises
    ------
    UnsupportedHostError if no provider is registered under `kind`.
    """
    try:
        factory = _HOST_MAP[kind.lower()]
    except KeyError:
        raise UnsupportedHostError(
            f"No host provider registered as {kind!r}; known: {sorted(_HOST_MAP)}"
        ) from None
    return factory(**options)
