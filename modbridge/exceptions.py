"""
Project-wide custom exception hierarchy.
All modules raise subclasses of BridgeBaseError — never bare Exception.

The Safe Invocation Facade never lets these cross the bridge boundary on its
own; they surface only when a strict caller calls InvocationResult.unwrap().
"""

__all__ = [
    "BridgeBaseError",
    "ResolutionError",
    "MemberNotFoundError",
    "CoercionError",
    "HostFaultError",
    "InvalidHandleError",
    "UnsupportedHostError",
]


class BridgeBaseError(Exception):
    """Root exception for all modbridge errors."""


# ── Resolver ──────────────────────────────────────────────────────────────────

class ResolutionError(BridgeBaseError):
    """Raised when a member lookup cannot be completed."""


class MemberNotFoundError(ResolutionError):
    """Raised when no member with the requested name/shape exists on the type."""


# ── Coercion ──────────────────────────────────────────────────────────────────

class CoercionError(BridgeBaseError):
    """Raised when a value's runtime shape cannot be mapped to the requested type."""


# ── Host ──────────────────────────────────────────────────────────────────────

class HostFaultError(BridgeBaseError):
    """Raised when the host-side call itself failed."""


class InvalidHandleError(BridgeBaseError):
    """Raised when an operation targets a null or invalidated handle."""


class UnsupportedHostError(BridgeBaseError):
    """Raised when no host provider is registered under the requested name."""
