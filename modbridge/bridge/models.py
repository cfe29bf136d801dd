"""
Data models for the bridge module.

OutcomeKind      — tag of an InvocationResult
InvocationResult — value of one bridge call plus how it ended
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from modbridge.exceptions import (
    BridgeBaseError,
    CoercionError,
    HostFaultError,
    InvalidHandleError,
    MemberNotFoundError,
)

__all__ = ["OutcomeKind", "InvocationResult"]


class OutcomeKind(str, Enum):
    SUCCESS          = "success"
    NOT_FOUND        = "not_found"          # member absent on this type
    COERCION_FAILURE = "coercion_failure"   # value shape mismatch, either direction
    HOST_FAULT       = "host_fault"         # member exists, the host call raised
    INVALID_HANDLE   = "invalid_handle"     # null or invalidated handle

    @property
    def is_failure(self) -> bool:
        return self is not OutcomeKind.SUCCESS


_ERRORS: dict[OutcomeKind, type[BridgeBaseError]] = {
    OutcomeKind.NOT_FOUND:        MemberNotFoundError,
    OutcomeKind.COERCION_FAILURE: CoercionError,
    OutcomeKind.HOST_FAULT:       HostFaultError,
    OutcomeKind.INVALID_HANDLE:   InvalidHandleError,
}


@dataclass(frozen=True)
class InvocationResult:
    """
    Tagged outcome of one bridge call. Never raised, always returned.

    `value` is meaningful only for SUCCESS, where None means the host
    returned null (present but absent), which the simple facade calls
    collapse into the neutral default.
    """
    kind:      OutcomeKind
    value:     Any = None
    member:    str = ""
    type_name: str = ""
    detail:    str = ""
    error:     Optional[BaseException] = field(default=None, compare=False, repr=False)

    # ── Constructors ──────────────────────────────────────────────────────

    @classmethod
    def success(cls, value: Any, member: str = "", type_name: str = "") -> "InvocationResult":
        return cls(OutcomeKind.SUCCESS, value=value, member=member, type_name=type_name)

    @classmethod
    def failure(
        cls,
        kind: OutcomeKind,
        member: str = "",
        type_name: str = "",
        detail: str = "",
        error: Optional[BaseException] = None,
    ) -> "InvocationResult":
        return cls(kind, member=member, type_name=type_name, detail=detail, error=error)

    # ── Accessors ─────────────────────────────────────────────────────────

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def has_value(self) -> bool:
        """True when the call succeeded and produced a non-null value."""
        return self.ok and self.value is not None

    def __bool__(self) -> bool:
        return self.ok

    def value_or(self, default: Any) -> Any:
        """The value on success with a non-null result, otherwise `default`."""
        return self.value if self.has_value else default

    def unwrap(self) -> Any:
        """The value on success; otherwise raise the kind-specific BridgeBaseError."""
        if self.ok:
            return self.value
        error_cls = _ERRORS[self.kind]
        raise error_cls(self.describe()) from self.error

    def describe(self) -> str:
        where = f"{self.type_name}.{self.member}" if self.type_name else self.member
        text = f"{self.kind.value}: {where}" if where else self.kind.value
        return f"{text} ({self.detail})" if self.detail else text
