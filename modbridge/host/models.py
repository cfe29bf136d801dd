"""
Data models shared by host providers and the resolver.

Key concepts
────────────
MemberKind       — method | field | property
ParamKind        — coarse parameter/argument kind used for overload matching
ParameterInfo    — one declared parameter of a callable member
MemberDescriptor — resolved, reusable pointer to a member of a host type
SignatureShape   — arity + argument kinds of one call site
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence

__all__ = [
    "MemberKind",
    "ParamKind",
    "ParameterInfo",
    "MemberDescriptor",
    "SignatureShape",
    "ANY_KIND",
    "CALLABLE_KINDS",
    "VALUE_KINDS",
]


class MemberKind(str, Enum):
    METHOD   = "method"
    FIELD    = "field"
    PROPERTY = "property"


ANY_KIND:       frozenset[MemberKind] = frozenset(MemberKind)
CALLABLE_KINDS: frozenset[MemberKind] = frozenset({MemberKind.METHOD})
VALUE_KINDS:    frozenset[MemberKind] = frozenset({MemberKind.FIELD, MemberKind.PROPERTY})


class ParamKind(str, Enum):
    """
    Coarse kind of a parameter or argument.

    ANY matches every other kind; INT is accepted where FLOAT is expected
    (widening); everything else must match exactly.
    """
    ANY      = "any"
    BOOL     = "bool"
    INT      = "int"
    FLOAT    = "float"
    STR      = "str"
    SEQUENCE = "sequence"
    OBJECT   = "object"

    def accepts(self, other: "ParamKind") -> bool:
        if self is ParamKind.ANY or other is ParamKind.ANY:
            return True
        if self is other:
            return True
        return self is ParamKind.FLOAT and other is ParamKind.INT

    @classmethod
    def of_value(cls, value: Any) -> "ParamKind":
        """Classify a caller-side argument value."""
        # bool before int: bool is an int subclass
        if value is None:
            return cls.ANY
        if isinstance(value, bool):
            return cls.BOOL
        if isinstance(value, int):
            return cls.INT
        if isinstance(value, float):
            return cls.FLOAT
        if isinstance(value, str):
            return cls.STR
        if isinstance(value, (list, tuple, set, frozenset)):
            return cls.SEQUENCE
        return cls.OBJECT

    @classmethod
    def of_type(cls, host_type: Any) -> "ParamKind":
        """Classify a declared host type (annotation or type-name string)."""
        if host_type is None or host_type is Any:
            return cls.ANY
        if isinstance(host_type, str):
            return _KIND_BY_TYPE_NAME.get(host_type.lower(), cls.OBJECT)
        if host_type is bool:
            return cls.BOOL
        if host_type is int:
            return cls.INT
        if host_type is float:
            return cls.FLOAT
        if host_type is str:
            return cls.STR
        origin = getattr(host_type, "__origin__", None)
        if host_type in (list, tuple, set, frozenset) or origin in (list, tuple, set, frozenset):
            return cls.SEQUENCE
        return cls.OBJECT if isinstance(host_type, type) else cls.ANY


# Type names as they appear in generated binding tables / dumps
_KIND_BY_TYPE_NAME = {
    "bool":    ParamKind.BOOL,
    "boolean": ParamKind.BOOL,
    "int":     ParamKind.INT,
    "int16":   ParamKind.INT,
    "int32":   ParamKind.INT,
    "int64":   ParamKind.INT,
    "uint32":  ParamKind.INT,
    "byte":    ParamKind.INT,
    "long":    ParamKind.INT,
    "float":   ParamKind.FLOAT,
    "single":  ParamKind.FLOAT,
    "double":  ParamKind.FLOAT,
    "str":     ParamKind.STR,
    "string":  ParamKind.STR,
    "list":    ParamKind.SEQUENCE,
    "array":   ParamKind.SEQUENCE,
    "any":     ParamKind.ANY,
    "object":  ParamKind.ANY,
}


@dataclass(frozen=True)
class ParameterInfo:
    name:        str
    kind:        ParamKind = ParamKind.ANY
    host_type:   Any       = None
    has_default: bool      = False


@dataclass(frozen=True)
class MemberDescriptor:
    """
    Resolved pointer to one member of a host type.

    `accessor` is whatever the host provider needs to perform the access
    (a function object, a property, a table entry …); it is opaque to the
    rest of the bridge and excluded from equality.
    """
    name:           str
    kind:           MemberKind
    declaring_type: str
    parameters:     tuple[ParameterInfo, ...] = ()
    value_type:     Any  = None
    is_static:      bool = False
    readable:       bool = True
    writable:       bool = False
    variadic:       bool = False
    accessor:       Any  = field(default=None, compare=False, repr=False)

    @property
    def max_arity(self) -> Optional[int]:
        """Maximum accepted positional arguments; None when variadic."""
        if self.variadic:
            return None
        return len(self.parameters)

    @property
    def min_arity(self) -> int:
        return sum(1 for p in self.parameters if not p.has_default)

    def accepts_arity(self, arity: int) -> bool:
        if self.kind is not MemberKind.METHOD:
            return arity == 0
        upper = self.max_arity
        return arity >= self.min_arity and (upper is None or arity <= upper)

    def __str__(self) -> str:
        static_tag = "static " if self.is_static else ""
        if self.kind is MemberKind.METHOD:
            params = ", ".join(p.name for p in self.parameters)
            if self.variadic:
                params = f"{params}, *" if params else "*"
            return f"{static_tag}{self.declaring_type}.{self.name}({params})"
        return f"{static_tag}{self.declaring_type}.{self.name} [{self.kind.value}]"


@dataclass(frozen=True)
class SignatureShape:
    """
    Call-site signature used to pick between overloads.

    `arity=None` means "any arity" (field/property access, or a lookup that
    does not care about parameters).
    """
    arity:       Optional[int]        = None
    param_kinds: tuple[ParamKind, ...] = ()

    @classmethod
    def from_args(cls, args: Sequence[Any]) -> "SignatureShape":
        return cls(arity=len(args), param_kinds=tuple(ParamKind.of_value(a) for a in args))

    def matches(self, descriptor: MemberDescriptor) -> bool:
        """Arity check only; parameter kinds rank overloads, see score()."""
        if self.arity is None:
            return True
        return descriptor.accepts_arity(self.arity)

    def score(self, descriptor: MemberDescriptor) -> tuple[int, int]:
        """
        Preference of `descriptor` for this call site, higher is better:
        (number of parameters whose kind accepts the argument, exact arity).
        """
        kind_hits = sum(
            1 for declared, given in zip(descriptor.parameters, self.param_kinds)
            if declared.kind.accepts(given)
        )
        exact = int(
            self.arity is not None
            and not descriptor.variadic
            and len(descriptor.parameters) == self.arity
        )
        return kind_hits, exact
