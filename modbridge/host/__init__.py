"""
host — capability interfaces the bridge is written against, plus two
reference providers.

Public API
──────────
AbstractIntrospectionProvider — type tokens, member tables, validity, identity
AbstractInvocationProvider    — call / get / set, unboxing, collection materialisation
HostProvider                  — both capabilities in one object
PythonHost                    — provider backed by Python reflection
TableHost                     — provider backed by a generated binding table
MemberDescriptor, SignatureShape, MemberKind, ParamKind, ParameterInfo
TypeShape, describe_type      — serialisable member-table dumps
get_host                      — factory by short name
"""

from .base import AbstractIntrospectionProvider, AbstractInvocationProvider, HostProvider
from .factory import get_host, register_host
from .models import (
    ANY_KIND,
    CALLABLE_KINDS,
    VALUE_KINDS,
    MemberDescriptor,
    MemberKind,
    ParameterInfo,
    ParamKind,
    SignatureShape,
)
from .python_host import PythonHost
from .shape import MemberShape, TypeShape, describe_type
from .table_host import BoxedValue, HostList, Record, RecordType, TableHost

__all__ = [
    "AbstractIntrospectionProvider",
    "AbstractInvocationProvider",
    "HostProvider",
    "get_host",
    "register_host",
    "ANY_KIND",
    "CALLABLE_KINDS",
    "VALUE_KINDS",
    "MemberDescriptor",
    "MemberKind",
    "ParameterInfo",
    "ParamKind",
    "SignatureShape",
    "PythonHost",
    "MemberShape",
    "TypeShape",
    "describe_type",
    "BoxedValue",
    "HostList",
    "Record",
    "RecordType",
    "TableHost",
]
