"""
bridge — the Safe Invocation Facade and its fallback-chain strategy.

Public API
──────────
SafeInvoker       — invoke / invoke_void / get_field / set_field, try_* variants,
                    static access, singleton lookup, fallback chains
get_default_bridge, configure_default_bridge
                  — process-wide bridge used by wrappers built without one
InvocationResult  — tagged outcome (OutcomeKind) of one call
FallbackChain, Candidate, invoke_first, get_first_field
DiagnosticRecord, DiagnosticsSink, LoggingSink, MemorySink
"""

from .diagnostics import DiagnosticRecord, DiagnosticsSink, LoggingSink, MemorySink
from .fallback import (
    Candidate,
    FallbackChain,
    get_first_field,
    invoke_first,
    try_get_first_field,
    try_invoke_first,
)
from .invoker import SafeInvoker, configure_default_bridge, get_default_bridge
from .models import InvocationResult, OutcomeKind

__all__ = [
    "SafeInvoker",
    "get_default_bridge",
    "configure_default_bridge",
    "InvocationResult",
    "OutcomeKind",
    "Candidate",
    "FallbackChain",
    "invoke_first",
    "get_first_field",
    "try_invoke_first",
    "try_get_first_field",
    "DiagnosticRecord",
    "DiagnosticsSink",
    "LoggingSink",
    "MemorySink",
]
