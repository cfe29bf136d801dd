"""
Type coercion between host value representations and caller-expected types.

Public API
──────────
TypeCoercer    — to_caller_type / to_host_value / neutral_default
WrapperBuilder — callback signature used to wrap nested handles
"""

from .coercer import TypeCoercer, WrapperBuilder

__all__ = ["TypeCoercer", "WrapperBuilder"]
