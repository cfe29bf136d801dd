"""
wrappers — base class for domain wrappers and the factory that builds them.

Public API
──────────
HandleWrapper    — one opaque handle + the Safe Invocation Facade
WrapperFactory   — host type name → wrapper class registry
default_factory  — process-wide factory used by bridges built without one
register_wrapper — decorator registering on the default factory
"""

from .base import HandleWrapper
from .factory import WrapperFactory, default_factory, register_wrapper

__all__ = ["HandleWrapper", "WrapperFactory", "default_factory", "register_wrapper"]
