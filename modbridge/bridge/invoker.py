"""
SafeInvoker — the Safe Invocation Facade.

Every call follows one pipeline:

  1. validity      host.is_alive(handle)            → INVALID_HANDLE
  2. resolution    MemberResolver.resolve(...)       → NOT_FOUND
  3. arguments     TypeCoercer.to_host_value(...)    → COERCION_FAILURE
  4. host call     host.call / get_value / set_value → HOST_FAULT
  5. result        TypeCoercer.to_caller_type(...)   → COERCION_FAILURE

The try_* methods return the InvocationResult; the plain methods return the
value or a neutral default. Either way a failed call emits exactly one
DiagnosticRecord and nothing is raised to the caller.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from modbridge.coercion import TypeCoercer
from modbridge.config import BridgeConfig
from modbridge.exceptions import CoercionError
from modbridge.host.base import HostProvider
from modbridge.host.models import (
    ANY_KIND,
    VALUE_KINDS,
    MemberDescriptor,
    MemberKind,
    ParameterInfo,
    ParamKind,
    SignatureShape,
)
from modbridge.host.shape import TypeShape, describe_type
from modbridge.resolver import NOT_FOUND, MemberResolver, ResolutionCache

from . import fallback
from .diagnostics import DiagnosticRecord, DiagnosticsSink, LoggingSink
from .fallback import CandidateSpec, FallbackChain
from .models import InvocationResult, OutcomeKind

if TYPE_CHECKING:
    from modbridge.wrappers.factory import WrapperFactory

__all__ = ["SafeInvoker", "get_default_bridge", "configure_default_bridge"]

logger = logging.getLogger(__name__)

_UNSET: Any = object()

_SEVERITY = {
    OutcomeKind.COERCION_FAILURE: "error",
    OutcomeKind.HOST_FAULT:       "error",
    OutcomeKind.INVALID_HANDLE:   "warning",
}


class SafeInvoker:
    """
    Resolve + coerce + isolate failures for member access on opaque handles.

    Parameters
    ----------
    host     : HostProvider doing introspection and the actual calls
    resolver : MemberResolver over `host`; built from `cache` if omitted
    sink     : where failure records go (LoggingSink by default)
    config   : BridgeConfig
    factory  : WrapperFactory for nested wrapper results
    cache    : ResolutionCache for a resolver built here
    """

    def __init__(
        self,
        host: HostProvider,
        resolver: Optional[MemberResolver] = None,
        sink: Optional[DiagnosticsSink] = None,
        config: Optional[BridgeConfig] = None,
        factory: Optional["WrapperFactory"] = None,
        cache: Optional[ResolutionCache] = None,
    ) -> None:
        self._host = host
        self._config = config or BridgeConfig()
        self._resolver = resolver or MemberResolver(host, cache=cache, config=self._config)
        self._sink = sink or LoggingSink()
        self._factory = factory
        self._coercer = TypeCoercer(host, wrapper_builder=self._build_wrapper)

    # ── Collaborators ─────────────────────────────────────────────────────

    @property
    def host(self) -> HostProvider:
        return self._host

    @property
    def resolver(self) -> MemberResolver:
        return self._resolver

    @property
    def coercer(self) -> TypeCoercer:
        return self._coercer

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def sink(self) -> DiagnosticsSink:
        return self._sink

    @property
    def factory(self) -> "WrapperFactory":
        if self._factory is None:
            from modbridge.wrappers.factory import default_factory
            self._factory = default_factory()
        return self._factory

    def wrap(self, handle: Any) -> Any:
        """Wrap `handle` in the wrapper registered for its host type, if any."""
        return self.factory.wrap(handle, bridge=self)

    # ── Method invocation ─────────────────────────────────────────────────

    def try_invoke(
        self,
        handle: Any,
        member: str,
        *args: Any,
        expected: Any = Any,
        report: bool = True,
    ) -> InvocationResult:
        """
        Call `member` on `handle`. With no arguments a field or property of
        that name is read; a `set_X` alias with one argument writes X.
        """
        result = self._access(handle, member, args, expected, ANY_KIND, static=False)
        return self._finish(result, "invoke", report)

    def invoke(
        self,
        handle: Any,
        member: str,
        *args: Any,
        expected: Any = Any,
        default: Any = _UNSET,
    ) -> Any:
        result = self.try_invoke(handle, member, *args, expected=expected)
        return result.value_or(self._default(expected, default))

    def invoke_void(self, handle: Any, member: str, *args: Any) -> None:
        self.try_invoke(handle, member, *args)

    # ── Field access ──────────────────────────────────────────────────────

    def try_get_field(
        self,
        handle: Any,
        name: str,
        expected: Any = Any,
        report: bool = True,
    ) -> InvocationResult:
        result = self._access(handle, name, (), expected, VALUE_KINDS, static=False)
        return self._finish(result, "get_field", report)

    def get_field(self, handle: Any, name: str, expected: Any = Any, default: Any = _UNSET) -> Any:
        result = self.try_get_field(handle, name, expected=expected)
        return result.value_or(self._default(expected, default))

    def try_set_field(self, handle: Any, name: str, value: Any, report: bool = True) -> InvocationResult:
        result = self._write(handle, name, value)
        return self._finish(result, "set_field", report)

    def set_field(self, handle: Any, name: str, value: Any) -> bool:
        """Write a field or property; True on success."""
        return self.try_set_field(handle, name, value).ok

    # ── Static access ─────────────────────────────────────────────────────

    def try_invoke_static(
        self,
        type_ref: Any,
        member: str,
        *args: Any,
        expected: Any = Any,
        report: bool = True,
    ) -> InvocationResult:
        """`type_ref` is a type token or a type name known to the host."""
        result = self._access(type_ref, member, args, expected, ANY_KIND, static=True)
        return self._finish(result, "invoke_static", report)

    def invoke_static(
        self,
        type_ref: Any,
        member: str,
        *args: Any,
        expected: Any = Any,
        default: Any = _UNSET,
    ) -> Any:
        result = self.try_invoke_static(type_ref, member, *args, expected=expected)
        return result.value_or(self._default(expected, default))

    def try_get_static_field(
        self,
        type_ref: Any,
        name: str,
        expected: Any = Any,
        report: bool = True,
    ) -> InvocationResult:
        result = self._access(type_ref, name, (), expected, VALUE_KINDS, static=True)
        return self._finish(result, "get_static_field", report)

    def get_static_field(self, type_ref: Any, name: str, expected: Any = Any, default: Any = _UNSET) -> Any:
        result = self.try_get_static_field(type_ref, name, expected=expected)
        return result.value_or(self._default(expected, default))

    def singleton(self, type_ref: Any, expected: Any = Any) -> Any:
        """
        The type's singleton instance, probing the static members named in
        BridgeConfig.singleton_names ("Instance", "instance", "Get").
        None if none of them yields an object.
        """
        chain = FallbackChain(self._config.singleton_names)
        result = chain.run(
            lambda c: self.try_invoke_static(type_ref, c.name, expected=expected, report=False)
        )
        return self._finish(result, "singleton", True).value

    # ── Fallback chains ───────────────────────────────────────────────────

    def try_invoke_first(
        self,
        handle: Any,
        candidates: Iterable[CandidateSpec],
        *args: Any,
        expected: Any = Any,
        accept_none: bool = True,
    ) -> InvocationResult:
        return fallback.try_invoke_first(
            self, handle, candidates, *args, expected=expected, accept_none=accept_none,
        )

    def invoke_first(
        self,
        handle: Any,
        candidates: Iterable[CandidateSpec],
        *args: Any,
        expected: Any = Any,
        default: Any = _UNSET,
        accept_none: bool = True,
    ) -> Any:
        return fallback.invoke_first(
            self, handle, candidates, *args,
            expected=expected, default=self._default(expected, default), accept_none=accept_none,
        )

    def try_get_first_field(
        self,
        handle: Any,
        candidates: Iterable[CandidateSpec],
        expected: Any = Any,
        accept_none: bool = False,
    ) -> InvocationResult:
        return fallback.try_get_first_field(
            self, handle, candidates, expected=expected, accept_none=accept_none,
        )

    def get_first_field(
        self,
        handle: Any,
        candidates: Iterable[CandidateSpec],
        expected: Any = Any,
        default: Any = _UNSET,
        accept_none: bool = False,
    ) -> Any:
        return fallback.get_first_field(
            self, handle, candidates,
            expected=expected, default=self._default(expected, default), accept_none=accept_none,
        )

    # ── Introspection helpers ─────────────────────────────────────────────

    def is_valid(self, handle: Any) -> bool:
        try:
            return bool(self._host.is_alive(handle))
        except Exception as exc:  # noqa: BLE001 — a host that cannot tell is not alive
            logger.debug("SafeInvoker: is_alive raised %s", exc)
            return False

    def type_name(self, handle: Any) -> str:
        """Host type name of `handle`; "" for invalid handles."""
        if not self.is_valid(handle):
            return ""
        return self._host.type_name(self._host.type_of(handle))

    def describe(self, handle: Any) -> Optional[TypeShape]:
        """Member table of the handle's runtime type, or None for invalid handles."""
        if not self.is_valid(handle):
            return None
        return describe_type(self._host, self._host.type_of(handle))

    # ── Diagnostics ───────────────────────────────────────────────────────

    def report(self, result: InvocationResult, operation: str) -> None:
        """Emit the single diagnostic record for a failed call."""
        if result.kind is OutcomeKind.NOT_FOUND:
            severity = self._config.not_found_severity
        else:
            severity = _SEVERITY.get(result.kind, "warning")
        record = DiagnosticRecord(
            severity=severity,
            component=self._config.diagnostics_component,
            message=f"{operation} failed: {result.describe()}",
            member=result.member,
            type_name=result.type_name,
            kind=result.kind,
        )
        try:
            self._sink.emit(record)
        except Exception:  # noqa: BLE001 — a broken sink must not break the caller
            logger.exception("SafeInvoker: diagnostics sink %r failed", self._sink)

    # ── Internal pipeline ─────────────────────────────────────────────────

    def _finish(self, result: InvocationResult, operation: str, report: bool) -> InvocationResult:
        if report and not result.ok:
            self.report(result, operation)
        return result

    def _default(self, expected: Any, default: Any) -> Any:
        return self._coercer.neutral_default(expected) if default is _UNSET else default

    def _target(self, ref: Any, member: str, static: bool):
        """(type_token, target, type_name) or an INVALID_HANDLE result."""
        if static:
            token = self._resolver.resolve_type(ref) if isinstance(ref, str) else ref
            if token is None:
                return InvocationResult.failure(
                    OutcomeKind.INVALID_HANDLE, member=member,
                    type_name=ref if isinstance(ref, str) else "",
                    detail="unknown type",
                )
            return token, token, self._host.type_name(token)

        if not self.is_valid(ref):
            detail = "null handle" if ref is None else "handle was invalidated"
            return InvocationResult.failure(OutcomeKind.INVALID_HANDLE, member=member, detail=detail)
        try:
            token = self._host.type_of(ref)
            return token, ref, self._host.type_name(token)
        except Exception as exc:  # noqa: BLE001
            return InvocationResult.failure(
                OutcomeKind.INVALID_HANDLE, member=member, detail=_fault(exc), error=exc,
            )

    def _access(
        self,
        ref: Any,
        member: str,
        args: Sequence[Any],
        expected: Any,
        kinds: Iterable[MemberKind],
        static: bool,
    ) -> InvocationResult:
        located = self._target(ref, member, static)
        if isinstance(located, InvocationResult):
            return located
        token, target, type_name = located

        shape = SignatureShape.from_args(args) if kinds is ANY_KIND else None
        descriptor = self._resolver.resolve(token, member, shape, kinds)
        if descriptor is NOT_FOUND:
            return InvocationResult.failure(OutcomeKind.NOT_FOUND, member=member, type_name=type_name)
        if static and not descriptor.is_static:
            return InvocationResult.failure(
                OutcomeKind.NOT_FOUND, member=member, type_name=type_name, detail="not static",
            )

        try:
            host_args = self._host_args(descriptor, args)
        except CoercionError as exc:
            return InvocationResult.failure(
                OutcomeKind.COERCION_FAILURE, member=member, type_name=type_name,
                detail=f"argument: {exc}", error=exc,
            )

        try:
            raw = self._call(descriptor, target, host_args)
        except Exception as exc:  # noqa: BLE001 — host faults stop at the facade
            return InvocationResult.failure(
                OutcomeKind.HOST_FAULT, member=member, type_name=type_name,
                detail=_fault(exc), error=exc,
            )

        try:
            value = self._coercer.to_caller_type(raw, expected)
        except CoercionError as exc:
            return InvocationResult.failure(
                OutcomeKind.COERCION_FAILURE, member=member, type_name=type_name,
                detail=str(exc), error=exc,
            )
        return InvocationResult.success(value, member=member, type_name=type_name)

    def _write(self, handle: Any, name: str, value: Any) -> InvocationResult:
        located = self._target(handle, name, static=False)
        if isinstance(located, InvocationResult):
            return located
        token, target, type_name = located

        descriptor = self._resolver.resolve(token, name, None, VALUE_KINDS)
        if descriptor is NOT_FOUND:
            return InvocationResult.failure(OutcomeKind.NOT_FOUND, member=name, type_name=type_name)
        if not descriptor.writable:
            return InvocationResult.failure(
                OutcomeKind.NOT_FOUND, member=name, type_name=type_name, detail="read-only",
            )
        try:
            host_value = self._coercer.to_host_value(value, _value_parameter(descriptor))
        except CoercionError as exc:
            return InvocationResult.failure(
                OutcomeKind.COERCION_FAILURE, member=name, type_name=type_name,
                detail=f"value: {exc}", error=exc,
            )
        try:
            self._host.set_value(descriptor, target, host_value)
        except Exception as exc:  # noqa: BLE001
            return InvocationResult.failure(
                OutcomeKind.HOST_FAULT, member=name, type_name=type_name,
                detail=_fault(exc), error=exc,
            )
        return InvocationResult.success(None, member=name, type_name=type_name)

    def _host_args(self, descriptor: MemberDescriptor, args: Sequence[Any]) -> list:
        if descriptor.kind is not MemberKind.METHOD:
            parameter = _value_parameter(descriptor)
            return [self._coercer.to_host_value(a, parameter) for a in args]
        params: list[Optional[ParameterInfo]] = list(descriptor.parameters)
        params += [None] * (len(args) - len(params))
        return [self._coercer.to_host_value(a, p) for a, p in zip(args, params)]

    def _call(self, descriptor: MemberDescriptor, target: Any, args: Sequence[Any]) -> Any:
        if descriptor.kind is MemberKind.METHOD:
            return self._host.call(descriptor, target, args)
        if not args:
            return self._host.get_value(descriptor, target)
        # `set_X(value)` resolved onto field/property X
        self._host.set_value(descriptor, target, args[0])
        return None

    def _build_wrapper(self, wrapper_cls: type, handle: Any) -> Any:
        return self.factory.create(wrapper_cls, handle, bridge=self)


# ── Module helpers ────────────────────────────────────────────────────────────

def _fault(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def _value_parameter(descriptor: MemberDescriptor) -> ParameterInfo:
    return ParameterInfo(
        name=descriptor.name,
        kind=ParamKind.of_type(descriptor.value_type),
        host_type=descriptor.value_type,
    )


# ── Process-wide default ──────────────────────────────────────────────────────

_DEFAULT_BRIDGE: Optional[SafeInvoker] = None
_DEFAULT_LOCK = threading.Lock()


def get_default_bridge() -> SafeInvoker:
    """
    The bridge used by wrappers constructed without one: a PythonHost over
    the process-wide resolution cache, configured from MODBRIDGE_* variables.
    Created on first use.
    """
    global _DEFAULT_BRIDGE
    if _DEFAULT_BRIDGE is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_BRIDGE is None:
                from modbridge.host.python_host import PythonHost
                from modbridge.resolver import default_cache

                config = BridgeConfig.from_env()
                _DEFAULT_BRIDGE = SafeInvoker(
                    PythonHost(include_private=config.include_private),
                    config=config,
                    cache=default_cache(),
                )
                logger.debug("SafeInvoker: default bridge created")
    return _DEFAULT_BRIDGE


def configure_default_bridge(bridge: Optional[SafeInvoker]) -> Optional[SafeInvoker]:
    """Install `bridge` as the default (None resets it); returns the previous one."""
    global _DEFAULT_BRIDGE
    with _DEFAULT_LOCK:
        previous, _DEFAULT_BRIDGE = _DEFAULT_BRIDGE, bridge
    return previous
