"""
Fallback chains — one logical read or call spelled several ways.

Host schemas rename members between versions ("displayName" became
"localizedName", later "title"). Instead of nesting `a or b or c` at every
call site, callers pass the spellings in priority order::

    name = invoke_first(bridge, handle, ["displayName", "localizedName", "title"],
                        expected=str)

Candidates are tried in order through the facade with per-candidate
diagnostics suppressed; the first that resolves and yields a value wins and
the rest are never attempted. Call chains accept a void (None) result as a
hit; field chains skip nulls like `a ?? b ?? c` unless asked not to. When
every candidate fails the caller gets the neutral default and the sink
receives one summary record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence, Union

from .models import InvocationResult, OutcomeKind

if TYPE_CHECKING:
    from .invoker import SafeInvoker

__all__ = [
    "Candidate",
    "CandidateSpec",
    "FallbackChain",
    "try_invoke_first",
    "invoke_first",
    "try_get_first_field",
    "get_first_field",
]

_UNSET: Any = object()


@dataclass(frozen=True)
class Candidate:
    """
    One spelling of a member. `args=None` means "use the arguments given to
    the whole chain"; a tuple overrides them for this candidate only.
    """
    name: str
    args: Optional[tuple] = None

    @classmethod
    def of(cls, spec: "CandidateSpec") -> "Candidate":
        if isinstance(spec, Candidate):
            return spec
        if isinstance(spec, str):
            return cls(spec)
        name, args = spec
        return cls(name, tuple(args))

    def args_or(self, shared: Sequence[Any]) -> tuple:
        return tuple(shared) if self.args is None else self.args


CandidateSpec = Union[str, Candidate, "tuple[str, Sequence[Any]]"]


class FallbackChain:
    """Ordered candidates plus the loop that tries them."""

    def __init__(self, candidates: Iterable[CandidateSpec]) -> None:
        if isinstance(candidates, (str, Candidate)):
            candidates = [candidates]
        self.candidates: tuple[Candidate, ...] = tuple(Candidate.of(c) for c in candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self):
        return iter(self.candidates)

    @property
    def label(self) -> str:
        return "|".join(c.name for c in self.candidates)

    def run(
        self,
        attempt: Callable[[Candidate], InvocationResult],
        accept_none: bool = False,
    ) -> InvocationResult:
        """
        Try candidates in order and return the first acceptable result, or a
        summary failure naming every candidate and how it failed.

        With `accept_none=False` a null success moves on to the next
        candidate; if nothing better turns up, the first null success is
        returned instead of a failure.
        """
        failures: list[tuple[Candidate, InvocationResult]] = []
        null_hit: Optional[InvocationResult] = None
        for candidate in self.candidates:
            result = attempt(candidate)
            if result.ok and (accept_none or result.value is not None):
                return result
            if result.ok:
                if null_hit is None:
                    null_hit = result
                continue
            failures.append((candidate, result))
            if result.kind is OutcomeKind.INVALID_HANDLE:
                # same handle for every candidate
                break
        if null_hit is not None:
            return null_hit
        return self._summary(failures)

    # ── Internal helpers ──────────────────────────────────────────────────

    def _summary(self, failures: list[tuple[Candidate, InvocationResult]]) -> InvocationResult:
        if not failures:
            return InvocationResult.failure(
                OutcomeKind.NOT_FOUND, member=self.label, detail="no candidates",
            )
        parts = [f"{candidate.name}={result.kind.value}" for candidate, result in failures]

        kinds = [r.kind for _, r in failures if r.kind is not OutcomeKind.NOT_FOUND]
        kind = kinds[0] if kinds else OutcomeKind.NOT_FOUND
        last = failures[-1][1]
        return InvocationResult.failure(
            kind,
            member=self.label,
            type_name=next((r.type_name for _, r in failures if r.type_name), ""),
            detail="all candidates failed: " + ", ".join(parts),
            error=last.error,
        )


# ── Facade-level helpers ──────────────────────────────────────────────────────

def try_invoke_first(
    bridge: "SafeInvoker",
    handle: Any,
    candidates: Iterable[CandidateSpec],
    *args: Any,
    expected: Any = Any,
    accept_none: bool = True,
    report: bool = True,
) -> InvocationResult:
    chain = FallbackChain(candidates)
    result = chain.run(
        lambda c: bridge.try_invoke(handle, c.name, *c.args_or(args), expected=expected, report=False),
        accept_none=accept_none,
    )
    if report and not result.ok:
        bridge.report(result, "invoke_first")
    return result


def invoke_first(
    bridge: "SafeInvoker",
    handle: Any,
    candidates: Iterable[CandidateSpec],
    *args: Any,
    expected: Any = Any,
    default: Any = _UNSET,
    accept_none: bool = True,
) -> Any:
    """First successful candidate's value, or the neutral default of `expected`."""
    result = try_invoke_first(
        bridge, handle, candidates, *args, expected=expected, accept_none=accept_none,
    )
    if default is _UNSET:
        default = bridge.coercer.neutral_default(expected)
    return result.value_or(default)


def try_get_first_field(
    bridge: "SafeInvoker",
    handle: Any,
    candidates: Iterable[CandidateSpec],
    expected: Any = Any,
    accept_none: bool = False,
    report: bool = True,
) -> InvocationResult:
    chain = FallbackChain(candidates)
    result = chain.run(
        lambda c: bridge.try_get_field(handle, c.name, expected=expected, report=False),
        accept_none=accept_none,
    )
    if report and not result.ok:
        bridge.report(result, "get_first_field")
    return result


def get_first_field(
    bridge: "SafeInvoker",
    handle: Any,
    candidates: Iterable[CandidateSpec],
    expected: Any = Any,
    default: Any = _UNSET,
    accept_none: bool = False,
) -> Any:
    result = try_get_first_field(
        bridge, handle, candidates, expected=expected, accept_none=accept_none,
    )
    if default is _UNSET:
        default = bridge.coercer.neutral_default(expected)
    return result.value_or(default)
