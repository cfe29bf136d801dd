"""
Unit tests for fallback chains.

Covers:
  • first resolving candidate wins, later candidates never attempted
  • one summary diagnostic when every candidate fails
  • void calls stop the chain; field chains skip nulls
  • per-candidate argument overrides (Candidate / (name, args) tuples)
  • invalid handles stop the chain after one attempt
  • summary kind selection
"""

from unittest.mock import patch

import pytest

from modbridge.bridge import (
    Candidate,
    FallbackChain,
    InvocationResult,
    MemorySink,
    OutcomeKind,
    SafeInvoker,
)
from modbridge.host import PythonHost


# ── Fixtures ──────────────────────────────────────────────────────────────────

class Building:
    localizedName: str = "Town Hall"  # noqa: N815 — host naming
    nickname: str = None

    def __init__(self):
        self.calls = []

    def ring(self) -> None:
        self.calls.append("ring")

    def chime(self) -> None:
        self.calls.append("chime")

    def upgrade(self, level: int) -> int:
        return level * 10

    def explode(self) -> str:
        raise RuntimeError("kaboom")


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def bridge(sink) -> SafeInvoker:
    return SafeInvoker(PythonHost(), sink=sink)


@pytest.fixture
def building() -> Building:
    return Building()


# ── Candidate ─────────────────────────────────────────────────────────────────

class TestCandidate:
    def test_of_string(self):
        assert Candidate.of("title") == Candidate("title")

    def test_of_tuple(self):
        assert Candidate.of(("upgrade", [2])) == Candidate("upgrade", (2,))

    def test_of_candidate_is_identity(self):
        candidate = Candidate("x", ())
        assert Candidate.of(candidate) is candidate

    def test_args_or(self):
        assert Candidate("a").args_or([1, 2]) == (1, 2)
        assert Candidate("a", ()).args_or([1, 2]) == ()

    def test_chain_accepts_single_name(self):
        chain = FallbackChain("title")
        assert len(chain) == 1
        assert chain.label == "title"


# ── Chain semantics ───────────────────────────────────────────────────────────

class TestChainOrder:
    def test_first_resolving_candidate_wins(self, bridge, sink, building):
        name = bridge.invoke_first(building, ["displayName", "localizedName", "title"], expected=str)
        assert name == "Town Hall"
        assert len(sink) == 0

    def test_later_candidates_not_attempted(self, bridge, building):
        with patch.object(bridge, "try_invoke", wraps=bridge.try_invoke) as spy:
            bridge.invoke_first(building, ["a", "localizedName", "c"], expected=str)
        attempted = [call.args[1] for call in spy.call_args_list]
        assert attempted == ["a", "localizedName"]

    def test_same_result_as_direct_invoke(self, bridge, building):
        chained = bridge.try_invoke_first(building, ["a", "upgrade", "c"], 2, expected=int)
        direct = bridge.try_invoke(building, "upgrade", 2, expected=int)
        assert chained == direct

    def test_candidates_not_reported_individually(self, bridge, sink, building):
        bridge.invoke_first(building, ["a", "b", "c"], expected=str)
        (record,) = sink.records
        assert record.member == "a|b|c"
        assert "a=not_found, b=not_found, c=not_found" in record.message

    def test_all_fail_gives_neutral_default(self, bridge, building):
        assert bridge.invoke_first(building, ["a", "b"], expected=str) == ""
        assert bridge.invoke_first(building, ["a", "b"], expected=int, default=-1) == -1

    def test_empty_chain(self, bridge, sink, building):
        result = bridge.try_invoke_first(building, [])
        assert result.kind is OutcomeKind.NOT_FOUND
        assert result.detail == "no candidates"
        assert len(sink) == 1


class TestNullResults:
    def test_void_call_stops_chain(self, bridge, sink, building):
        result = bridge.try_invoke_first(building, ["ring", "chime"])
        assert result.ok
        assert result.member == "ring"
        assert result.value is None
        assert building.calls == ["ring"]
        assert len(sink) == 0

    def test_void_call_after_miss(self, bridge, sink, building):
        bridge.invoke_first(building, ["legacyRing", "ring", "chime"])
        assert building.calls == ["ring"]
        assert len(sink) == 0

    def test_null_field_moves_on(self, bridge, building):
        assert bridge.get_first_field(building, ["nickname", "localizedName"], expected=str) == "Town Hall"

    def test_accept_none_stops_at_null(self, bridge, sink, building):
        result = bridge.try_get_first_field(building, ["nickname", "localizedName"], accept_none=True)
        assert result.ok
        assert result.member == "nickname"
        assert result.value is None
        assert len(sink) == 0

    def test_only_nulls_is_success(self, bridge, sink, building):
        result = bridge.try_get_first_field(building, ["nickname", "missing"])
        assert result.ok
        assert result.member == "nickname"
        assert result.value is None
        assert len(sink) == 0


class TestArguments:
    def test_shared_arguments(self, bridge, building):
        assert bridge.invoke_first(building, ["upgradeTo", "upgrade"], 3, expected=int) == 30

    def test_per_candidate_arguments(self, bridge, building):
        candidates = [Candidate("localizedName", (1,)), ("upgrade", [4])]
        assert bridge.invoke_first(building, candidates, expected=int) == 40

    def test_candidate_with_empty_args_overrides_shared(self, bridge, building):
        candidates = ["upgrade", Candidate("localizedName", ())]
        assert bridge.invoke_first(building, candidates, "x", expected=str) == "Town Hall"


class TestFailureSummary:
    def test_invalid_handle_stops_after_one_attempt(self, bridge, sink):
        with patch.object(bridge, "try_invoke", wraps=bridge.try_invoke) as spy:
            result = bridge.try_invoke_first(None, ["a", "b", "c"])
        assert spy.call_count == 1
        assert result.kind is OutcomeKind.INVALID_HANDLE
        assert len(sink) == 1

    def test_summary_kind_prefers_real_failures(self, bridge, building):
        result = bridge.try_invoke_first(building, ["missing", "explode", "other"])
        assert result.kind is OutcomeKind.HOST_FAULT

    def test_summary_carries_type_name(self, bridge, building):
        result = bridge.try_invoke_first(building, ["missing"])
        assert result.type_name.endswith("Building")

    def test_report_false_is_silent(self, sink, bridge, building):
        from modbridge.bridge import try_invoke_first

        result = try_invoke_first(bridge, building, ["a"], report=False)
        assert not result.ok
        assert len(sink) == 0

    def test_run_with_custom_attempt(self):
        chain = FallbackChain(["x", "y"])
        outcomes = {
            "x": InvocationResult.failure(OutcomeKind.COERCION_FAILURE, member="x"),
            "y": InvocationResult.success(7, member="y"),
        }
        assert chain.run(lambda c: outcomes[c.name]).value == 7
