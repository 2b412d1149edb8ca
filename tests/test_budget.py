"""
Unit tests for the shared budget and limiter policy.
"""
import pytest

from code_gate.core.budget import AgentBudget, cap_files, clamp_concurrency, truncate_diff
from code_gate.models.messages import ConversationPhase, ConversationState


class TestAgentBudget:

    def test_round_allowed_until_iteration_limit(self):
        budget = AgentBudget(max_iterations=2, max_tool_calls=10)
        state = ConversationState()
        assert budget.can_start_round(state)
        state.iteration = 2
        assert not budget.can_start_round(state)

    def test_no_round_after_finalization(self):
        budget = AgentBudget(max_iterations=5, max_tool_calls=10)
        state = ConversationState(phase=ConversationPhase.AWAITING_FINAL)
        assert not budget.can_start_round(state)
        state.phase = ConversationPhase.DONE
        assert not budget.can_start_round(state)
        assert state.done

    def test_batch_admission_is_all_or_nothing(self):
        budget = AgentBudget(max_iterations=2, max_tool_calls=10)
        state = ConversationState(total_tool_calls=3)
        assert budget.admits_batch(state, 7)
        assert not budget.admits_batch(state, 9)
        assert budget.remaining_tool_calls(state) == 7

    def test_empty_batch_always_fits(self):
        budget = AgentBudget(max_iterations=1, max_tool_calls=0)
        assert budget.admits_batch(ConversationState(), 0)
        assert not budget.admits_batch(ConversationState(), 1)

    @pytest.mark.parametrize("iterations,tool_calls", [(0, 10), (-1, 10), (1, -1)])
    def test_invalid_budgets(self, iterations, tool_calls):
        with pytest.raises(ValueError):
            AgentBudget(max_iterations=iterations, max_tool_calls=tool_calls)


@pytest.mark.parametrize("value,expected", [(0, 1), (-3, 1), (1, 1), (4, 4), (8, 8), (9, 8), (100, 8)])
def test_clamp_concurrency(value, expected):
    assert clamp_concurrency(value) == expected


def test_truncate_diff_keeps_short_diff():
    diff = "a\nb\nc"
    assert truncate_diff(diff, 3) == (diff, False)


def test_truncate_diff_appends_note():
    diff = "\n".join(str(i) for i in range(10))
    truncated, changed = truncate_diff(diff, 4)
    assert changed is True
    assert truncated.startswith("0\n1\n2\n3\n\n")
    assert truncated.endswith("original diff has 10 lines)")


def test_cap_files():
    files = [f"f{i}" for i in range(5)]
    assert cap_files(files, 3) == ["f0", "f1", "f2"]
    assert cap_files(files, 10) == files
    assert cap_files(files, 10) is not files
