"""Review orchestration: agent conversation loop, dispatcher and shared budgets."""

from .budget import AgentBudget, clamp_concurrency, truncate_diff, cap_files
from .orchestrator import AgentOrchestrator, AgentReviewInput, AgentReviewOptions, serialize_tool_result
from .dispatcher import ReviewDispatcher, ResultSet, DispatchOutcome, expected_units

__all__ = [
    "AgentBudget",
    "clamp_concurrency",
    "truncate_diff",
    "cap_files",
    "AgentOrchestrator",
    "AgentReviewInput",
    "AgentReviewOptions",
    "serialize_tool_result",
    "ReviewDispatcher",
    "ResultSet",
    "DispatchOutcome",
    "expected_units",
]
