"""
Budget and limiter policy shared by the orchestrator and the dispatcher.

Every limit here is checked before the action it bounds.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from ..models.config import MIN_CONCURRENCY, MAX_CONCURRENCY
from ..models.messages import ConversationPhase, ConversationState

logger = logging.getLogger(__name__)

DIFF_TRUNCATED_NOTE = "\n\n... (diff truncated, original diff has {lines} lines)"


@dataclass(frozen=True)
class AgentBudget:
    """Hard ceilings for one agent conversation."""
    max_iterations: int
    max_tool_calls: int

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.max_tool_calls < 0:
            raise ValueError(f"max_tool_calls must be >= 0, got {self.max_tool_calls}")

    def can_start_round(self, state: ConversationState) -> bool:
        return state.phase is ConversationPhase.RUNNING and state.iteration < self.max_iterations

    def admits_batch(self, state: ConversationState, batch_size: int) -> bool:
        """All-or-nothing: the whole batch fits in the remaining tool budget or none of it runs."""
        return state.total_tool_calls + batch_size <= self.max_tool_calls

    def remaining_tool_calls(self, state: ConversationState) -> int:
        return max(0, self.max_tool_calls - state.total_tool_calls)


def clamp_concurrency(value: int) -> int:
    return max(MIN_CONCURRENCY, min(MAX_CONCURRENCY, value or MIN_CONCURRENCY))


def truncate_diff(diff: str, max_lines: int) -> Tuple[str, bool]:
    """
    Keep the first max_lines lines of a diff.

    Returns the (possibly truncated) diff and whether truncation happened.
    The appended note states the original line count.
    """
    lines = diff.split("\n")
    if len(lines) <= max_lines:
        return diff, False
    logger.info(f"Truncating diff from {len(lines)} to {max_lines} lines")
    return "\n".join(lines[:max_lines]) + DIFF_TRUNCATED_NOTE.format(lines=len(lines)), True


def cap_files(files: List[str], max_files: int) -> List[str]:
    if max_files and len(files) > max_files:
        logger.warning(f"{len(files)} files changed, reviewing only the first {max_files}")
        return files[:max_files]
    return list(files)
