"""
Agent orchestrator: a bounded, tool-using review conversation.

Each round asks the reviewer for a verdict. A reply without tool calls is
final. A reply with tool calls is executed as one concurrent batch and fed
back, unless the batch would overflow the tool budget, in which case the
reviewer is asked to finalize without tools. Reaching the iteration budget
forces the same finalization.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ..llm.base import BaseReviewer
from ..models.messages import ConversationPhase, ConversationState, Message, ToolCall, ToolResult
from ..tools.base import ToolRegistry
from ..utils.prompt_builder import PromptBuilder
from .budget import AgentBudget

logger = logging.getLogger(__name__)

IterationObserver = Callable[[int, int], None]
ToolCallObserver = Callable[[ToolCall], None]


@dataclass
class AgentReviewInput:
    prompt: str
    diff: str
    files: List[str] = field(default_factory=list)


@dataclass
class AgentReviewOptions:
    max_iterations: int = 5
    max_tool_calls: int = 10
    on_iteration: Optional[IterationObserver] = None
    on_tool_call: Optional[ToolCallObserver] = None

    @property
    def budget(self) -> AgentBudget:
        return AgentBudget(max_iterations=self.max_iterations, max_tool_calls=self.max_tool_calls)


class AgentOrchestrator:
    """Drives one review conversation per `run` call. Holds no per-run state."""

    def __init__(self, reviewer: BaseReviewer, registry: ToolRegistry):
        self.reviewer = reviewer
        self.registry = registry

    async def run(self, request: AgentReviewInput, options: AgentReviewOptions) -> str:
        """
        Run the conversation to completion and return the final review text.

        Reviewer failures propagate to the caller. Tool failures are fed back
        to the reviewer as error results.
        """
        budget = options.budget
        state = self._initial_state(request)
        tools = self.registry.definitions()
        logger.debug(f"Agent tools: {', '.join(self.registry.names)}")

        while budget.can_start_round(state):
            state.iteration += 1
            logger.info(f"Agent round {state.iteration}/{budget.max_iterations} "
                        f"({state.total_tool_calls}/{budget.max_tool_calls} tool calls used)")

            response = await self.reviewer.call(list(state.messages), tools)

            if not response.wants_tools:
                state.phase = ConversationPhase.DONE
                logger.info(f"Agent finished after {state.iteration} round(s), {state.total_tool_calls} tool call(s)")
                return response.content or ""

            calls = response.tool_calls
            if not budget.admits_batch(state, len(calls)):
                # The whole batch is dropped; nothing from it runs.
                logger.info(f"Tool budget exceeded: {len(calls)} call(s) requested, "
                            f"{budget.remaining_tool_calls(state)} left; forcing final answer")
                return await self._finalize(state, response.content)

            self._notify(options, state.iteration, calls)
            results = await self.registry.execute_all(calls)
            failed = [result.name for result in results if not result.ok]
            if failed:
                logger.info(f"Round {state.iteration}: {len(failed)} tool call(s) failed: {', '.join(failed)}")
            self._commit_round(state, response.content, calls, results)

        logger.info(f"Iteration budget of {budget.max_iterations} reached; forcing final answer")
        return await self._finalize(state, None)

    def _initial_state(self, request: AgentReviewInput) -> ConversationState:
        return ConversationState(messages=[
            Message.system(PromptBuilder.build_agent_system_prompt(request.prompt)),
            Message.user(PromptBuilder.build_agent_user_prompt(request.diff, request.files)),
        ])

    @staticmethod
    def _notify(options: AgentReviewOptions, iteration: int, calls: List[ToolCall]) -> None:
        if options.on_iteration:
            options.on_iteration(iteration, len(calls))
        if options.on_tool_call:
            for call in calls:
                options.on_tool_call(call)

    @staticmethod
    def _commit_round(
        state: ConversationState,
        content: Optional[str],
        calls: List[ToolCall],
        results: List[ToolResult],
    ) -> None:
        # Results are in request order, so the transcript is deterministic
        # even though the batch ran concurrently.
        messages = [Message.assistant(content, calls)]
        messages.extend(Message.tool(result, serialize_tool_result(result)) for result in results)
        state.extend(messages)
        state.total_tool_calls += len(calls)

    async def _finalize(self, state: ConversationState, last_content: Optional[str]) -> str:
        """Withdraw the tools and ask for the final answer."""
        state.phase = ConversationPhase.AWAITING_FINAL
        if last_content:
            state.append(Message.assistant(last_content))
        state.append(Message.user(PromptBuilder.build_finalize_prompt()))

        response = await self.reviewer.call(list(state.messages), [])
        state.phase = ConversationPhase.DONE
        return response.content or ""


def serialize_tool_result(result: ToolResult) -> str:
    payload: Any = {"error": result.error} if result.error is not None else result.result
    return json.dumps(payload, ensure_ascii=False, default=str)
