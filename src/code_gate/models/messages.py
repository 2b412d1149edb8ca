"""
Conversation primitives for agent-mode reviews.

The transcript is an ordered list of Message objects that is sent verbatim
to the reviewer on every round. Tool calls and their results are paired by id.
"""

from typing import Any, Dict, List, Optional, Literal
from dataclasses import dataclass, field
from enum import Enum

Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the reviewer."""
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one ToolCall: either a success payload or an error message."""
    id: str
    name: str
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, call: ToolCall, result: Any) -> "ToolResult":
        return cls(id=call.id, name=call.name, result=result)

    @classmethod
    def failure(cls, call: ToolCall, error: str) -> "ToolResult":
        return cls(id=call.id, name=call.name, error=error)


@dataclass(frozen=True)
class Message:
    role: Role
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: Optional[str], tool_calls: Optional[List[ToolCall]] = None) -> "Message":
        return cls(role="assistant", content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, result: ToolResult, content: str) -> "Message":
        return cls(role="tool", content=content, tool_call_id=result.id, name=result.name)


@dataclass(frozen=True)
class ReviewerResponse:
    """What the reviewer returned for one call: final text, tool requests, or both."""
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


class ConversationPhase(str, Enum):
    RUNNING = "running"
    AWAITING_FINAL = "awaiting_final"  # tools withdrawn, waiting for the final answer
    DONE = "done"


@dataclass
class ConversationState:
    """
    Mutable state of one orchestrator run.

    Owned by exactly one run; never shared between files or calls.
    """
    messages: List[Message] = field(default_factory=list)
    iteration: int = 0
    total_tool_calls: int = 0
    phase: ConversationPhase = ConversationPhase.RUNNING

    @property
    def done(self) -> bool:
        return self.phase is ConversationPhase.DONE

    def append(self, message: Message) -> None:
        self.messages.append(message)

    def extend(self, messages: List[Message]) -> None:
        self.messages.extend(messages)
