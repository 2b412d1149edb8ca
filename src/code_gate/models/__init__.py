"""Models and configuration for code-gate"""

from .config import (
    ReviewConfig,
    ProviderOptions,
    AgentSettings,
    LimitSettings,
    UISettings,
    OutputSettings,
    ConfigError,
    load_config,
)
from .messages import Message, ToolCall, ToolResult, ReviewerResponse, ConversationState, ConversationPhase
from .review import ReviewMode, ReviewItem, StatusSnapshot, ReviewRunInfo, ReviewRunResult, SUMMARY_UNIT

__all__ = [
    "ReviewConfig",
    "ProviderOptions",
    "AgentSettings",
    "LimitSettings",
    "UISettings",
    "OutputSettings",
    "ConfigError",
    "load_config",
    "Message",
    "ToolCall",
    "ToolResult",
    "ReviewerResponse",
    "ConversationState",
    "ConversationPhase",
    "ReviewMode",
    "ReviewItem",
    "StatusSnapshot",
    "ReviewRunInfo",
    "ReviewRunResult",
    "SUMMARY_UNIT",
]
