"""
code-gate: AI code review for git changes, with an optional tool-using agent.
"""

__version__ = "1.0.0"

from .core.orchestrator import AgentOrchestrator, AgentReviewInput, AgentReviewOptions
from .core.dispatcher import ReviewDispatcher, ResultSet
from .models.config import ReviewConfig, load_config
from .services.review_service import ReviewService, ReviewRunOptions

__all__ = [
    "__version__",
    "AgentOrchestrator",
    "AgentReviewInput",
    "AgentReviewOptions",
    "ReviewDispatcher",
    "ResultSet",
    "ReviewConfig",
    "load_config",
    "ReviewService",
    "ReviewRunOptions",
]
