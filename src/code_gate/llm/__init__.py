"""Reviewer capability: chat model factory and LangChain adapter."""

from .base import BaseReviewer
from .reviewer import LangChainReviewer, extract_llm_response_text
from .llm_factory import (
    LLMFactory,
    UnsupportedModelError,
    UnsupportedProviderError,
    MissingApiKeyError,
    check_provider_reachable,
)

__all__ = [
    "BaseReviewer",
    "LangChainReviewer",
    "extract_llm_response_text",
    "LLMFactory",
    "UnsupportedModelError",
    "UnsupportedProviderError",
    "MissingApiKeyError",
    "check_provider_reachable",
]
