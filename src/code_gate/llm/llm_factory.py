import os
import logging
from typing import Optional

import httpx
from pydantic import SecretStr
from langchain_openai import ChatOpenAI
from langchain_core.utils.utils import secret_from_env

from ..models.config import ReviewConfig

logger = logging.getLogger(__name__)

# Default temperature from env or 0.0 for deterministic results
DEFAULT_TEMPERATURE = float(os.environ.get("LLM_TEMPERATURE", "0.0"))

OPENAI_COMPATIBLE_BASE_URLS = {
    "openai": None,  # library default
    "openrouter": "https://openrouter.ai/api/v1",
    "deepseek": "https://api.deepseek.com",
    "ollama": "http://localhost:11434",
}

# Local providers do not need a real key, but the OpenAI client insists on one.
KEYLESS_PROVIDERS = {"ollama"}

# Gemini thinking/reasoning models that DON'T work with tool calls
# These models require thought_signature preservation which isn't supported
# by LangChain. Users must use non-thinking variants instead.
UNSUPPORTED_GEMINI_THINKING_MODELS = {
    "google/gemini-2.0-flash-thinking-exp",
    "google/gemini-2.0-flash-thinking-exp:free",
    "google/gemini-2.5-flash-preview-05-20",
    "google/gemini-2.5-pro-preview-05-06",
}

GEMINI_MODEL_ALTERNATIVES = {
    "google/gemini-2.0-flash-thinking-exp": "google/gemini-2.0-flash",
    "google/gemini-2.0-flash-thinking-exp:free": "google/gemini-2.0-flash",
    "google/gemini-2.5-flash-preview-05-20": "google/gemini-2.5-flash-preview",
    "google/gemini-2.5-pro-preview-05-06": "google/gemini-2.5-pro-preview",
}

DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "openrouter": "openai/gpt-4o",
    "deepseek": "deepseek-chat",
    "ollama": "qwen2.5-coder",
}


class UnsupportedModelError(Exception):
    """Raised when an unsupported model is requested."""
    pass


class UnsupportedProviderError(Exception):
    """Raised when the configured provider has no chat model integration."""
    pass


class MissingApiKeyError(Exception):
    pass


class ChatOpenRouter(ChatOpenAI):
    """
    Small wrapper to support OpenRouter-style configuration via api_key.
    """
    api_key: Optional[SecretStr] = SecretStr(
        secret_from_env("OPENROUTER_API_KEY", default=None) or ""
    )

    @property
    def lc_secrets(self) -> dict[str, str]:
        return {"api_key": "OPENROUTER_API_KEY"}

    def __init__(self,
                 api_key: Optional[str] = None,
                 **kwargs):
        api_key = api_key or os.environ.get("OPENROUTER_API_KEY")
        super().__init__(
            base_url=OPENAI_COMPATIBLE_BASE_URLS["openrouter"],
            api_key=api_key,
            **kwargs
        )


class LLMFactory:

    @staticmethod
    def create_llm(config: ReviewConfig, temperature: Optional[float] = None):
        """
        Create the chat model for the configured provider.

        Raises:
            UnsupportedProviderError: provider has no OpenAI-compatible endpoint.
            UnsupportedModelError: Gemini thinking model that can't do tool calls.
            MissingApiKeyError: hosted provider without an API key.
        """
        provider = config.provider.lower()
        if provider in ("open-router",):
            provider = "openrouter"
        if provider not in OPENAI_COMPATIBLE_BASE_URLS:
            raise UnsupportedProviderError(
                f"Unsupported provider: {config.provider}. "
                f"Supported: {', '.join(sorted(OPENAI_COMPATIBLE_BASE_URLS))}"
            )

        opts = config.active_provider()
        model = opts.model or DEFAULT_MODELS[provider]
        LLMFactory._check_model_supported(model)

        if temperature is None:
            temperature = opts.temperature if opts.temperature is not None else DEFAULT_TEMPERATURE

        api_key = config.resolve_api_key()
        if not api_key:
            if provider not in KEYLESS_PROVIDERS:
                env_name = opts.api_key_env or f"{provider.upper()}_API_KEY"
                raise MissingApiKeyError(
                    f"Missing {provider} API key. Set {env_name} in the environment "
                    f"or configure 'api_key' for the provider"
                )
            api_key = provider

        logger.info(f"Creating LLM: provider={provider}, model={model}, temperature={temperature}")

        if provider == "openrouter":
            return ChatOpenRouter(
                api_key=api_key,
                model_name=model,
                temperature=temperature,
                default_headers={"X-Title": "code-gate"},
            )

        base_url = opts.base_url or OPENAI_COMPATIBLE_BASE_URLS[provider]
        if provider == "ollama":
            base_url = _ollama_openai_url(base_url)

        kwargs = {"base_url": base_url} if base_url else {}
        return ChatOpenAI(
            api_key=api_key,
            model_name=model,
            temperature=temperature,
            **kwargs
        )

    @staticmethod
    def _check_model_supported(model: str) -> None:
        model_lower = model.lower()
        for unsupported in UNSUPPORTED_GEMINI_THINKING_MODELS:
            if model_lower == unsupported.lower() or model_lower.startswith(unsupported.lower()):
                alternative = GEMINI_MODEL_ALTERNATIVES.get(unsupported, "google/gemini-2.0-flash")
                error_msg = (
                    f"Model '{model}' is a Gemini thinking model that requires thought_signature "
                    f"preservation for tool calls. This is not supported by the current LangChain integration. "
                    f"Please use a non-thinking variant instead, such as '{alternative}'."
                )
                logger.error(error_msg)
                raise UnsupportedModelError(error_msg)


def _ollama_openai_url(base_url: str) -> str:
    base_url = base_url.rstrip("/")
    return base_url if base_url.endswith("/v1") else f"{base_url}/v1"


def check_provider_reachable(base_url: str, timeout: float = 1.0) -> bool:
    """Quick connectivity probe for local providers. Never raises."""
    try:
        httpx.get(base_url, timeout=timeout)
        return True
    except httpx.HTTPError as e:
        logger.warning(f"Provider at {base_url} is not reachable: {e}")
        return False
