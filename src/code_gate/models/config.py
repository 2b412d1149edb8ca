import os
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, ValidationError
from dotenv import load_dotenv

from .review import ReviewMode

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_CONFIG_FILE = "code-gate.config.json"

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 8

DEFAULT_PROMPT = (
    "As a senior code review engineer, review this change from the perspectives of security, "
    "performance, code style, and test coverage. Point out issues and suggestions for improvement, "
    "and provide necessary example patches."
)


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or validated."""
    pass


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProviderOptions(_Section):
    base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("base_url", "baseURL"))
    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("api_key", "apiKey"))
    api_key_env: Optional[str] = Field(default=None, validation_alias=AliasChoices("api_key_env", "apiKeyEnv"))
    model: Optional[str] = None
    concurrency_files: int = Field(default=1, validation_alias=AliasChoices("concurrency_files", "concurrencyFiles"))
    temperature: Optional[float] = None


class AgentSettings(_Section):
    enabled: bool = Field(default_factory=lambda: os.getenv("CODE_GATE_AGENT_ENABLED", "false").lower() == "true")
    max_iterations: int = Field(default=5, ge=1, validation_alias=AliasChoices("max_iterations", "maxIterations"))
    max_tool_calls: int = Field(default=10, ge=0, validation_alias=AliasChoices("max_tool_calls", "maxToolCalls"))


class LimitSettings(_Section):
    max_diff_lines: int = Field(default=10000, ge=1, validation_alias=AliasChoices("max_diff_lines", "maxDiffLines"))
    max_files: int = Field(default=100, ge=1, validation_alias=AliasChoices("max_files", "maxFiles"))


class UISettings(_Section):
    host: str = Field(default_factory=lambda: os.getenv("CODE_GATE_UI_HOST", "127.0.0.1"))
    port: int = Field(default_factory=lambda: int(os.getenv("CODE_GATE_UI_PORT", "5175")))
    open_browser: bool = Field(default=True, validation_alias=AliasChoices("open_browser", "openBrowser"))


class OutputSettings(_Section):
    dir: str = Field(default_factory=lambda: os.getenv("CODE_GATE_OUTPUT_DIR", ".review-logs"))


def _default_provider_options() -> Dict[str, ProviderOptions]:
    return {
        "deepseek": ProviderOptions(
            base_url="https://api.deepseek.com",
            api_key_env="DEEPSEEK_API_KEY",
            model="deepseek-chat",
            concurrency_files=4,
        ),
        "ollama": ProviderOptions(
            base_url="http://localhost:11434",
            model="qwen2.5-coder",
            concurrency_files=1,
        ),
    }


class ReviewConfig(_Section):
    """Configuration for a review run"""
    provider: str = Field(default_factory=lambda: os.getenv("CODE_GATE_PROVIDER", "ollama"))
    provider_options: Dict[str, ProviderOptions] = Field(
        default_factory=_default_provider_options,
        validation_alias=AliasChoices("provider_options", "providerOptions"),
    )

    file_types: List[str] = Field(default_factory=list, validation_alias=AliasChoices("file_types", "fileTypes"))
    exclude: List[str] = Field(default_factory=lambda: ["**/package-lock.json"])

    review_mode: ReviewMode = Field(
        default_factory=lambda: ReviewMode(os.getenv("CODE_GATE_REVIEW_MODE", "files")),
        validation_alias=AliasChoices("review_mode", "reviewMode"),
    )
    prompt: str = Field(default=DEFAULT_PROMPT)

    agent: AgentSettings = Field(default_factory=AgentSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    ui: UISettings = Field(default_factory=UISettings)
    output: OutputSettings = Field(default_factory=OutputSettings)

    def active_provider(self) -> ProviderOptions:
        """Options of the selected provider (empty options if none are configured)."""
        return self.provider_options.get(self.provider) or ProviderOptions()

    def model_name(self) -> str:
        return self.active_provider().model or "unknown"

    def resolve_api_key(self) -> Optional[str]:
        """API key from the configured env var, falling back to the inline key."""
        opts = self.active_provider()
        env_name = opts.api_key_env or f"{self.provider.upper()}_API_KEY"
        return os.environ.get(env_name) or opts.api_key


def load_config(path: Optional[Union[str, Path]] = None) -> ReviewConfig:
    """
    Load configuration from a JSON file.

    An explicit path must exist. Without one, code-gate.config.json in the
    working directory is used when present; otherwise defaults apply.
    """
    if path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_FILE
        if not candidate.is_file():
            logger.info("No configuration file found, using defaults")
            return ReviewConfig()
        path = candidate

    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {config_path}")
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read configuration file {config_path}: {e}")

    try:
        config = ReviewConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}")

    logger.info(f"Loaded configuration from {config_path} (provider={config.provider}, mode={config.review_mode.value})")
    return config


def default_config_json() -> str:
    """Serialized defaults, used by `code-gate init`."""
    return json.dumps(ReviewConfig().model_dump(mode="json"), indent=2, ensure_ascii=False)
