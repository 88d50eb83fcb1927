"""Configuration settings for gitstage."""

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

# Load environment variables at module level
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ReasoningEffort = Literal["low", "medium", "high"]

SUPPORTED_PROVIDERS = ("cerebras",)
REASONING_EFFORTS = ("low", "medium", "high")
DEFAULT_MODEL = "gpt-oss-120b"
DEFAULT_MAX_INPUT_TOKENS = 12000

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}.")


def _env_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from e
    if value <= 0:
        raise ValueError(f"{name} must be greater than 0.")
    return value


@dataclass(frozen=True)
class GitOptions:
    """Options consumed by GitClient."""

    hide_whitespace_changes: bool = True
    history_limit: int = 200
    auto_stage_on_commit: bool = True

    @classmethod
    def from_env(cls) -> "GitOptions":
        return cls(
            hide_whitespace_changes=_env_bool("GITSTAGE_HIDE_WHITESPACE", True),
            history_limit=_env_positive_int("GITSTAGE_HISTORY_LIMIT", 200),
            auto_stage_on_commit=_env_bool("GITSTAGE_AUTO_STAGE", True),
        )


@dataclass(frozen=True)
class AIConfig:
    """Settings for AI commit summaries."""

    enabled: bool = False
    provider: str = "cerebras"
    api_key: str = ""
    model: str = DEFAULT_MODEL
    reasoning_effort: ReasoningEffort = "low"
    max_input_tokens: int = DEFAULT_MAX_INPUT_TOKENS

    @classmethod
    def from_env(cls) -> "AIConfig":
        """Create AI configuration from environment variables."""
        provider = os.getenv("GITSTAGE_AI_PROVIDER", "cerebras").strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f'Invalid value for GITSTAGE_AI_PROVIDER: {provider}. Expected "cerebras".')

        effort = os.getenv("GITSTAGE_AI_REASONING_EFFORT", "low").strip().lower()
        if effort not in REASONING_EFFORTS:
            raise ValueError(
                f'Invalid value for GITSTAGE_AI_REASONING_EFFORT: {effort}. Expected "low", "medium", or "high".'
            )

        model = os.getenv("GITSTAGE_AI_MODEL", DEFAULT_MODEL).strip()
        if not model:
            raise ValueError("GITSTAGE_AI_MODEL must be a non-empty string.")

        config = cls(
            enabled=_env_bool("GITSTAGE_AI_ENABLED", False),
            provider=provider,
            api_key=os.getenv("CEREBRAS_API_KEY", "").strip(),
            model=model,
            reasoning_effort=effort,  # type: ignore[arg-type]
            max_input_tokens=_env_positive_int("GITSTAGE_AI_MAX_INPUT_TOKENS", DEFAULT_MAX_INPUT_TOKENS),
        )
        if config.enabled and not config.api_key:
            raise ValueError("GITSTAGE_AI_ENABLED is true, but CEREBRAS_API_KEY is not set.")
        return config

    def with_overrides(
        self,
        api_key: str | None = None,
        model: str | None = None,
        reasoning_effort: ReasoningEffort | None = None,
        max_input_tokens: int | None = None,
    ) -> "AIConfig":
        """Apply command line overrides; the result is always enabled."""
        key = (api_key if api_key is not None else self.api_key).strip()
        if not key:
            raise ValueError("AI API key is empty. Set CEREBRAS_API_KEY or pass --api-key.")
        if max_input_tokens is not None and max_input_tokens <= 0:
            raise ValueError("--max-input-tokens must be a positive integer.")

        return replace(
            self,
            enabled=True,
            provider="cerebras",
            api_key=key,
            model=model or self.model,
            reasoning_effort=reasoning_effort or self.reasoning_effort,
            max_input_tokens=max_input_tokens or self.max_input_tokens,
        )


@dataclass(frozen=True)
class EditorConfig:
    """External editor command; ``{file}`` and ``{line}`` are substituted."""

    command: str = ""
    args: tuple[str, ...] = ("{file}",)

    @classmethod
    def from_env(cls) -> "EditorConfig":
        raw_args = os.getenv("GITSTAGE_EDITOR_ARGS")
        return cls(
            command=os.getenv("GITSTAGE_EDITOR", os.getenv("EDITOR", "")).strip(),
            args=tuple(shlex.split(raw_args)) if raw_args else ("{file}",),
        )


@dataclass(frozen=True)
class StageConfig:
    """Main configuration settings."""

    ai: AIConfig = field(default_factory=AIConfig)
    git: GitOptions = field(default_factory=GitOptions)
    editor: EditorConfig = field(default_factory=EditorConfig)

    @classmethod
    def from_env(cls) -> "StageConfig":
        """Create configuration from environment variables."""
        return cls(ai=AIConfig.from_env(), git=GitOptions.from_env(), editor=EditorConfig.from_env())
