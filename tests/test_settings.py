"""Tests for configuration loading."""

import pytest

from gitstage.config.settings import AIConfig, EditorConfig, GitOptions, StageConfig

ENV_VARS = (
    "CEREBRAS_API_KEY",
    "EDITOR",
    "GITSTAGE_AI_ENABLED",
    "GITSTAGE_AI_MAX_INPUT_TOKENS",
    "GITSTAGE_AI_MODEL",
    "GITSTAGE_AI_PROVIDER",
    "GITSTAGE_AI_REASONING_EFFORT",
    "GITSTAGE_AUTO_STAGE",
    "GITSTAGE_EDITOR",
    "GITSTAGE_EDITOR_ARGS",
    "GITSTAGE_HIDE_WHITESPACE",
    "GITSTAGE_HISTORY_LIMIT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = StageConfig.from_env()

    assert config.ai == AIConfig()
    assert config.ai.model == "gpt-oss-120b"
    assert config.ai.max_input_tokens == 12000
    assert config.git == GitOptions()
    assert config.editor == EditorConfig()


def test_ai_config_from_env(monkeypatch):
    monkeypatch.setenv("GITSTAGE_AI_ENABLED", "yes")
    monkeypatch.setenv("CEREBRAS_API_KEY", " sk-test ")
    monkeypatch.setenv("GITSTAGE_AI_REASONING_EFFORT", "HIGH")
    monkeypatch.setenv("GITSTAGE_AI_MAX_INPUT_TOKENS", "4000")

    config = AIConfig.from_env()

    assert config.enabled
    assert config.api_key == "sk-test"
    assert config.reasoning_effort == "high"
    assert config.max_input_tokens == 4000


@pytest.mark.parametrize(
    "name, value, message",
    [
        ("GITSTAGE_AI_PROVIDER", "openai", "GITSTAGE_AI_PROVIDER"),
        ("GITSTAGE_AI_REASONING_EFFORT", "max", "GITSTAGE_AI_REASONING_EFFORT"),
        ("GITSTAGE_AI_MODEL", "  ", "GITSTAGE_AI_MODEL"),
        ("GITSTAGE_AI_MAX_INPUT_TOKENS", "0", "greater than 0"),
        ("GITSTAGE_AI_MAX_INPUT_TOKENS", "many", "must be an integer"),
        ("GITSTAGE_AI_ENABLED", "maybe", "must be a boolean"),
    ],
)
def test_invalid_ai_env(monkeypatch, name, value, message):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=message):
        AIConfig.from_env()


def test_enabled_without_key(monkeypatch):
    monkeypatch.setenv("GITSTAGE_AI_ENABLED", "true")

    with pytest.raises(ValueError, match="CEREBRAS_API_KEY is not set"):
        AIConfig.from_env()


def test_with_overrides():
    config = AIConfig(api_key="env-key").with_overrides(model="llama-4", max_input_tokens=500)

    assert config.enabled
    assert config.api_key == "env-key"
    assert config.model == "llama-4"
    assert config.max_input_tokens == 500
    assert config.reasoning_effort == "low"
    assert AIConfig().with_overrides(api_key=" cli ").api_key == "cli"


def test_with_overrides_requires_key():
    with pytest.raises(ValueError, match="--api-key"):
        AIConfig().with_overrides()


def test_git_options_from_env(monkeypatch):
    monkeypatch.setenv("GITSTAGE_HIDE_WHITESPACE", "off")
    monkeypatch.setenv("GITSTAGE_HISTORY_LIMIT", "50")
    monkeypatch.setenv("GITSTAGE_AUTO_STAGE", "0")

    assert GitOptions.from_env() == GitOptions(
        hide_whitespace_changes=False, history_limit=50, auto_stage_on_commit=False
    )


def test_editor_config_from_env(monkeypatch):
    monkeypatch.setenv("EDITOR", "vim")
    assert EditorConfig.from_env() == EditorConfig(command="vim")

    monkeypatch.setenv("GITSTAGE_EDITOR", "code")
    monkeypatch.setenv("GITSTAGE_EDITOR_ARGS", "--goto '{file}:{line}'")
    assert EditorConfig.from_env() == EditorConfig(command="code", args=("--goto", "{file}:{line}"))
