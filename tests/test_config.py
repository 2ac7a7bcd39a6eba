from pathlib import Path

import pytest

from askshell.config import AppConfig, load_preferences, save_theme
from askshell.errors import ConfigError
from askshell.llm.client import DEFAULT_MODEL, OPENROUTER_URL

ENV_VARS = (
    "ASK_API_KEY",
    "OPENROUTER_ASK_API_KEY",
    "ASK_MODEL",
    "ASK_API_URL",
    "ASK_SHELL",
    "ASK_LOG_LEVEL",
)


@pytest.fixture
def clean_env(tmp_path, monkeypatch) -> Path:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_path = tmp_path / ".ask" / "config"
    monkeypatch.setenv("ASK_CONFIG_FILE", str(config_path))
    return config_path


def test_defaults_when_nothing_is_configured(clean_env, monkeypatch) -> None:
    monkeypatch.delenv("SHELL", raising=False)

    config = AppConfig.from_env()

    assert config.api_key is None
    assert config.model == DEFAULT_MODEL
    assert config.api_url == OPENROUTER_URL
    assert config.shell == "/bin/sh"
    assert config.theme == "dark"
    assert config.config_path == clean_env
    assert config.log_level == "WARNING"


def test_api_key_prefers_short_env_name(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("OPENROUTER_ASK_API_KEY", "legacy-key")
    assert AppConfig.from_env().api_key == "legacy-key"

    monkeypatch.setenv("ASK_API_KEY", "new-key")
    assert AppConfig.from_env().api_key == "new-key"


def test_env_overrides(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("ASK_MODEL", "openai/gpt-4o-mini")
    monkeypatch.setenv("ASK_API_URL", "https://example.invalid/v1/chat")
    monkeypatch.setenv("SHELL", "/bin/zsh")
    monkeypatch.setenv("ASK_LOG_LEVEL", "debug")

    config = AppConfig.from_env()

    assert config.model == "openai/gpt-4o-mini"
    assert config.api_url == "https://example.invalid/v1/chat"
    assert config.shell == "/bin/zsh"
    assert config.log_level == "DEBUG"

    monkeypatch.setenv("ASK_SHELL", "/bin/bash")
    assert AppConfig.from_env().shell == "/bin/bash"


def test_theme_and_model_load_from_preferences_file(clean_env, monkeypatch) -> None:
    clean_env.parent.mkdir(parents=True)
    clean_env.write_text("theme=light\nmodel=custom/model\n", encoding="utf-8")

    config = AppConfig.from_env()

    assert config.theme == "light"
    assert config.model == "custom/model"

    monkeypatch.setenv("ASK_MODEL", "env/model")
    assert AppConfig.from_env().model == "env/model"


@pytest.mark.parametrize("contents", ["theme=purple\n", "garbage\n=\n", "", "theme\n"])
def test_malformed_preferences_fall_back_to_dark(clean_env, contents) -> None:
    clean_env.parent.mkdir(parents=True)
    clean_env.write_text(contents, encoding="utf-8")

    assert AppConfig.from_env().theme == "dark"


def test_unreadable_preferences_fall_back(clean_env) -> None:
    clean_env.parent.mkdir(parents=True)
    clean_env.write_bytes(b"\xff\xfe\x00theme=light")

    assert load_preferences(clean_env) == {}
    assert AppConfig.from_env().theme == "dark"


def test_save_theme_creates_file_and_keeps_other_keys(tmp_path) -> None:
    path = tmp_path / "nested" / "config"
    save_theme(path, "light")
    assert path.read_text(encoding="utf-8") == "theme=light\n"

    path.write_text("model=custom/model\ntheme=light\n", encoding="utf-8")
    save_theme(path, "dark")

    assert load_preferences(path) == {"model": "custom/model", "theme": "dark"}


def test_save_theme_failure_raises_config_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ConfigError):
        save_theme(blocker / "config", "light")
