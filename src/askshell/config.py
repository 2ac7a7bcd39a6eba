"""Environment-backed application configuration and the theme preference file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from askshell.errors import ConfigError
from askshell.llm.client import DEFAULT_MODEL, OPENROUTER_URL
from askshell.shell import DEFAULT_SHELL
from askshell.theme import DEFAULT_THEME, ThemeMode, parse_theme_mode

API_KEY_ENV_VARS = ("ASK_API_KEY", "OPENROUTER_ASK_API_KEY")
LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppConfig:
    """Runtime settings loaded from environment variables and ``~/.ask/config``."""

    api_key: str | None
    model: str
    api_url: str
    shell: str
    theme: ThemeMode
    config_path: Path | None
    log_level: str

    @classmethod
    def from_env(cls) -> AppConfig:
        config_path = default_config_path()
        preferences = load_preferences(config_path) if config_path else {}

        return cls(
            api_key=_first_env(*API_KEY_ENV_VARS),
            model=(
                _to_optional_string(os.getenv("ASK_MODEL"))
                or _to_optional_string(preferences.get("model"))
                or DEFAULT_MODEL
            ),
            api_url=_to_optional_string(os.getenv("ASK_API_URL")) or OPENROUTER_URL,
            shell=(
                _to_optional_string(os.getenv("ASK_SHELL"))
                or _to_optional_string(os.getenv("SHELL"))
                or DEFAULT_SHELL
            ),
            theme=parse_theme_mode(preferences.get("theme")) or DEFAULT_THEME,
            config_path=config_path,
            log_level=(_to_optional_string(os.getenv("ASK_LOG_LEVEL")) or "WARNING").upper(),
        )


def default_config_path() -> Path | None:
    explicit_path = _to_optional_string(os.getenv("ASK_CONFIG_FILE"))
    if explicit_path:
        return Path(explicit_path).expanduser()
    try:
        home = Path.home()
    except RuntimeError:
        return None
    return home / ".ask" / "config"


def load_preferences(path: Path) -> dict[str, str]:
    """Read ``key=value`` lines; unreadable files yield an empty mapping."""
    if not path.exists() or not path.is_file():
        return {}
    try:
        contents = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.warning("config_read_failed", extra={"path": str(path), "error": str(exc)})
        return {}

    preferences: dict[str, str] = {}
    for line in contents.splitlines():
        key, separator, value = line.partition("=")
        if not separator or not key.strip():
            continue
        preferences[key.strip()] = value.strip()
    return preferences


def save_theme(path: Path, theme: ThemeMode) -> None:
    """Persist the theme, keeping any other preferences already in the file."""
    preferences = load_preferences(path)
    preferences["theme"] = theme
    contents = "".join(f"{key}={value}\n" for key, value in preferences.items())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
    except OSError as exc:
        LOGGER.warning("config_write_failed", extra={"path": str(path), "error": str(exc)})
        raise ConfigError(str(exc)) from exc


def _first_env(*names: str) -> str | None:
    for name in names:
        value = _to_optional_string(os.getenv(name))
        if value:
            return value
    return None


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
