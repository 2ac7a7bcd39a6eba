"""ANSI colour themes for prompts, commands and helper text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ThemeMode = Literal["light", "dark"]

DEFAULT_THEME: ThemeMode = "dark"
RESET = "\x1b[0m"
CLEAR_SCREEN = "\x1b[2J\x1b[H"


def parse_theme_mode(value: str | None) -> ThemeMode | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized == "light":
        return "light"
    if normalized == "dark":
        return "dark"
    return None


@dataclass(frozen=True, slots=True)
class Theme:
    helper_color: str
    command_color: str
    prompt_color: str

    @classmethod
    def from_mode(cls, mode: ThemeMode) -> Theme:
        if mode == "light":
            return cls(helper_color="\x1b[35m", command_color="\x1b[31m", prompt_color="\x1b[34m")
        return cls(helper_color="\x1b[36;1m", command_color="\x1b[93m", prompt_color="\x1b[92m")

    @classmethod
    def plain(cls) -> Theme:
        """Theme with no escape codes, for output that is not a terminal."""
        return cls(helper_color="", command_color="", prompt_color="")

    def helper_text(self, text: str) -> str:
        return self._paint(self.helper_color, text)

    def command_text(self, text: str) -> str:
        return self._paint(self.command_color, text)

    def prompt_text(self, text: str) -> str:
        return self._paint(self.prompt_color, text)

    @staticmethod
    def _paint(color: str, text: str) -> str:
        if not color:
            return text
        return f"{color}{text}{RESET}"
