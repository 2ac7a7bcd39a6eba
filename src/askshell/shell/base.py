"""Base shell adapter primitives."""

from __future__ import annotations

import abc
import logging
import re
import time
from dataclasses import dataclass

from askshell.errors import ExecError

LOGGER = logging.getLogger(__name__)

_SECRET_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(--?(?:password|token|secret|api[-_]?key)\s+)([^\s]+)",
        r"((?:password|token|secret|api[-_]?key)\s*=\s*)([^\s]+)",
    )
]


@dataclass(slots=True)
class CommandResult:
    """Result of a command execution."""

    command: str
    shell: str
    returncode: int
    stdout: str
    stderr: str
    duration_seconds: float = 0.0
    executed: bool = True

    @property
    def combined_output(self) -> str:
        """stdout followed by stderr, the form stored in session history."""
        if not self.stderr:
            return self.stdout
        return f"{self.stdout}\n{self.stderr}"


class ShellAdapter(abc.ABC):
    """Abstract adapter for shell command execution."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Friendly shell adapter name."""

    @abc.abstractmethod
    def execute(self, command: str, *, cwd: str | None = None) -> CommandResult:
        """Execute a shell command and return a normalized result."""

    def run(self, command: str, *, cwd: str | None = None) -> str:
        """Execute ``command`` and return its combined output.

        Raises ``ExecError`` on a non-zero exit. The output has already been
        shown on the terminal by then and is attached to the error.
        """
        result = self.execute(command, cwd=cwd)
        if result.returncode != 0:
            raise ExecError(command, result.returncode, result.combined_output)
        return result.combined_output

    def log_request(self, command: str, *, cwd: str | None) -> None:
        LOGGER.info(
            "command_request",
            extra={
                "shell": self.name,
                "command": self._sanitize_command(command),
                "cwd": cwd,
            },
        )

    def log_result(self, result: CommandResult) -> None:
        LOGGER.info(
            "command_result",
            extra={
                "shell": result.shell,
                "returncode": result.returncode,
                "duration_seconds": round(result.duration_seconds, 4),
                "executed": result.executed,
                "stdout_length": len(result.stdout),
                "stderr_length": len(result.stderr),
            },
        )

    @staticmethod
    def monotonic_now() -> float:
        return time.monotonic()

    def _sanitize_command(self, command: str) -> str:
        sanitized = command
        for pattern in _SECRET_PATTERNS:
            sanitized = pattern.sub(r"\1***", sanitized)
        return sanitized
