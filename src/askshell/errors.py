"""Error types surfaced to the session loop."""

from __future__ import annotations


class AskError(Exception):
    """Base class for errors that abort a single turn."""


class ConfigError(AskError):
    """Preferences file could not be read or written."""


class NetworkError(AskError):
    """The model endpoint could not be reached."""


class ApiError(AskError):
    """The model endpoint answered with a non-success status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"API error {status}: {body}")
        self.status = status
        self.body = body


class EmptyResponseError(AskError):
    """The model returned nothing that can be shown or run."""


class ExecError(AskError):
    """A shell command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, output: str = "") -> None:
        super().__init__(f"Command exited with status {returncode}")
        self.command = command
        self.returncode = returncode
        self.output = output


class InputError(Exception):
    """The terminal input stream failed; this ends the session."""
