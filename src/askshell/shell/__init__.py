"""Shell adapter implementations."""

from .base import CommandResult, ShellAdapter
from .posix_adapter import DEFAULT_SHELL, PosixShellAdapter


def create_shell_adapter(
    executable: str | None = None, *, stream_output: bool = True
) -> ShellAdapter:
    if executable is not None and not executable.strip():
        msg = "Shell executable must not be blank"
        raise ValueError(msg)
    return PosixShellAdapter(executable=executable, stream_output=stream_output)


__all__ = [
    "DEFAULT_SHELL",
    "CommandResult",
    "PosixShellAdapter",
    "ShellAdapter",
    "create_shell_adapter",
]
