"""Decide which inputs can run directly without a model round trip.

This is a convenience heuristic, not a sandbox: direct commands run through
the same shell adapter and working directory as model-proposed ones.
"""

from __future__ import annotations

from askshell.agent.models import DirectDecision

SCRIPT_INTERPRETER_PREFIXES: tuple[str, ...] = (
    "python ",
    "python3 ",
    "node ",
    "ruby ",
    "perl ",
    "php ",
    "bash ",
    "sh ",
    "zsh ",
    "./",
)

SCRIPT_EXTENSIONS: frozenset[str] = frozenset(
    {
        "sh", "bash", "zsh",
        "py", "python",
        "js", "mjs", "ts",
        "rb", "ruby",
        "pl", "perl",
        "php",
        "r", "R",
        "go", "rs",
        "java", "class",
        "swift", "kt",
    }
)

SAFE_COMMANDS: frozenset[str] = frozenset(
    {
        # listing and navigation
        "ls", "ll", "la", "dir", "pwd", "tree",
        # file reading
        "cat", "head", "tail", "less", "more", "wc", "file", "stat",
        # system information
        "date", "uptime", "whoami", "hostname", "uname", "id",
        "df", "du", "free", "top", "ps", "who", "w",
        # network information
        "ifconfig", "ping", "netstat", "curl", "wget", "dig", "nslookup",
        # environment
        "env", "printenv", "echo", "which", "type", "alias",
        # read-only git
        "git status", "git log", "git diff", "git branch", "git remote",
        # list-only package managers
        "brew list", "npm list", "pip list", "cargo search",
        # history and help
        "history", "help", "man",
    }
)

# Accepted bare or followed by a space and arguments.
SAFE_COMMANDS_WITH_ARGS: frozenset[str] = frozenset(
    {"ls", "cd", "cat", "echo", "head", "tail", "grep", "find", "wc", "diff"}
)

# Accepted with anything after it, including no separator.
SAFE_COMMAND_PREFIXES: tuple[str, ...] = ("pwd",)

SCRIPT_RUNNERS: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".py",), "python3"),
    ((".js", ".mjs"), "node"),
    ((".rb",), "ruby"),
    ((".sh", ".bash"), "bash"),
    ((".pl",), "perl"),
    ((".php",), "php"),
)


def is_script_execution(text: str) -> bool:
    """Return true for interpreter invocations and script file names."""
    command = text.strip()
    if command.startswith(SCRIPT_INTERPRETER_PREFIXES):
        return True
    return command.split(".")[-1] in SCRIPT_EXTENSIONS


def is_safe_direct_command(text: str) -> bool:
    if is_script_execution(text):
        return True

    command = text.strip().lower()
    head, _, _ = command.partition(" ")
    if head in SAFE_COMMANDS_WITH_ARGS:
        return True
    if command.startswith(SAFE_COMMAND_PREFIXES):
        return True
    return command in SAFE_COMMANDS


def rewrite_direct_command(text: str) -> str:
    """Expand bare ``ls`` and bare script names into runnable commands."""
    command = text.strip()
    if command == "ls":
        return "ls -l"
    if " " in command or not is_script_execution(command):
        return command

    for extensions, runner in SCRIPT_RUNNERS:
        if command.endswith(extensions):
            return f"{runner} {command}"
    return command


def classify(text: str) -> DirectDecision:
    command = text.strip()
    if not is_safe_direct_command(command):
        return DirectDecision(direct=False, rewritten=command)
    return DirectDecision(direct=True, rewritten=rewrite_direct_command(command))
