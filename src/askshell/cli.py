"""Command-line interface for askshell."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import cast

from .agent.loop import SessionLoop
from .config import API_KEY_ENV_VARS, AppConfig, save_theme
from .errors import AskError, ConfigError, InputError
from .llm.client import DEFAULT_MODEL, LLMClient
from .shell import create_shell_adapter
from .theme import Theme, ThemeMode

LOGGER = logging.getLogger(__name__)

VALUE_OPTIONS = frozenset({"--model", "--theme"})
HELP_OPTIONS = frozenset({"-h", "--help"})

EPILOG = """\
Command confirmation options:
  Y/yes (or Enter)  Execute the command
  n/no              Cancel the remaining commands (interactive mode returns to the prompt)
  s/skip            Skip this command and continue to the next
  i/instruct        Execute a custom command first, then return to the original

Interactive mode commands:
  exit / quit / q   Exit interactive mode
  clear             Clear screen and reset conversation context
  finder            Open a file browser at the current directory
  .                 Show the current directory
  ..                Change to the parent directory

Environment:
  ASK_API_KEY or OPENROUTER_ASK_API_KEY must be set with your OpenRouter API key.
  The theme preference is stored in ~/.ask/config (theme=light|dark)."""


class CLIArgs(argparse.Namespace):
    prompt: list[str]
    model: str | None
    theme: ThemeMode | None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ask",
        description="Natural-language command assistant",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--model", help=f"Override the default LLM model ({DEFAULT_MODEL})")
    parser.add_argument(
        "--theme",
        choices=["light", "dark"],
        help="Color theme for prompts (saved as the new default)",
    )
    parser.add_argument(
        "prompt",
        nargs="*",
        help="Request for the model; omit it to start interactive mode",
    )
    return parser


def split_argv(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Separate recognised options from prompt words, keeping word order.

    Anything that is not a recognised option counts as a prompt word, even
    when it looks like a flag.
    """
    options: list[str] = []
    words: list[str] = []
    index = 0
    while index < len(argv):
        arg = argv[index]
        if arg == "--":
            words.extend(argv[index + 1 :])
            break
        if arg in HELP_OPTIONS:
            options.append(arg)
        elif arg in VALUE_OPTIONS:
            options.append(arg)
            if index + 1 < len(argv):
                options.append(argv[index + 1])
                index += 1
        elif arg.partition("=")[0] in VALUE_OPTIONS:
            options.append(arg)
        else:
            words.append(arg)
        index += 1
    return options, words


def parse_args(argv: Sequence[str] | None = None) -> CLIArgs:
    options, words = split_argv(sys.argv[1:] if argv is None else argv)
    return cast(CLIArgs, build_parser().parse_args([*options, "--", *words]))


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    config = AppConfig.from_env()
    _configure_logging(config.log_level)

    theme_mode = config.theme
    if args.theme is not None:
        theme_mode = args.theme
        if config.config_path is not None:
            try:
                save_theme(config.config_path, theme_mode)
            except ConfigError as exc:
                print(f"Warning: could not save theme preference: {exc}", file=sys.stderr)

    if not config.api_key:
        print(
            f"Error: Please set the {API_KEY_ENV_VARS[-1]} environment variable.",
            file=sys.stderr,
        )
        return 1

    client = LLMClient(
        api_key=config.api_key,
        model=args.model or config.model,
        api_url=config.api_url,
    )
    session = SessionLoop(
        client=client,
        shell=create_shell_adapter(config.shell),
        read_line=_read_line,
        theme=Theme.from_mode(theme_mode) if sys.stdout.isatty() else Theme.plain(),
    )
    LOGGER.debug(
        "session_started",
        extra={
            "model": client.model,
            "shell": session.shell.name,
            "interactive": not args.prompt,
        },
    )

    try:
        if args.prompt:
            return _run_single_prompt(session, " ".join(args.prompt))
        return _run_interactive(session)
    except InputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _run_single_prompt(session: SessionLoop, prompt: str) -> int:
    try:
        session.run_prompt(prompt)
    except AskError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("^C")
        return 130
    return 0


def _run_interactive(session: SessionLoop) -> int:
    print(session.banner())
    while True:
        try:
            line = session.read_line(session.prompt_label())
            if not session.handle_line(line):
                break
        except KeyboardInterrupt:
            print("^C")
        except EOFError:
            print("Goodbye!")
            break
    return 0


def _read_line(prompt: str) -> str:
    try:
        return input(prompt)
    except OSError as exc:
        raise InputError(f"could not read input: {exc}") from exc


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name)
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


if __name__ == "__main__":
    raise SystemExit(main())
