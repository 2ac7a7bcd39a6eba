"""Per-line orchestration of direct commands, model requests and history."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

from askshell.agent.classifier import classify
from askshell.agent.confirm import CommandReviewer, ConfirmationPrompt, ReadLine, Write
from askshell.agent.history import HistoryManager
from askshell.agent.models import Turn
from askshell.errors import AskError, ExecError
from askshell.llm.client import LLMClient
from askshell.shell import ShellAdapter
from askshell.theme import CLEAR_SCREEN, Theme

QUIT_COMMANDS = frozenset({"q", "exit", "quit"})
COMPACTION_NOTICE = "Note: Context is being automatically compacted to fit within token limits."
BANNER_LINES = (
    "Interactive mode. Commands: 'exit', 'clear', 'finder'",
    "Common commands and scripts execute directly without confirmation",
    "Shortcuts: q=quit, .=pwd, ..=cd ..",
)

LOGGER = logging.getLogger(__name__)


class SessionLoop:
    """Owns the working directory and history for one interactive session."""

    def __init__(
        self,
        *,
        client: LLMClient,
        shell: ShellAdapter,
        read_line: ReadLine,
        write: Write = print,
        theme: Theme | None = None,
        history: HistoryManager | None = None,
        working_directory: str | Path | None = None,
    ) -> None:
        self.client = client
        self.shell = shell
        self.read_line = read_line
        self.write = write
        self.theme = theme or Theme.plain()
        self.history = history if history is not None else HistoryManager()
        self.working_directory = str(Path(working_directory or Path.cwd()).resolve())

    def banner(self) -> str:
        lines = [self.theme.prompt_text(BANNER_LINES[0])]
        lines.extend(self.theme.helper_text(line) for line in BANNER_LINES[1:])
        lines.append(self.theme.helper_text(f"📁 {self.working_directory}"))
        return "\n".join(lines) + "\n"

    def prompt_label(self) -> str:
        return f"{self.theme.prompt_text(f'ask [{self._directory_label()}]>')} "

    def handle_line(self, line: str) -> bool:
        """Process one input line; returns False when the session should end.

        Errors raised while handling the line are reported here and never end
        the session.
        """
        text = line.strip()
        if not text:
            return True
        if text in QUIT_COMMANDS:
            self.write("Goodbye!")
            return False

        try:
            self._dispatch(text)
        except AskError as exc:
            LOGGER.warning("turn_failed", extra={"error_type": type(exc).__name__})
            self.write(f"Error: {exc}")
        return True

    def run_prompt(self, prompt: str) -> Turn:
        """Send ``prompt`` with compacted history to the model and review its commands."""
        context = self.history.compact() if len(self.history) else None
        lines = self.client.propose(prompt, context)
        reviewer = CommandReviewer(
            prompt=ConfirmationPrompt(read_line=self.read_line, write=self.write, theme=self.theme),
            shell=self.shell,
            write=self.write,
            theme=self.theme,
            working_directory=self.working_directory,
        )
        reviewed = reviewer.review(lines)
        if reviewed.cancelled:
            LOGGER.info("turn_cancelled", extra={"executed": len(reviewed.commands)})
        return Turn.from_run(prompt, reviewed.commands, reviewed.outputs)

    def _dispatch(self, text: str) -> None:
        if text == ".":
            self._show_command("pwd")
            self.write(self.working_directory)
            self._record(Turn.from_run("pwd", ["pwd"], [self.working_directory]))
            return
        if text == "..":
            self._change_directory("cd ..", "..")
            return
        if text == "clear":
            self.write(CLEAR_SCREEN + self.banner())
            self.history.reset()
            return
        if text == "finder":
            self._open_file_browser()
            return

        decision = classify(text)
        if decision.direct:
            self._run_direct(text, decision.rewritten)
            return

        turn = self.run_prompt(text)
        self._record(turn)
        self.write("")

    def _run_direct(self, text: str, command: str) -> None:
        LOGGER.debug("direct_command", extra={"input": text, "command": command})
        if text == "cd" or text.startswith("cd "):
            self._change_directory(text, text[2:].strip())
            return

        self._show_command(command)
        try:
            output = self.shell.run(command, cwd=self.working_directory)
        except ExecError as exc:
            self._record(Turn.from_run(text, [command], [exc.output]))
            raise
        self._record(Turn.from_run(text, [command], [output]))

    def _change_directory(self, text: str, target: str) -> None:
        self._show_command(text)
        destination = Path(os.path.expanduser(target or "~"))
        if not destination.is_absolute():
            destination = Path(self.working_directory) / destination
        destination = destination.resolve()
        if not destination.is_dir():
            self.write(f"Failed to change directory: no such directory: {target}")
            return

        self.working_directory = str(destination)
        self.write(self.theme.helper_text(f"Changed directory to: {self.working_directory}"))
        self._record(Turn.from_run(text, [text], [f"Changed to: {self.working_directory}"]))

    def _open_file_browser(self) -> None:
        opener = "open" if sys.platform == "darwin" else shutil.which("xdg-open")
        if not opener:
            self.write("Failed to open file browser: no opener available")
            return
        try:
            subprocess.run([opener, self.working_directory], check=False)
        except OSError as exc:
            self.write(f"Failed to open file browser: {exc}")
            return
        self.write(self.theme.helper_text("Opened file browser at current directory"))

    def _record(self, turn: Turn) -> None:
        self.history.record_turn(turn)
        if self.history.needs_compaction_notice():
            self.write(self.theme.helper_text(COMPACTION_NOTICE))

    def _show_command(self, command: str) -> None:
        self.write(f"{self.theme.prompt_text('run>')} {self.theme.command_text(command)}")

    def _directory_label(self) -> str:
        cwd = Path(self.working_directory)
        home = os.environ.get("HOME")
        if home:
            home_path = Path(home)
            if cwd == home_path:
                return "~"
            if home_path in cwd.parents:
                return f"~/{cwd.name}"
        return cwd.name or "/"
