"""Review model-proposed commands one at a time before running them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from askshell.agent.models import Confirmation, ReviewResult
from askshell.errors import ExecError
from askshell.llm.client import COMMENT_MARKER, is_comment
from askshell.shell import ShellAdapter
from askshell.theme import Theme

ReadLine = Callable[[str], str]
Write = Callable[[str], None]

ESCAPE = "\x1b"
ACCEPT_TOKENS = frozenset({"", "y", "yes"})
DECLINE_TOKENS = frozenset({"n", "no"})
SKIP_TOKENS = frozenset({"s", "skip"})
DIVERT_TOKENS = frozenset({"i", "instruct"})
INVALID_RESPONSE_TEXT = "Invalid response. Please use Y(es), n(o), s(kip), or i(nstruct)."

LOGGER = logging.getLogger(__name__)


def parse_confirmation(line: str) -> Confirmation | None:
    """Map one answer line to an outcome, or None when it is not recognised.

    A divert answer comes back with an empty side command; the caller reads
    the side command separately.
    """
    if ESCAPE in line:
        return Confirmation.decline()
    token = line.strip().lower()
    if token in ACCEPT_TOKENS:
        return Confirmation.accept()
    if token in DECLINE_TOKENS:
        return Confirmation.decline()
    if token in SKIP_TOKENS:
        return Confirmation.skip()
    if token in DIVERT_TOKENS:
        return Confirmation.divert("")
    return None


class ConfirmationPrompt:
    """Asks ``run> <command>?  [Y/n/s/i]`` until a recognised answer arrives."""

    def __init__(self, *, read_line: ReadLine, write: Write, theme: Theme) -> None:
        self.read_line = read_line
        self.write = write
        self.theme = theme

    def ask(self, command: str) -> Confirmation:
        query = (
            f"{self.theme.prompt_text('run>')} {self.theme.command_text(command)}?  [Y/n/s/i]  "
        )
        while True:
            try:
                answer = self.read_line(query)
            except EOFError:
                return Confirmation.decline()

            outcome = parse_confirmation(answer)
            if outcome is None:
                self.write(INVALID_RESPONSE_TEXT)
                continue
            if outcome.kind != "divert":
                return outcome
            try:
                side_command = self.read_line(f"{self.theme.prompt_text('enter>')} ")
            except EOFError:
                side_command = ""
            return Confirmation.divert(side_command)


class CommandReviewer:
    """Walks one model response through confirmation and execution."""

    def __init__(
        self,
        *,
        prompt: ConfirmationPrompt,
        shell: ShellAdapter,
        write: Write,
        theme: Theme,
        working_directory: str | None = None,
    ) -> None:
        self.prompt = prompt
        self.shell = shell
        self.write = write
        self.theme = theme
        self.working_directory = working_directory

    def review(self, lines: Sequence[str]) -> ReviewResult:
        """Confirm and run each proposed command in order.

        When the walk stops early the commands that already ran stay in the
        result and ``cancelled`` is set.
        """
        result = ReviewResult()
        if all(is_comment(line) for line in lines):
            for line in lines:
                self._show_comment(line)
            return result

        try:
            for line in lines:
                if is_comment(line):
                    self._show_comment(line)
                    continue
                if not self._review_command(line, result):
                    result.cancelled = True
                    break
        except KeyboardInterrupt:
            self.write("^C")
            result.cancelled = True
        if result.cancelled:
            self.write("Command execution cancelled")
        return result

    def _review_command(self, command: str, result: ReviewResult) -> bool:
        """Resolve one proposed command; False means the rest of the walk stops."""
        diverted = False
        while True:
            outcome = self.prompt.ask(command)
            LOGGER.debug(
                "confirmation_resolved",
                extra={"outcome": outcome.kind, "diverted": diverted},
            )
            if outcome.kind == "accept":
                return self._run_recorded(command, result)
            if outcome.kind == "decline":
                return False
            if outcome.kind == "skip":
                self.write(f"Skipping command: {self.theme.command_text(command)}")
                return True
            if diverted:
                self.write("Nested instruct not allowed. Skipping command.")
                return True

            diverted = True
            if outcome.side_command:
                side_command = self.theme.command_text(outcome.side_command)
                self.write(f"Running custom command: {side_command}")
                self._run_side_command(outcome.side_command)
            self.write("\nReturning to original command:")

    def _run_recorded(self, command: str, result: ReviewResult) -> bool:
        try:
            output = self.shell.run(command, cwd=self.working_directory)
        except ExecError as exc:
            self.write(f"Error: {exc}")
            result.record(command, exc.output)
            return False
        result.record(command, output)
        return True

    def _run_side_command(self, command: str) -> None:
        try:
            self.shell.run(command, cwd=self.working_directory)
        except ExecError as exc:
            self.write(f"Error: {exc}")

    def _show_comment(self, line: str) -> None:
        self.write(self.theme.helper_text(line.lstrip(COMMENT_MARKER).strip()) + "\n")
