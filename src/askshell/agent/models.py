"""Data models shared by the classifier, history and confirmation flow."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

ConfirmationKind = Literal["accept", "decline", "skip", "divert"]


@dataclass(frozen=True, slots=True)
class Turn:
    """One completed input cycle: the prompt and what actually ran for it."""

    prompt: str
    commands: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        if len(self.commands) != len(self.outputs):
            msg = (
                f"turn has {len(self.commands)} commands but {len(self.outputs)} outputs"
            )
            raise ValueError(msg)

    @classmethod
    def from_run(cls, prompt: str, commands: Sequence[str], outputs: Sequence[str]) -> Turn:
        return cls(prompt=prompt, commands=tuple(commands), outputs=tuple(outputs))


@dataclass(frozen=True, slots=True)
class Confirmation:
    """User answer to a single proposed command."""

    kind: ConfirmationKind
    side_command: str = ""

    @classmethod
    def accept(cls) -> Confirmation:
        return cls("accept")

    @classmethod
    def decline(cls) -> Confirmation:
        return cls("decline")

    @classmethod
    def skip(cls) -> Confirmation:
        return cls("skip")

    @classmethod
    def divert(cls, side_command: str) -> Confirmation:
        return cls("divert", side_command.strip())


@dataclass(frozen=True, slots=True)
class DirectDecision:
    """Whether input may bypass the model, and the command to run if so."""

    direct: bool
    rewritten: str


@dataclass(slots=True)
class ReviewResult:
    """Commands executed while reviewing one model response.

    ``cancelled`` is set when the walk stopped before the last proposed command.
    """

    commands: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    cancelled: bool = False

    def record(self, command: str, output: str) -> None:
        self.commands.append(command)
        self.outputs.append(output)
