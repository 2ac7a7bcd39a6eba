"""Session history and its compaction into a bounded model context."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from askshell.agent.models import Turn

LOGGER = logging.getLogger(__name__)

MAX_CONTEXT_TOKENS = 3000
TOKEN_ESTIMATE_RATIO = 4
SIZE_OUTPUT_CEILING = 500
COMPACT_OUTPUT_LIMIT = 200
CONTEXT_HEADER = "Previous commands and outputs in this session:\n\n"
TRUNCATION_MARKER = "... (truncated)"


def estimate_tokens(text: str) -> int:
    """Rough token count (chars / 4); a budgeting heuristic, not a tokenizer."""
    return len(text) // TOKEN_ESTIMATE_RATIO


def estimate_total_size(turns: Sequence[Turn]) -> int:
    """Character size of the history as compaction would see it.

    Outputs count at most ``SIZE_OUTPUT_CEILING`` characters each.
    """
    total = 0
    for turn in turns:
        total += len(turn.prompt)
        total += sum(len(command) for command in turn.commands)
        total += sum(min(len(output), SIZE_OUTPUT_CEILING) for output in turn.outputs)
    return total


def render_turn(turn: Turn) -> str:
    lines = [f"User: {turn.prompt}"]
    lines.extend(f"Command: {command}" for command in turn.commands)
    for output in turn.outputs:
        if not output:
            continue
        if len(output) > COMPACT_OUTPUT_LIMIT:
            output = f"{output[:COMPACT_OUTPUT_LIMIT]}{TRUNCATION_MARKER}"
        lines.append(f"Output: {output}")
    return "\n".join(lines) + "\n\n"


def compact_history(turns: Sequence[Turn]) -> str:
    """Render the most recent turns that fit in ``MAX_CONTEXT_TOKENS``.

    Turns are considered newest first and the walk stops at the first one that
    does not fit, so an old turn is never included in place of a newer one.
    The result reads oldest to newest.
    """
    total_tokens = estimate_tokens(CONTEXT_HEADER)
    included: list[str] = []
    for turn in reversed(turns):
        block = render_turn(turn)
        block_tokens = estimate_tokens(block)
        if total_tokens + block_tokens > MAX_CONTEXT_TOKENS:
            break
        total_tokens += block_tokens
        included.append(block)
    included.reverse()

    context = CONTEXT_HEADER
    if len(included) < len(turns):
        context += (
            f"(Note: Showing recent {len(included)} of {len(turns)} total interactions"
            " due to length)\n\n"
        )
        LOGGER.debug(
            "history_compacted",
            extra={
                "turns_total": len(turns),
                "turns_included": len(included),
                "estimated_tokens": total_tokens,
            },
        )
    return context + "".join(included)


class HistoryManager:
    """Append-only list of turns for one interactive session."""

    def __init__(self, turns: Sequence[Turn] | None = None) -> None:
        self._turns: list[Turn] = list(turns) if turns else []

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def record_turn(self, turn: Turn) -> None:
        self._turns.append(turn)
        LOGGER.debug(
            "turn_recorded",
            extra={"prompt_length": len(turn.prompt), "commands": len(turn.commands)},
        )

    def reset(self) -> None:
        self._turns.clear()

    def estimate_total_size(self) -> int:
        return estimate_total_size(self._turns)

    def compact(self) -> str:
        return compact_history(self._turns)

    def needs_compaction_notice(self) -> bool:
        """True once the history no longer fits the context budget whole.

        Compared in estimated tokens, the same unit ``compact`` budgets in.
        """
        return self.estimate_total_size() // TOKEN_ESTIMATE_RATIO > MAX_CONTEXT_TOKENS
