"""
Transcript of one agent run.

The transcript is the growing context of a run: every step the model took,
every observation fed back, and any output that could not be parsed. It is
append-only and owned by a single run.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

from ..parser import ACTION, ACTION_INPUT, FINAL_ANSWER, OBSERVATION, ContinueStep, FinalStep
from ..prompt import TRAILER
from ..tools.base import Observation


@dataclass(frozen=True)
class MalformedOutput:
    """A completion the parser rejected, kept so the model sees what it wrote."""

    raw_text: str

    kind = "malformed"


Entry = Union[ContinueStep, FinalStep, MalformedOutput, Observation]


def _continue_thought(thought: str) -> str:
    # Entries continue a "Thought:" the prompt already opened.
    return f" {thought}\n" if thought else "\n"


def render_entry(entry: Entry) -> str:
    """Render one entry as the prompt text that follows the previous one."""
    if isinstance(entry, ContinueStep):
        return (
            _continue_thought(entry.thought)
            + f"{ACTION} {entry.action}\n"
            + f"{ACTION_INPUT} {entry.action_input}\n"
        )
    if isinstance(entry, FinalStep):
        return _continue_thought(entry.thought) + f"{FINAL_ANSWER} {entry.final_answer}\n"
    if isinstance(entry, MalformedOutput):
        return _continue_thought(entry.raw_text.strip())
    return f"{OBSERVATION} {entry.text}\n{TRAILER}"


def entry_to_dict(entry: Entry) -> dict[str, Any]:
    if isinstance(entry, ContinueStep):
        return {
            "type": "continue",
            "thought": entry.thought,
            "action": entry.action,
            "action_input": entry.action_input,
        }
    if isinstance(entry, FinalStep):
        return {"type": "final", "thought": entry.thought, "final_answer": entry.final_answer}
    if isinstance(entry, MalformedOutput):
        return {"type": "malformed", "raw_text": entry.raw_text}
    return {
        "type": "observation",
        "text": entry.text,
        "is_error": entry.is_error,
        "synthetic": entry.synthetic,
    }


@dataclass
class Transcript:
    """Ordered, append-only record of a run."""

    _entries: list[Entry] = field(default_factory=list)

    def append(self, entry: Entry) -> None:
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> Entry:
        return self._entries[index]

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def observations(self) -> list[Observation]:
        return [e for e in self._entries if isinstance(e, Observation)]

    @property
    def steps(self) -> list[ContinueStep | FinalStep]:
        return [e for e in self._entries if isinstance(e, (ContinueStep, FinalStep))]

    def render(self) -> str:
        """Text appended after the rendered prompt for the next completion."""
        return "".join(render_entry(e) for e in self._entries)

    def to_dict(self) -> list[dict[str, Any]]:
        return [entry_to_dict(e) for e in self._entries]


__all__ = ["MalformedOutput", "Entry", "Transcript", "render_entry", "entry_to_dict"]
