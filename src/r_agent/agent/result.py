"""
Agent result types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .transcript import Transcript


class AgentState(str, Enum):
    """States of the ReAct loop."""

    START = "start"
    PROMPTING = "prompting"
    AWAITING_COMPLETION = "awaiting_completion"
    PARSING = "parsing"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"


@dataclass
class AgentResult:
    """Successful end of a run."""

    final_answer: str
    thought: str
    transcript: Transcript
    iterations: int = 0
    run_id: str | None = None
    states: list[AgentState] = field(default_factory=list)

    @property
    def num_steps(self) -> int:
        return len(self.transcript.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "final_answer": self.final_answer,
            "thought": self.thought,
            "iterations": self.iterations,
            "states": [s.value for s in self.states],
            "transcript": self.transcript.to_dict(),
        }


__all__ = ["AgentState", "AgentResult"]
