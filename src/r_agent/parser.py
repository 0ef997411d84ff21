"""
Parsing of model output into typed ReAct steps.

A completion either asks for an action::

    Thought: I should look this up
    Action: search
    Action Input: spider legs

or ends the run::

    Thought: I now know the final answer
    Final Answer: eight

The first occurrence of each marker wins; repeated markers later in the
same completion are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import ParseError

THOUGHT = "Thought:"
ACTION = "Action:"
ACTION_INPUT = "Action Input:"
OBSERVATION = "Observation:"
FINAL_ANSWER = "Final Answer:"


@dataclass(frozen=True)
class ContinueStep:
    """The model wants ``action`` run with ``action_input``."""

    thought: str
    action: str
    action_input: str

    kind = "continue"


@dataclass(frozen=True)
class FinalStep:
    """The model produced its final answer."""

    thought: str
    final_answer: str

    kind = "final"


Step = Union[ContinueStep, FinalStep]


def _thought_before(text: str, end: int) -> str:
    """The last Thought: segment before ``end``, cut at the next directive marker."""
    start = text.rfind(THOUGHT, 0, end)
    if start == -1:
        return ""
    start += len(THOUGHT)
    for marker in (ACTION, ACTION_INPUT, OBSERVATION):
        at = text.find(marker, start, end)
        if at != -1:
            end = at
    return text[start:end].strip()


def parse(text: str) -> Step:
    """
    Parse one completion into a step.

    Raises:
        ParseError: If the text holds neither a final answer nor a complete
            Action / Action Input pair.
    """
    final_at = text.find(FINAL_ANSWER)
    if final_at != -1:
        return FinalStep(
            thought=_thought_before(text, final_at),
            final_answer=text[final_at + len(FINAL_ANSWER) :].strip(),
        )

    action_at = text.find(ACTION)
    # "Action Input:" does not contain "Action:", so this never matches it.
    if action_at == -1:
        raise ParseError("No 'Final Answer:' or 'Action:' in model output", raw_text=text)

    name_start = action_at + len(ACTION)
    name_end = text.find("\n", name_start)
    if name_end == -1:
        name_end = len(text)
    action = text[name_start:name_end].strip()
    if not action:
        raise ParseError("Empty action name in model output", raw_text=text)

    input_at = text.find(ACTION_INPUT, name_end)
    if input_at == -1:
        raise ParseError("'Action:' without a following 'Action Input:'", raw_text=text)

    input_start = input_at + len(ACTION_INPUT)
    input_end = text.find(OBSERVATION, input_start)
    if input_end == -1:
        input_end = len(text)

    return ContinueStep(
        thought=_thought_before(text, action_at),
        action=action,
        action_input=text[input_start:input_end].strip(),
    )


def format_step(step: Step) -> str:
    """Render a step as completion text; ``parse(format_step(s)) == s``."""
    if isinstance(step, FinalStep):
        return f"{THOUGHT} {step.thought}\n{FINAL_ANSWER} {step.final_answer}\n"
    return (
        f"{THOUGHT} {step.thought}\n"
        f"{ACTION} {step.action}\n"
        f"{ACTION_INPUT} {step.action_input}\n"
    )


class ResponseParser:
    """Object wrapper around `parse` so the loop can take a custom parser."""

    def parse(self, text: str) -> Step:
        return parse(text)


__all__ = [
    "THOUGHT",
    "ACTION",
    "ACTION_INPUT",
    "OBSERVATION",
    "FINAL_ANSWER",
    "ContinueStep",
    "FinalStep",
    "Step",
    "parse",
    "format_step",
    "ResponseParser",
]
