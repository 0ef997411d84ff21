"""
Prompt scaffolds for the ReAct loop.

The agent loop only needs something that turns a question into prompt text
(`PromptStrategy.render`). `AgentPrompt` is the default ReAct scaffold;
`FewShotPrompt` prepends worked examples to it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

PLACEHOLDER = "{question}"
TRAILER = "Thought:"
BEGIN_MARKER = "Begin!"

DEFAULT_TOOL_NAMES: tuple[str, ...] = ("search", "calculator")

_TEMPLATE = """Answer the following questions as best you can.

Use the following format:

Question: the input question you must answer
Thought: you should always think about what to do
Action: the action to take, should be one of [{tool_names}]
Action Input: the input to the action
Observation: the result of the action
... (this Thought/Action/Action Input/Observation can repeat N times)
Thought: I now know the final answer
Final Answer: the final answer to the original input question

Begin!

Question: {question}
Thought:"""


def build_template(tool_names: Iterable[str] = DEFAULT_TOOL_NAMES) -> str:
    """Return the ReAct template listing ``tool_names`` as the allowed actions."""
    return _TEMPLATE.replace("{tool_names}", ", ".join(tool_names))


DEFAULT_PROMPT_TEMPLATE = build_template()


@runtime_checkable
class PromptStrategy(Protocol):
    """Anything that renders a question into the initial prompt text."""

    def render(self, question: str) -> str: ...


class AgentPrompt:
    """
    The fixed ReAct instruction template with a question substituted in.

    ``rendered`` is always the template with its first ``{question}``
    placeholder replaced by the question. The template itself is never
    modified by ``set_question``, so asking a second question leaves no
    trace of the first one.

    Example:
        ```python
        prompt = AgentPrompt()
        prompt.set_question("How many legs does a spider have?")
        text = prompt.rendered  # ends with "Question: How many ...?\\nThought:"
        ```
    """

    def __init__(self, template: str = DEFAULT_PROMPT_TEMPLATE) -> None:
        self._template = template
        self._question = ""
        self._rendered = template

    @classmethod
    def for_tools(cls, tool_names: Iterable[str]) -> AgentPrompt:
        """Create a prompt whose action list names ``tool_names``."""
        return cls(build_template(tool_names))

    @property
    def template(self) -> str:
        return self._template

    @property
    def question(self) -> str:
        return self._question

    @property
    def rendered(self) -> str:
        return self._rendered

    def set_question(self, question: str) -> None:
        """Store the question and re-render. The question is inserted as opaque text."""
        self._question = question
        self._rendered = self._template.replace(PLACEHOLDER, question, 1)

    def set_prompt(self, prompt: str) -> None:
        """
        Replace the template wholesale.

        ``rendered`` becomes ``prompt`` verbatim until the next
        ``set_question``, which substitutes into it if it has a placeholder.
        """
        self._template = prompt
        self._rendered = prompt

    def render(self, question: str) -> str:
        self.set_question(question)
        return self._rendered

    def __repr__(self) -> str:
        return f"AgentPrompt(question={self._question!r})"


@dataclass(frozen=True)
class FewShotExample:
    """One worked example shown to the model before the real question."""

    question: str
    transcript: str

    def format(self) -> str:
        return f"Question: {self.question}\n{TRAILER} {self.transcript.strip()}\n"


@dataclass
class FewShotPrompt:
    """
    ReAct scaffold with worked examples inserted before ``Begin!``.

    The examples are rendered in order; the base prompt still supplies the
    instructions and the final ``Question: ...\\nThought:`` trailer.
    """

    examples: Sequence[FewShotExample]
    base: AgentPrompt = field(default_factory=AgentPrompt)

    def render(self, question: str) -> str:
        rendered = self.base.render(question)
        if not self.examples:
            return rendered
        shots = "\n".join(example.format() for example in self.examples)
        head, sep, tail = rendered.partition(BEGIN_MARKER)
        if not sep:
            return f"{shots}\n{rendered}"
        return f"{head}Here are some examples:\n\n{shots}\n{sep}{tail}"


__all__ = [
    "PLACEHOLDER",
    "TRAILER",
    "DEFAULT_TOOL_NAMES",
    "DEFAULT_PROMPT_TEMPLATE",
    "build_template",
    "PromptStrategy",
    "AgentPrompt",
    "FewShotExample",
    "FewShotPrompt",
]
