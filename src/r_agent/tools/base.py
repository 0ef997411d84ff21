"""
Tool system for the agent loop.

This module provides:
- ToolCapability, the interface a tool satisfies (`invoke(input) -> str`)
- Tool, a named capability built from a sync or async function
- ToolRegistry, the name -> tool mapping the loop dispatches through
- ToolCall / Observation, the values flowing in and out of a dispatch
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

from ..concurrency import run_sync
from ..errors import ToolExecutionError, UnknownToolError

ToolHandler = Callable[[str], Union[str, Awaitable[str], Any]]


@runtime_checkable
class ToolCapability(Protocol):
    """Anything the registry can dispatch to. ``invoke`` may be sync or async and may raise."""

    def invoke(self, input: str) -> Any: ...


@dataclass(frozen=True)
class ToolCall:
    """An action requested by the model."""

    name: str
    input: str


@dataclass(frozen=True)
class Observation:
    """
    Text fed back to the model after an action.

    Attributes:
        text: What the model sees after "Observation:"
        is_error: The tool failed or could not be found
        synthetic: Produced by the loop itself rather than a tool
    """

    text: str
    is_error: bool = False
    synthetic: bool = False

    @classmethod
    def from_error(cls, error: BaseException | str, *, synthetic: bool = False) -> Observation:
        if isinstance(error, ToolExecutionError):
            message = error.message
        elif isinstance(error, BaseException):
            message = f"{type(error).__name__}: {error}"
        else:
            message = error
        return cls(text=f"Error: {message}", is_error=True, synthetic=synthetic)


@dataclass
class Tool:
    """
    A named capability the agent can call.

    Attributes:
        name: Action name the model uses (exact match)
        description: One-line description for prompts
        handler: Function taking the action input text; sync or async

    Example:
        ```python
        async def search(query: str) -> str:
            return f"Results for: {query}"

        search_tool = Tool(name="search", description="Search the web", handler=search)
        ```
    """

    name: str
    description: str
    handler: ToolHandler

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Tool name cannot be empty")
        if "\n" in self.name:
            raise ValueError("Tool name cannot contain newlines")

    async def invoke(self, input: str) -> str:
        """Run the handler. Sync handlers run in the shared worker pool."""
        if asyncio.iscoroutinefunction(self.handler):
            result = await self.handler(input)
        else:
            result = await run_sync(self.handler, input)
            if inspect.isawaitable(result):
                result = await result
        return result if isinstance(result, str) else str(result)


class ToolRegistry:
    """
    Registry mapping action names to tools.

    Example:
        ```python
        registry = ToolRegistry()
        registry.register(search_tool)
        registry.register_capability("calculator", Calculator())

        observation = await registry.dispatch("search", "python asyncio")
        ```
    """

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, ToolCapability] = {}
        self._descriptions: dict[str, str] = {}

        if tools:
            for tool in tools:
                self.register(tool)

    def register(self, tool: Tool) -> ToolRegistry:
        """
        Register a tool under its own name.

        Returns:
            Self for chaining

        Raises:
            ValueError: If a tool with the same name already exists
        """
        return self.register_capability(tool.name, tool, description=tool.description)

    def register_capability(
        self,
        name: str,
        capability: ToolCapability,
        *,
        description: str = "",
    ) -> ToolRegistry:
        """Register any object with an ``invoke(input)`` method under ``name``."""
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        if not callable(getattr(capability, "invoke", None)):
            raise TypeError(f"Tool '{name}' has no invoke() method")

        self._tools[name] = capability
        self._descriptions[name] = description
        return self

    def unregister(self, name: str) -> bool:
        """Remove a tool; returns False if it was not registered."""
        if name in self._tools:
            del self._tools[name]
            del self._descriptions[name]
            return True
        return False

    def get(self, name: str) -> ToolCapability | None:
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        """One ``name: description`` line per tool, for prompts."""
        return "\n".join(
            f"{name}: {desc}" if desc else name for name, desc in self._descriptions.items()
        )

    async def dispatch(self, name: str, input: str) -> Observation:
        """
        Run the tool registered as ``name`` on ``input``.

        A failing tool does not raise: its error becomes the observation
        text so the model can react to it.

        Raises:
            UnknownToolError: If no tool is registered under ``name``.
        """
        capability = self._tools.get(name)
        if capability is None:
            raise UnknownToolError(name=name, available=self.names)

        try:
            result = capability.invoke(input)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return Observation.from_error(e)

        return Observation(text=result if isinstance(result, str) else str(result))

    async def dispatch_call(self, call: ToolCall) -> Observation:
        return await self.dispatch(call.name, call.input)


def tool_from_function(
    func: Callable[[str], Any],
    *,
    name: str | None = None,
    description: str | None = None,
) -> Tool:
    """
    Create a Tool from a function taking the action input text.

    The name defaults to the function name and the description to the first
    paragraph of its docstring.
    """
    doc = description
    if not doc and func.__doc__:
        doc = inspect.cleandoc(func.__doc__).split("\n\n")[0].replace("\n", " ").strip()

    return Tool(
        name=name or func.__name__,
        description=doc or f"Execute {func.__name__}",
        handler=func,
    )


__all__ = [
    "ToolCapability",
    "ToolCall",
    "Observation",
    "Tool",
    "ToolRegistry",
    "tool_from_function",
]
