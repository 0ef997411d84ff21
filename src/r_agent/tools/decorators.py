"""
Decorator for turning plain functions into tools.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar, overload

from .base import Tool, tool_from_function

F = TypeVar("F", bound=Callable[[str], Any])


@overload
def tool(func: F) -> Tool: ...


@overload
def tool(
    *,
    name: str | None = None,
    description: str | None = None,
) -> Callable[[F], Tool]: ...


def tool(
    func: F | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
) -> Tool | Callable[[F], Tool]:
    """
    Convert a function of one text argument into a Tool.

    Works on sync and async functions, with or without arguments:

    ```python
    @tool
    async def search(query: str) -> str:
        '''Search for information.'''
        return f"Results for {query}"

    @tool(name="calculator", description="Evaluate an arithmetic expression")
    def calc(expression: str) -> str:
        ...
    ```
    """

    def decorator(fn: F) -> Tool:
        return tool_from_function(fn, name=name, description=description)

    if func is not None:
        return decorator(func)

    return decorator


__all__ = ["tool"]
