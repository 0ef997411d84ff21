"""
Tool system for the agent loop.

Provides the tool capability interface, the name -> tool registry and a
decorator for defining tools from functions.
"""

from .base import Observation, Tool, ToolCall, ToolCapability, ToolRegistry, tool_from_function
from .decorators import tool

__all__ = [
    "ToolCapability",
    "Tool",
    "ToolCall",
    "Observation",
    "ToolRegistry",
    "tool_from_function",
    "tool",
]
