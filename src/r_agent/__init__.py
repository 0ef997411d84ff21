"""
r-agent: a minimal ReAct reasoning agent.

Builds a ReAct prompt, sends it to a text completion endpoint, parses the
model's Thought / Action / Action Input / Final Answer output, dispatches
actions to registered tools and feeds their observations back until the
model answers.

Nothing is read from the environment on import; use `load_env()` and
`ClientConfig.from_env()` (or `Settings.from_env()`) explicitly.
"""

from .agent import AgentLimits, AgentLoop, AgentResult, AgentState, Transcript, run
from .cancellation import CancellationToken, CancelledError
from .config import ClientConfig, LoggingConfig, Settings, load_env, load_key
from .errors import (
    AgentCancelledError,
    AgentError,
    ApiError,
    ConfigurationError,
    DecodeError,
    IterationLimitExceeded,
    MissingCredentialError,
    ParseError,
    RAgentError,
    TransportError,
    UnknownToolError,
    UnknownToolLimitExceeded,
    UnparsableOutputError,
    UpstreamError,
)
from .logging import StructuredLogger, configure_logging, get_logger
from .parser import ContinueStep, FinalStep, ResponseParser, Step, format_step, parse
from .prompt import AgentPrompt, FewShotExample, FewShotPrompt, PromptStrategy
from .providers import CompletionBackend, CompletionClient, CompletionResponse
from .tools import Observation, Tool, ToolCall, ToolRegistry, tool, tool_from_function

__version__ = "0.1.0"

__all__ = [
    # Agent
    "AgentLoop",
    "AgentLimits",
    "AgentResult",
    "AgentState",
    "Transcript",
    "run",
    # Prompt
    "AgentPrompt",
    "FewShotPrompt",
    "FewShotExample",
    "PromptStrategy",
    # Parser
    "parse",
    "format_step",
    "ResponseParser",
    "ContinueStep",
    "FinalStep",
    "Step",
    # Client
    "CompletionBackend",
    "CompletionClient",
    "CompletionResponse",
    # Tools
    "Tool",
    "ToolCall",
    "ToolRegistry",
    "Observation",
    "tool",
    "tool_from_function",
    # Config
    "ClientConfig",
    "LoggingConfig",
    "Settings",
    "load_env",
    "load_key",
    # Logging
    "StructuredLogger",
    "get_logger",
    "configure_logging",
    # Cancellation
    "CancellationToken",
    "CancelledError",
    # Errors
    "RAgentError",
    "ConfigurationError",
    "MissingCredentialError",
    "TransportError",
    "ApiError",
    "DecodeError",
    "ParseError",
    "UnknownToolError",
    "AgentError",
    "UpstreamError",
    "UnparsableOutputError",
    "UnknownToolLimitExceeded",
    "IterationLimitExceeded",
    "AgentCancelledError",
]
