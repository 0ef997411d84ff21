"""
Error taxonomy for r-agent.

This module provides a hierarchical exception system with:
- Error codes for programmatic handling
- Retryable vs non-retryable classification
- Structured context for debugging
- Agent errors that carry the transcript of the failed run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .agent.transcript import Transcript


class ErrorCode(str, Enum):
    """Standardized error codes for r-agent."""

    # Completion endpoint errors (1xxx)
    COMPLETION_ERROR = "ERR_1000"
    TRANSPORT = "ERR_1001"
    API_STATUS = "ERR_1002"
    DECODE = "ERR_1003"

    # Model output errors (2xxx)
    PARSE_ERROR = "ERR_2000"

    # Tool errors (4xxx)
    TOOL_ERROR = "ERR_4000"
    TOOL_NOT_FOUND = "ERR_4001"
    TOOL_EXECUTION_ERROR = "ERR_4002"

    # Agent errors (5xxx)
    AGENT_ERROR = "ERR_5000"
    UPSTREAM = "ERR_5001"
    UNPARSABLE_OUTPUT = "ERR_5002"
    UNKNOWN_TOOL_LIMIT = "ERR_5003"
    ITERATION_LIMIT = "ERR_5004"
    CANCELLED = "ERR_5005"

    # Configuration errors (6xxx)
    CONFIG_ERROR = "ERR_6000"
    MISSING_CREDENTIAL = "ERR_6001"
    INVALID_CONFIG = "ERR_6002"

    # Internal errors (9xxx)
    INTERNAL_ERROR = "ERR_9000"


RETRYABLE_STATUSES: tuple[int, ...] = (408, 409, 429, 500, 502, 503, 504)


@dataclass
class ErrorContext:
    """Structured context for error debugging."""

    request_id: str | None = None
    model: str | None = None
    attempt: int = 1
    iteration: int | None = None
    operation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "model": self.model,
            "attempt": self.attempt,
            "iteration": self.iteration,
            "operation": self.operation,
            **self.extra,
        }


class RAgentError(Exception):
    """
    Base exception for all r-agent errors.

    Attributes:
        code: Standardized error code for programmatic handling
        message: Human-readable error message
        retryable: Whether the operation can be retried
        context: Structured debugging context
        cause: Original exception that caused this error
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable
        self.context = context or ErrorContext()
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.context.request_id:
            parts.append(f"(request_id={self.context.request_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(RAgentError):
    """Base class for configuration errors. Fatal, never retried."""

    code = ErrorCode.CONFIG_ERROR
    retryable = False


class MissingCredentialError(ConfigurationError):
    """Required API credential is not set."""

    code = ErrorCode.MISSING_CREDENTIAL

    def __init__(
        self,
        message: str = "API credential not found",
        *,
        env_var: str | None = None,
        **kwargs,
    ):
        if env_var and message == "API credential not found":
            message = f"API credential not found: set {env_var}"
        super().__init__(message, **kwargs)
        self.env_var = env_var


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""

    code = ErrorCode.INVALID_CONFIG


# =============================================================================
# Completion Endpoint Errors
# =============================================================================


class CompletionError(RAgentError):
    """Base class for failures of a completion call."""

    code = ErrorCode.COMPLETION_ERROR
    retryable = False


class TransportError(CompletionError):
    """Timeout, connection reset or name resolution failure. Retryable."""

    code = ErrorCode.TRANSPORT
    retryable = True

    def __init__(
        self,
        message: str = "Transport failure",
        *,
        timeout: bool = False,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class ApiError(CompletionError):
    """The endpoint answered with a non-2xx status."""

    code = ErrorCode.API_STATUS

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int,
        body: Any = None,
        **kwargs,
    ):
        kwargs.setdefault("retryable", status in RETRYABLE_STATUSES)
        super().__init__(message or f"API returned status {status}", **kwargs)
        self.status = status
        self.body = body


class DecodeError(CompletionError):
    """The response body does not match the completion wire format."""

    code = ErrorCode.DECODE
    retryable = False

    def __init__(
        self,
        message: str = "Malformed completion response",
        *,
        body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.body = body


# =============================================================================
# Model Output Errors
# =============================================================================


class ParseError(RAgentError):
    """Completion text holds neither a final answer nor an action directive."""

    code = ErrorCode.PARSE_ERROR
    retryable = True

    def __init__(
        self,
        message: str = "Could not parse model output",
        *,
        raw_text: str = "",
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.raw_text = raw_text


# =============================================================================
# Tool Errors
# =============================================================================


class ToolError(RAgentError):
    """Base class for tool-related errors."""

    code = ErrorCode.TOOL_ERROR
    retryable = False


class UnknownToolError(ToolError):
    """Requested action name is not registered."""

    code = ErrorCode.TOOL_NOT_FOUND

    def __init__(
        self,
        message: str | None = None,
        *,
        name: str,
        available: list[str] | None = None,
        **kwargs,
    ):
        super().__init__(message or f"Unknown tool: {name}", **kwargs)
        self.name = name
        self.available = list(available or [])


class ToolExecutionError(ToolError):
    """
    Raised by a tool to report a failure in its own words.

    The registry feeds ``message`` back to the model as-is, without the
    exception type prefix other tool exceptions get.
    """

    code = ErrorCode.TOOL_EXECUTION_ERROR

    def __init__(
        self,
        message: str = "Tool execution failed",
        *,
        tool_name: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


# =============================================================================
# Agent Errors
# =============================================================================


class AgentError(RAgentError):
    """
    Base class for every error an agent run can end with.

    Carries what is needed to debug the run offline: the transcript built so
    far, the number of dispatched iterations and the last raw completion.
    """

    code = ErrorCode.AGENT_ERROR
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        transcript: Transcript | None = None,
        iterations: int = 0,
        last_completion: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.transcript = transcript
        self.iterations = iterations
        self.last_completion = last_completion

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["iterations"] = self.iterations
        d["last_completion"] = self.last_completion
        d["transcript"] = self.transcript.to_dict() if self.transcript is not None else None
        return d


class UpstreamError(AgentError):
    """The completion endpoint kept failing or broke its contract."""

    code = ErrorCode.UPSTREAM


class UnparsableOutputError(AgentError):
    """The model kept producing output that could not be parsed."""

    code = ErrorCode.UNPARSABLE_OUTPUT


class UnknownToolLimitExceeded(AgentError):
    """The model kept asking for tools that are not registered."""

    code = ErrorCode.UNKNOWN_TOOL_LIMIT


class IterationLimitExceeded(AgentError):
    """The run dispatched the maximum number of actions without a final answer."""

    code = ErrorCode.ITERATION_LIMIT

    def __init__(
        self,
        message: str = "Maximum iterations exceeded",
        *,
        max_iterations: int | None = None,
        **kwargs,
    ):
        if max_iterations is not None and message == "Maximum iterations exceeded":
            message = f"Maximum iterations exceeded ({max_iterations})"
        super().__init__(message, **kwargs)
        self.max_iterations = max_iterations


class AgentCancelledError(AgentError):
    """The run was cancelled through its cancellation token."""

    code = ErrorCode.CANCELLED


# =============================================================================
# Utilities
# =============================================================================


def error_from_status(
    status: int,
    body: Any = None,
    *,
    message: str | None = None,
    context: ErrorContext | None = None,
) -> ApiError:
    """
    Create an ApiError from an HTTP status code.

    Retryability follows RETRYABLE_STATUSES.
    """
    return ApiError(message, status=status, body=body, context=context)


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is retryable.

    Args:
        error: Exception to check

    Returns:
        True if the error is retryable
    """
    if isinstance(error, RAgentError):
        return error.retryable

    import asyncio

    retryable_types = (
        asyncio.TimeoutError,
        ConnectionError,
        TimeoutError,
    )
    return isinstance(error, retryable_types)


__all__ = [
    # Base
    "ErrorCode",
    "ErrorContext",
    "RAgentError",
    "RETRYABLE_STATUSES",
    # Config errors
    "ConfigurationError",
    "MissingCredentialError",
    "InvalidConfigError",
    # Completion errors
    "CompletionError",
    "TransportError",
    "ApiError",
    "DecodeError",
    # Output errors
    "ParseError",
    # Tool errors
    "ToolError",
    "UnknownToolError",
    "ToolExecutionError",
    # Agent errors
    "AgentError",
    "UpstreamError",
    "UnparsableOutputError",
    "UnknownToolLimitExceeded",
    "IterationLimitExceeded",
    "AgentCancelledError",
    # Utilities
    "error_from_status",
    "is_retryable",
]
