"""
Structured logging for agent runs.

This module provides:
- A logger that emits one structured record per event, as JSON or text
- Typed records for completions, tool dispatches and loop transitions
- Run and trace correlation through LogContext
- Redaction and truncation helpers so credentials and whole prompts stay
  out of log lines
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config.logging import LoggingConfig


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _compact(record: Any) -> dict[str, Any]:
    return {k: v for k, v in asdict(record).items() if v is not None}


# =============================================================================
# Log Records
# =============================================================================


@dataclass
class LogContext:
    """Correlation fields added to every record of a run."""

    trace_id: str | None = None
    run_id: str | None = None
    model: str | None = None
    iteration: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extra"}
        d = {k: v for k, v in d.items() if v is not None}
        d.update(self.extra)
        return d

    def with_update(self, **kwargs) -> LogContext:
        """Copy with the given fields replaced; ``extra`` is merged."""
        extra = {**self.extra, **kwargs.pop("extra", {})}
        values = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extra"}
        values.update(kwargs)
        return LogContext(**values, extra=extra)

    def merged(self, other: LogContext | None) -> LogContext:
        """Fields set on ``other`` win; unset ones fall back to this context."""
        if other is None:
            return self
        overrides = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if f.name != "extra" and getattr(other, f.name) is not None
        }
        return self.with_update(extra=other.extra, **overrides)


@dataclass
class CompletionLog:
    """One completion attempt."""

    model: str
    attempt: int = 1

    timestamp: str = field(default_factory=_utcnow)
    duration_ms: float | None = None

    prompt_chars: int = 0
    completion_chars: int = 0

    success: bool = True
    error: str | None = None
    completion_preview: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


@dataclass
class ToolCallLog:
    """One tool dispatch."""

    tool_name: str
    input_preview: str | None = None

    timestamp: str = field(default_factory=_utcnow)
    duration_ms: float | None = None

    success: bool = True
    error: str | None = None

    output_preview: str | None = None
    output_length: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


@dataclass
class StepLog:
    """One state transition of the agent loop."""

    state: str
    iteration: int
    step_kind: str | None = None
    detail: str | None = None

    timestamp: str = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return _compact(self)


# =============================================================================
# Structured Logger
# =============================================================================


class StructuredLogger:
    """
    Wrapper over a stdlib logger that emits structured records.

    Records carry the logger's ambient context (see `trace_context`) merged
    with the context passed to each call, so a caller can tag several agent
    runs with one trace ID.

    Example:
        ```python
        logger = StructuredLogger("r_agent", json_output=True)

        with logger.trace_context(user="alice"):
            result = await AgentLoop(client, logger=logger).run(question, tools)
        ```
    """

    def __init__(
        self,
        name: str = "r_agent",
        level: str = "INFO",
        json_output: bool = False,
        log_file: str | None = None,
        log_prompts: bool = False,
        log_completions: bool = True,
        log_tool_calls: bool = True,
    ):
        self.name = name
        self.json_output = json_output
        self.log_prompts = log_prompts
        self.log_completions = log_completions
        self.log_tool_calls = log_tool_calls

        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper()))
        self._context = LogContext()

        # Loggers are process-wide; attach a handler only once per name.
        if not self._logger.handlers:
            handler: logging.Handler
            if log_file:
                handler = logging.FileHandler(log_file)
            else:
                handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
            self._logger.addHandler(handler)

    @classmethod
    def from_config(cls, config: LoggingConfig, name: str = "r_agent") -> StructuredLogger:
        return cls(
            name=name,
            level=config.level,
            json_output=config.format == "json",
            log_file=str(config.log_file) if config.log_file else None,
            log_prompts=config.log_prompts,
            log_completions=config.log_completions,
            log_tool_calls=config.log_tool_calls,
        )

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @contextmanager
    def trace_context(self, trace_id: str | None = None, **extra: Any) -> Iterator[str]:
        """
        Tag every record emitted inside the block.

        Args:
            trace_id: Correlation ID; one is generated when omitted
            **extra: Additional fields for every record

        Yields:
            The trace ID in use
        """
        trace_id = trace_id or generate_trace_id()
        saved = self._context
        self._context = saved.with_update(trace_id=trace_id, extra=extra)
        try:
            yield trace_id
        finally:
            self._context = saved

    def _log(
        self,
        level: int,
        message: str,
        event_type: str | None = None,
        data: dict[str, Any] | None = None,
        context: LogContext | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return

        record: dict[str, Any] = {"message": message, **self._context.merged(context).to_dict()}
        if event_type:
            record["event_type"] = event_type
        if data:
            record.update(data)

        if self.json_output:
            self._logger.log(level, json.dumps(record, default=str))
            return
        fields_text = " ".join(f"{k}={v}" for k, v in record.items() if k != "message")
        self._logger.log(level, f"{message} {fields_text}".rstrip())

    def debug(self, message: str, **data) -> None:
        self._log(logging.DEBUG, message, data=data)

    def info(self, message: str, **data) -> None:
        self._log(logging.INFO, message, data=data)

    def warning(self, message: str, **data) -> None:
        self._log(logging.WARNING, message, data=data)

    def error(self, message: str, **data) -> None:
        self._log(logging.ERROR, message, data=data)

    # Typed records

    def log_prompt(self, prompt: str, context: LogContext | None = None) -> None:
        """Prompt text at DEBUG, truncated. Disabled unless ``log_prompts``."""
        if not self.log_prompts:
            return
        self._log(
            logging.DEBUG,
            f"Prompt ({len(prompt)} chars)",
            event_type="prompt",
            data={"prompt": truncate_for_log(prompt, 500)},
            context=context,
        )

    def log_completion(self, record: CompletionLog, context: LogContext | None = None) -> None:
        if not self.log_completions:
            return
        message = f"Completion from {record.model}"
        if record.duration_ms is not None:
            message += f" ({record.duration_ms:.0f}ms)"
        self._log(
            logging.INFO if record.success else logging.WARNING,
            message,
            event_type="completion",
            data=record.to_dict(),
            context=context,
        )

    def log_tool_call(self, record: ToolCallLog, context: LogContext | None = None) -> None:
        if not self.log_tool_calls:
            return
        self._log(
            logging.INFO if record.success else logging.WARNING,
            f"Tool '{record.tool_name}' dispatched",
            event_type="tool_call",
            data=record.to_dict(),
            context=context,
        )

    def log_step(self, record: StepLog, context: LogContext | None = None) -> None:
        self._log(
            logging.DEBUG,
            f"State {record.state}",
            event_type="step",
            data=record.to_dict(),
            context=context,
        )

    def log_error(
        self,
        error: Exception,
        message: str | None = None,
        context: LogContext | None = None,
        **data,
    ) -> None:
        """Log an exception; r-agent errors contribute code, retryability and context."""
        details: dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        code = getattr(error, "code", None)
        if code is not None:
            details["error_code"] = getattr(code, "value", str(code))
        if hasattr(error, "retryable"):
            details["retryable"] = error.retryable
        error_context = getattr(error, "context", None)
        if error_context is not None and hasattr(error_context, "to_dict"):
            details["error_context"] = error_context.to_dict()
        details.update(data)

        self._log(logging.ERROR, message or str(error), event_type="error", data=details, context=context)


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """One JSON object per line; structured messages are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "timestamp": _utcnow(),
            "level": record.levelname,
            "logger": record.name,
        }

        message = record.getMessage()
        try:
            payload = json.loads(message)
        except (json.JSONDecodeError, TypeError):
            payload = None
        if isinstance(payload, dict):
            out.update(payload)
        else:
            out["message"] = message

        if record.exc_info:
            out["exception"] = self.formatException(record.exc_info)
        return json.dumps(out, default=str)


class TextFormatter(logging.Formatter):
    """``HH:MM:SS.mmm LEVEL message``, colored by level when enabled."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        level = f"{record.levelname:8}"
        if self.use_color and record.levelname in self.COLORS:
            level = f"{self.COLORS[record.levelname]}{level}{self.RESET}"

        line = f"{stamp} {level} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Helpers
# =============================================================================


def generate_trace_id() -> str:
    return f"trace_{uuid.uuid4().hex[:16]}"


def generate_run_id() -> str:
    return f"run_{uuid.uuid4().hex[:12]}"


def redact_api_key(key: str | None) -> str:
    """Keep only the first and last four characters of a credential."""
    if not key:
        return "<not set>"
    if len(key) <= 8:
        return "***"
    return f"{key[:4]}...{key[-4:]}"


def truncate_for_log(text: str, max_length: int = 200) -> str:
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}... ({len(text)} chars total)"


@dataclass
class Timer:
    """Wall-clock timer reporting milliseconds."""

    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    def stop(self) -> float:
        """Stop and return the duration in milliseconds."""
        self.end_time = time.perf_counter()
        return self.elapsed_ms

    @property
    def elapsed_ms(self) -> float:
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return (end - self.start_time) * 1000


@contextmanager
def timed() -> Iterator[Timer]:
    timer = Timer()
    try:
        yield timer
    finally:
        timer.stop()


# =============================================================================
# Package Logger
# =============================================================================

_package_logger: StructuredLogger | None = None


def get_logger(name: str = "r_agent") -> StructuredLogger:
    """Return the package logger, creating it on first use."""
    global _package_logger
    if _package_logger is None or _package_logger.name != name:
        _package_logger = StructuredLogger(name)
    return _package_logger


def configure_logging(config: LoggingConfig | None = None, **kwargs: Any) -> StructuredLogger:
    """Replace the package logger, from a LoggingConfig or StructuredLogger arguments."""
    global _package_logger
    if config is not None:
        _package_logger = StructuredLogger.from_config(config)
    else:
        _package_logger = StructuredLogger(**kwargs)
    return _package_logger


__all__ = [
    "LogContext",
    "CompletionLog",
    "ToolCallLog",
    "StepLog",
    "StructuredLogger",
    "JSONFormatter",
    "TextFormatter",
    "Timer",
    "timed",
    "generate_trace_id",
    "generate_run_id",
    "redact_api_key",
    "truncate_for_log",
    "get_logger",
    "configure_logging",
]
