"""
Tests for structured logging.
"""
import json
import logging

import pytest

from r_agent.config import LoggingConfig
from r_agent.errors import TransportError
from r_agent.logging import (
    CompletionLog,
    JSONFormatter,
    LogContext,
    StepLog,
    StructuredLogger,
    TextFormatter,
    Timer,
    ToolCallLog,
    configure_logging,
    generate_run_id,
    redact_api_key,
    timed,
    truncate_for_log,
)


@pytest.fixture
def logger(request):
    """JSON logger with a unique name so handlers do not leak between tests."""
    structured = StructuredLogger(f"r_agent.test.{request.node.name}", level="DEBUG", json_output=True)
    structured.logger.propagate = True
    return structured


def records(caplog):
    return [json.loads(r.getMessage()) for r in caplog.records]


class TestStructuredLogger:
    def test_info_with_fields(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            logger.info("Agent run started", run_id="run_1", tools=["search"])

        (data,) = records(caplog)
        assert data == {"message": "Agent run started", "run_id": "run_1", "tools": ["search"]}

    def test_trace_context(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            with logger.trace_context(trace_id="trace_x", run_id="run_2") as trace_id:
                logger.info("inside")
            logger.info("outside")

        inside, outside = records(caplog)
        assert trace_id == "trace_x"
        assert inside["trace_id"] == "trace_x"
        assert inside["run_id"] == "run_2"
        assert "trace_id" not in outside

    def test_call_context_merges_with_trace(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            with logger.trace_context(trace_id="trace_y", user="alice"):
                logger.log_step(StepLog(state="done", iteration=0), LogContext(run_id="run_9"))

        (data,) = records(caplog)
        assert data["trace_id"] == "trace_y"
        assert data["user"] == "alice"
        assert data["run_id"] == "run_9"

    def test_log_completion(self, logger, caplog):
        ctx = LogContext(run_id="run_3", model="m")
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            logger.log_completion(CompletionLog(model="m", success=False, error="reset"), ctx)

        (data,) = records(caplog)
        assert caplog.records[0].levelno == logging.WARNING
        assert data["event_type"] == "completion"
        assert data["error"] == "reset"
        assert data["run_id"] == "run_3"

    def test_log_tool_call(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            logger.log_tool_call(ToolCallLog(tool_name="search", output_length=4))

        (data,) = records(caplog)
        assert data["tool_name"] == "search"
        assert data["message"] == "Tool 'search' dispatched"

    def test_log_step(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            logger.log_step(StepLog(state="parsing", iteration=2))

        (data,) = records(caplog)
        assert data["state"] == "parsing"
        assert data["iteration"] == 2

    def test_prompts_off_by_default(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            logger.log_prompt("secret prompt")

        assert caplog.records == []

    def test_log_error(self, logger, caplog):
        with caplog.at_level(logging.DEBUG, logger=logger.name):
            logger.log_error(TransportError("reset"), "Agent run failed", iterations=1)

        (data,) = records(caplog)
        assert data["error_type"] == "TransportError"
        assert data["error_code"] == "ERR_1001"
        assert data["retryable"] is True
        assert data["iterations"] == 1

    def test_from_config(self):
        config = LoggingConfig(level="WARNING", format="json", log_prompts=True)

        structured = StructuredLogger.from_config(config, name="r_agent.test.from_config")

        assert structured.json_output
        assert structured.log_prompts
        assert structured.logger.level == logging.WARNING

    def test_configure_logging(self):
        structured = configure_logging(name="r_agent.test.configured", level="ERROR")

        assert structured.name == "r_agent.test.configured"


class TestFormatters:
    def _record(self, msg):
        return logging.LogRecord("r_agent", logging.INFO, __file__, 1, msg, None, None)

    def test_json_formatter_merges_structured_message(self):
        out = json.loads(JSONFormatter().format(self._record(json.dumps({"message": "hi", "run_id": "r"}))))

        assert out["message"] == "hi"
        assert out["run_id"] == "r"
        assert out["level"] == "INFO"

    def test_json_formatter_plain_message(self):
        out = json.loads(JSONFormatter().format(self._record("plain text")))

        assert out["message"] == "plain text"

    def test_text_formatter_without_color(self):
        line = TextFormatter(use_color=False).format(self._record("hello"))

        assert line.endswith("INFO     hello")
        assert "\033[" not in line


class TestUtilities:
    @pytest.mark.parametrize(
        "key,expected",
        [(None, "<not set>"), ("", "<not set>"), ("short", "***"), ("sk-1234567890abcd", "sk-1...abcd")],
    )
    def test_redact_api_key(self, key, expected):
        assert redact_api_key(key) == expected

    def test_truncate(self):
        assert truncate_for_log("abc", 5) == "abc"
        assert truncate_for_log("a" * 10, 4) == "aaaa... (10 chars total)"

    def test_run_ids_unique(self):
        assert generate_run_id() != generate_run_id()

    def test_timer(self):
        with timed() as timer:
            pass

        assert isinstance(timer, Timer)
        assert timer.end_time is not None
        assert timer.elapsed_ms >= 0
