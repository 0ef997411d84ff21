"""
Agent core implementation.

This module provides the AgentLoop, which drives one ReAct run:

    START -> PROMPTING -> AWAITING_COMPLETION -> PARSING
          -> (DISPATCHING -> PROMPTING) | DONE | FAILED

Each run owns its transcript; nothing mutable is shared between runs, so
one loop can serve many concurrent runs.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..cancellation import CancellationToken, CancelledError
from ..config.agent import AgentLimits
from ..config.settings import Settings
from ..errors import (
    AgentCancelledError,
    AgentError,
    CompletionError,
    ErrorContext,
    IterationLimitExceeded,
    ParseError,
    UnknownToolError,
    UnknownToolLimitExceeded,
    UnparsableOutputError,
    UpstreamError,
)
from ..logging import (
    CompletionLog,
    LogContext,
    StepLog,
    StructuredLogger,
    Timer,
    ToolCallLog,
    generate_run_id,
    get_logger,
    truncate_for_log,
)
from ..parser import OBSERVATION, THOUGHT, ContinueStep, FinalStep, ResponseParser, Step
from ..prompt import DEFAULT_TOOL_NAMES, TRAILER, AgentPrompt, PromptStrategy
from ..providers.base import CompletionBackend
from ..providers.openai import CompletionClient
from ..sync import run_blocking
from ..tools.base import Observation, Tool, ToolRegistry
from .result import AgentResult, AgentState
from .transcript import MalformedOutput, Transcript

FORMAT_REMINDER = (
    "Invalid format. Reply with either\n"
    "Thought: ...\nAction: <one of the listed actions>\nAction Input: ...\n"
    "or\n"
    "Thought: I now know the final answer\nFinal Answer: ..."
)

DEFAULT_STOP: tuple[str, ...] = (f"\n{OBSERVATION}",)


@dataclass
class _Run:
    """Mutable state of a single run. Never shared."""

    run_id: str
    transcript: Transcript = field(default_factory=Transcript)
    iterations: int = 0
    parse_failures: int = 0
    unknown_tool_errors: int = 0
    last_completion: str | None = None
    states: list[AgentState] = field(default_factory=list)

    def error_kwargs(self, model: str | None) -> dict[str, Any]:
        return {
            "transcript": self.transcript,
            "iterations": self.iterations,
            "last_completion": self.last_completion,
            "context": ErrorContext(
                request_id=self.run_id,
                model=model,
                iteration=self.iterations,
                operation="agent.run",
            ),
        }


class AgentLoop:
    """
    ReAct agent: prompt, complete, parse, dispatch, repeat.

    Example:
        ```python
        from r_agent import AgentLoop, CompletionClient, ToolRegistry, tool

        @tool
        def calculator(expression: str) -> str:
            '''Evaluate an arithmetic expression.'''
            ...

        client = CompletionClient.from_env()
        loop = AgentLoop(client)
        result = await loop.run("What is 3 * 7?", ToolRegistry([calculator]))
        print(result.final_answer)
        ```
    """

    def __init__(
        self,
        client: CompletionBackend,
        *,
        prompt: PromptStrategy | None = None,
        parser: ResponseParser | None = None,
        limits: AgentLimits | None = None,
        logger: StructuredLogger | None = None,
        stop: Sequence[str] | None = DEFAULT_STOP,
    ) -> None:
        """
        Args:
            client: Completion backend
            prompt: Prompt strategy; by default a ReAct scaffold listing the
                registered tool names is built for each run
            parser: Response parser
            limits: Default limits for runs that pass none
            logger: Structured logger (defaults to the package logger)
            stop: Stop sequences sent with every completion request
        """
        self.client = client
        self.prompt = prompt
        self.parser = parser or ResponseParser()
        self.limits = limits or AgentLimits()
        self.logger = logger or get_logger()
        self.stop = tuple(stop) if stop else None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> AgentLoop:
        """
        Build a loop, its OpenAI client and its logger from one Settings object.

        Only ``settings`` is consulted; the environment is never read here.

        Raises:
            MissingCredentialError: If the settings carry no credential.
        """
        return cls(
            CompletionClient(settings.client),
            limits=settings.limits,
            logger=StructuredLogger.from_config(settings.logging),
            **kwargs,
        )

    # === Main API ===

    async def run(
        self,
        question: str,
        tools: ToolRegistry | list[Tool] | None = None,
        limits: AgentLimits | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> AgentResult:
        """
        Run the loop until the model gives a final answer.

        Args:
            question: The user question
            tools: Tools the model may call
            limits: Override the loop's default limits for this run
            cancellation_token: Checked before prompting, before every
                completion attempt and before dispatching

        Returns:
            AgentResult with the final answer and the transcript

        Raises:
            AgentError: UpstreamError, UnparsableOutputError,
                UnknownToolLimitExceeded, IterationLimitExceeded or
                AgentCancelledError, each carrying the transcript.
        """
        registry = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools)
        limits = limits or self.limits
        token = cancellation_token or CancellationToken.none()

        run = _Run(run_id=generate_run_id())
        log_ctx = LogContext(run_id=run.run_id, model=self.client.model_name)

        self._enter(run, AgentState.START, log_ctx)
        rendered = self._strategy_for(registry).render(question)
        continues_thought = rendered.rstrip().endswith(TRAILER)
        self.logger.info("Agent run started", run_id=run.run_id, tools=registry.names)

        try:
            while True:
                self._enter(run, AgentState.PROMPTING, log_ctx)
                token.raise_if_cancelled()
                if run.iterations >= limits.max_iterations:
                    raise IterationLimitExceeded(
                        max_iterations=limits.max_iterations,
                        **run.error_kwargs(self.client.model_name),
                    )
                prompt_text = rendered + run.transcript.render()
                self.logger.log_prompt(prompt_text, log_ctx)

                completion = await self._complete(run, prompt_text, limits, token, log_ctx)

                self._enter(run, AgentState.PARSING, log_ctx)
                step = self._parse(run, completion, continues_thought, limits, log_ctx)
                if step is None:
                    continue

                if isinstance(step, FinalStep):
                    run.transcript.append(step)
                    self._enter(run, AgentState.DONE, log_ctx, step_kind=step.kind)
                    self.logger.info("Agent run finished", run_id=run.run_id, iterations=run.iterations)
                    return AgentResult(
                        final_answer=step.final_answer,
                        thought=step.thought,
                        transcript=run.transcript,
                        iterations=run.iterations,
                        run_id=run.run_id,
                        states=run.states,
                    )

                self._enter(run, AgentState.DISPATCHING, log_ctx, step_kind=step.kind)
                token.raise_if_cancelled()
                run.iterations += 1
                observation = await self._dispatch(run, step, registry, limits, log_ctx)
                run.transcript.append(step)
                run.transcript.append(observation)

        except CancelledError as e:
            error = AgentCancelledError("Agent run cancelled", cause=e, **run.error_kwargs(self.client.model_name))
            self._fail(run, error, log_ctx)
            raise error from e
        except AgentError as e:
            self._fail(run, e, log_ctx)
            raise

    def run_sync(
        self,
        question: str,
        tools: ToolRegistry | list[Tool] | None = None,
        limits: AgentLimits | None = None,
        *,
        cancellation_token: CancellationToken | None = None,
    ) -> AgentResult:
        """Blocking wrapper around `run`, for code with no event loop."""
        return run_blocking(
            self.run(question, tools, limits, cancellation_token=cancellation_token),
            name="run_sync",
            alternative="await loop.run(...)",
        )

    # === States ===

    def _strategy_for(self, registry: ToolRegistry) -> PromptStrategy:
        if self.prompt is not None:
            return self.prompt
        return AgentPrompt.for_tools(registry.names or DEFAULT_TOOL_NAMES)

    async def _complete(
        self,
        run: _Run,
        prompt_text: str,
        limits: AgentLimits,
        token: CancellationToken,
        log_ctx: LogContext,
    ) -> str:
        delay = limits.backoff
        attempt = 0
        while True:
            self._enter(run, AgentState.AWAITING_COMPLETION, log_ctx)
            token.raise_if_cancelled()
            attempt += 1
            timer = Timer()
            try:
                completion = await self.client.complete(prompt_text, self.stop)
            except CompletionError as e:
                self.logger.log_completion(
                    CompletionLog(
                        model=self.client.model_name,
                        attempt=attempt,
                        duration_ms=timer.stop(),
                        prompt_chars=len(prompt_text),
                        success=False,
                        error=str(e),
                    ),
                    log_ctx,
                )
                if not e.retryable:
                    raise UpstreamError(
                        f"Completion failed: {e.message}",
                        cause=e,
                        **run.error_kwargs(self.client.model_name),
                    ) from e
                if attempt > limits.max_transport_retries:
                    raise UpstreamError(
                        f"Completion failed after {attempt} attempts: {e.message}",
                        cause=e,
                        **run.error_kwargs(self.client.model_name),
                    ) from e
                await asyncio.sleep(delay * random.uniform(0.8, 1.2))
                delay = min(delay * 2, limits.max_backoff)
                continue
            except CancelledError:
                raise
            except Exception as e:
                # A backend outside the CompletionError contract; never retried.
                self.logger.log_completion(
                    CompletionLog(
                        model=self.client.model_name,
                        attempt=attempt,
                        duration_ms=timer.stop(),
                        prompt_chars=len(prompt_text),
                        success=False,
                        error=f"{type(e).__name__}: {e}",
                    ),
                    log_ctx,
                )
                raise UpstreamError(
                    f"Completion backend failed: {type(e).__name__}: {e}",
                    cause=e,
                    **run.error_kwargs(self.client.model_name),
                ) from e

            run.last_completion = completion
            self.logger.log_completion(
                CompletionLog(
                    model=self.client.model_name,
                    attempt=attempt,
                    duration_ms=timer.stop(),
                    prompt_chars=len(prompt_text),
                    completion_chars=len(completion),
                    completion_preview=truncate_for_log(completion),
                ),
                log_ctx,
            )
            return completion

    def _parse(
        self,
        run: _Run,
        completion: str,
        continues_thought: bool,
        limits: AgentLimits,
        log_ctx: LogContext,
    ) -> Step | None:
        """Parse a completion; on failure record it and return None to re-prompt."""
        text = completion
        if continues_thought and not completion.lstrip().startswith(THOUGHT):
            text = THOUGHT + completion

        try:
            step = self.parser.parse(text)
        except ParseError as e:
            run.parse_failures += 1
            self.logger.warning(
                "Unparsable completion",
                attempt=run.parse_failures,
                reason=e.message,
                **log_ctx.to_dict(),
            )
            if run.parse_failures > limits.max_parse_retries:
                raise UnparsableOutputError(
                    f"Model output could not be parsed {run.parse_failures} times in a row",
                    cause=e,
                    **run.error_kwargs(self.client.model_name),
                ) from e
            run.transcript.append(MalformedOutput(completion))
            run.transcript.append(Observation(FORMAT_REMINDER, is_error=True, synthetic=True))
            return None

        run.parse_failures = 0
        return step

    async def _dispatch(
        self,
        run: _Run,
        step: ContinueStep,
        registry: ToolRegistry,
        limits: AgentLimits,
        log_ctx: LogContext,
    ) -> Observation:
        timer = Timer()
        try:
            observation = await registry.dispatch(step.action, step.action_input)
        except UnknownToolError as e:
            run.unknown_tool_errors += 1
            if run.unknown_tool_errors > limits.max_unknown_tool_errors:
                raise UnknownToolLimitExceeded(
                    f"Model requested unknown tools {run.unknown_tool_errors} times",
                    cause=e,
                    **run.error_kwargs(self.client.model_name),
                ) from e
            valid = ", ".join(e.available) or "none"
            observation = Observation.from_error(
                f"'{step.action}' is not a valid action. Valid actions: [{valid}]",
                synthetic=True,
            )

        self.logger.log_tool_call(
            ToolCallLog(
                tool_name=step.action,
                input_preview=truncate_for_log(step.action_input, 100),
                duration_ms=timer.stop(),
                success=not observation.is_error,
                error=observation.text if observation.is_error else None,
                output_preview=truncate_for_log(observation.text),
                output_length=len(observation.text),
            ),
            log_ctx.with_update(iteration=run.iterations),
        )
        return observation

    # === Bookkeeping ===

    def _enter(
        self,
        run: _Run,
        state: AgentState,
        log_ctx: LogContext,
        *,
        step_kind: str | None = None,
    ) -> None:
        run.states.append(state)
        self.logger.log_step(
            StepLog(state=state.value, iteration=run.iterations, step_kind=step_kind),
            log_ctx,
        )

    def _fail(self, run: _Run, error: AgentError, log_ctx: LogContext) -> None:
        run.states.append(AgentState.FAILED)
        self.logger.log_error(error, "Agent run failed", log_ctx, iterations=run.iterations)


async def run(
    question: str,
    tools: ToolRegistry | list[Tool] | None,
    limits: AgentLimits | None = None,
    *,
    client: CompletionBackend,
    prompt: PromptStrategy | None = None,
    cancellation_token: CancellationToken | None = None,
) -> AgentResult:
    """One-shot agent run without keeping an AgentLoop around."""
    loop = AgentLoop(client, prompt=prompt, limits=limits)
    return await loop.run(question, tools, cancellation_token=cancellation_token)


__all__ = ["AgentLoop", "run", "FORMAT_REMINDER", "DEFAULT_STOP"]
