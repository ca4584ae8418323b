"""
Session-scoped tracing context using Langfuse SDK v3.

Each user turn becomes one root span; provider calls inside the turn are
recorded as generations and tool executions as spans, linked to the turn
through an explicit ``TraceContext``.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _start_observation(**kwargs: Any) -> tuple[Any, Any]:
    """Open a Langfuse observation; returns (context_manager, observation)."""
    client = get_tracing_client()
    if not client or not client.client:
        return None, None
    manager = client.client.start_as_current_observation(**kwargs)
    return manager, manager.__enter__()


@dataclass
class _Observation:
    """Shared lifecycle for spans and generations."""

    name: str
    enabled: bool = False
    metadata: Optional[dict] = None
    input: Optional[Any] = None
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    def _observation_kwargs(self) -> dict:
        return {
            "trace_context": self._trace_context,
            "as_type": "span",
            "name": self.name,
            "metadata": self.metadata,
            "input": self.input,
        }

    def start(self) -> None:
        if not self.enabled:
            return
        try:
            self._start_time = time.time()
            self._context_manager, self._observation = _start_observation(
                **self._observation_kwargs()
            )
        except Exception as e:
            logger.warning(f"Failed to start observation '{self.name}': {e}")
            self._observation = None

    def _update_kwargs(self) -> dict:
        update: dict[str, Any] = {
            "metadata": {
                "status": self._status,
                "duration_ms": round((time.time() - self._start_time) * 1000, 2),
            }
        }
        if self._output is not None:
            update["output"] = self._output
        return update

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return
        try:
            self._observation.update(**self._update_kwargs())
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end observation '{self.name}': {e}")

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status


@dataclass
class SpanContext(_Observation):
    """A tool execution (or any other non-LLM step)."""


@dataclass
class GenerationContext(_Observation):
    """A provider round-trip."""

    model: str = ""
    model_parameters: Optional[dict] = None
    _usage: Optional[dict] = field(default=None, repr=False)

    def _observation_kwargs(self) -> dict:
        kwargs = super()._observation_kwargs()
        kwargs.update(
            as_type="generation",
            model=self.model,
            model_parameters=self.model_parameters,
        )
        return kwargs

    def _update_kwargs(self) -> dict:
        update = super()._update_kwargs()
        if self._usage:
            update["usage"] = self._usage
        return update

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        """Set token usage for the generation."""
        self._usage = {}
        if prompt_tokens is not None:
            self._usage["promptTokens"] = prompt_tokens
        if completion_tokens is not None:
            self._usage["completionTokens"] = completion_tokens
        if total_tokens is not None:
            self._usage["totalTokens"] = total_tokens


@dataclass
class TracingContext:
    """
    Tracing state for one chat session.

    ``start_turn``/``end_turn`` bracket a user turn; ``span`` and
    ``generation`` nest under the current turn.
    """

    session_id: str
    user_id: Optional[str] = None
    _enabled: bool = field(default=False, repr=False)
    _turn: Optional[SpanContext] = field(default=None, repr=False)
    _turn_count: int = field(default=0, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_turn(self, user_text: Optional[str] = None) -> None:
        """Open the root span for a new user turn."""
        if not self._enabled:
            return
        self._turn_count += 1
        self._turn = SpanContext(
            name="chat_turn",
            enabled=True,
            metadata={"session_id": self.session_id, "turn": self._turn_count},
            input={"user": user_text} if user_text is not None else None,
        )
        self._turn.start()
        root = self._turn._observation
        if root is None:
            return
        try:
            root.update_trace(session_id=self.session_id, user_id=self.user_id)
        except Exception as e:
            logger.warning(f"Failed to set trace attributes: {e}")

    def end_turn(self, output: Optional[str] = None, status: str = "success") -> None:
        """Close the current turn's root span."""
        if self._turn is None:
            return
        self._turn.set_output(output)
        self._turn.set_status(status)
        self._turn.end()
        self._turn = None

    def _child_trace_context(self) -> Optional[TraceContext]:
        root = self._turn._observation if self._turn else None
        trace_id = getattr(root, "trace_id", None)
        span_id = getattr(root, "id", None)
        if not trace_id or not span_id:
            return None
        return TraceContext(trace_id=trace_id, parent_span_id=span_id)

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[Any] = None,
    ) -> Generator[SpanContext, None, None]:
        """Record a tool execution under the current turn."""
        span_ctx = SpanContext(
            name=name,
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            _trace_context=self._child_trace_context(),
        )
        try:
            span_ctx.start()
            yield span_ctx
        finally:
            span_ctx.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
        model_parameters: Optional[dict] = None,
    ) -> Generator[GenerationContext, None, None]:
        """Record a provider call under the current turn."""
        gen_ctx = GenerationContext(
            name=name,
            model=model,
            enabled=self._enabled,
            input=input,
            metadata=metadata,
            model_parameters=model_parameters,
            _trace_context=self._child_trace_context(),
        )
        try:
            gen_ctx.start()
            yield gen_ctx
        finally:
            gen_ctx.end()
