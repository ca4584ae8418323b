"""
Provider adapter base class and response normalization.

Every provider turns the conversation plus tool catalog into a request,
performs one blocking round-trip, and unwraps its response envelope into a
single assistant ``Message``.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ..exceptions import ProviderResponseError, TransportError
from ..models import Message, ToolCallRequest
from ..tracing import TracingContext

logger = logging.getLogger(__name__)


def _decode_arguments(raw: Any, tool_name: str) -> dict:
    """Tool arguments arrive as an object (Ollama) or a JSON string (OpenAI)."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(
                "Undecodable arguments for tool '%s': %s", tool_name, raw[:200]
            )
            return {}
    if not isinstance(raw, dict):
        logger.warning(
            "Ignoring non-object arguments for tool '%s': %r", tool_name, raw
        )
        return {}
    return raw


def _parse_tool_call(raw: Any) -> Optional[ToolCallRequest]:
    if not isinstance(raw, dict):
        logger.warning("Ignoring malformed tool call: %r", raw)
        return None
    function = raw.get("function") or {}
    name = function.get("name") if isinstance(function, dict) else None
    if not name:
        logger.warning("Ignoring tool call without a function name: %r", raw)
        return None
    call_id = raw.get("id") or f"call_{uuid.uuid4().hex[:8]}"
    return ToolCallRequest(
        id=str(call_id),
        name=str(name),
        arguments=_decode_arguments(function.get("arguments"), name),
    )


def parse_assistant_message(data: Any, provider: str = "") -> Message:
    """
    Normalize a provider's assistant message object into a ``Message``.

    Args:
        data: The message object, already unwrapped from its envelope.
        provider: Provider name, for error reporting.

    Raises:
        ProviderResponseError: ``data`` is not a message object.
    """
    if not isinstance(data, dict):
        raise ProviderResponseError(
            f"Expected an assistant message object, got {type(data).__name__}",
            provider=provider,
        )

    role = data.get("role", "assistant")
    if role != "assistant":
        logger.warning("Provider returned role '%s', treating it as assistant", role)

    content = data.get("content")
    if content is None:
        content = ""
    elif not isinstance(content, str):
        content = json.dumps(content)

    raw_calls = data.get("tool_calls") or []
    if not isinstance(raw_calls, list):
        logger.warning("Ignoring non-list tool_calls: %r", raw_calls)
        raw_calls = []

    tool_calls = tuple(
        call for call in (_parse_tool_call(raw) for raw in raw_calls) if call
    )
    return Message.assistant(content=content, tool_calls=tool_calls)


class ProviderAdapter(ABC):
    """
    One chat-completion provider.

    Subclasses supply the request body (``build_payload``), the round-trip
    (``_exchange``) and the envelope unwrapping (``extract_message``).
    """

    name: str = "provider"

    def __init__(
        self,
        model: str,
        timeout: float = 120.0,
        debug_logger: Optional[logging.Logger] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        self.model = model
        self.timeout = timeout
        self.debug_logger = debug_logger or logger
        self.tracing_context = tracing_context

    def serialize_messages(self, messages: Sequence[Message]) -> list[dict]:
        return [message.to_dict() for message in messages]

    def build_payload(self, messages: Sequence[Message], tools: list[dict]) -> dict:
        """Request body fields common to both providers."""
        return {
            "model": self.model,
            "stream": False,
            "tools": tools,
            "tool_choice": "auto",
            "messages": self.serialize_messages(messages),
        }

    @abstractmethod
    def _exchange(self, payload: dict) -> dict:
        """Send ``payload`` and return the decoded response body."""

    @abstractmethod
    def extract_message(self, body: dict) -> Any:
        """Unwrap the assistant message object from the response envelope."""

    def send(self, messages: Sequence[Message], tools: list[dict]) -> Message:
        """
        Send the conversation and tool catalog, returning the assistant reply.

        Raises:
            TransportError: Network, HTTP or envelope failure.
        """
        payload = self.build_payload(messages, tools)
        self._dump("---- PAYLOAD ----", payload)

        if self.tracing_context is None:
            body = self._exchange(payload)
        else:
            body = self._exchange_with_tracing(payload)

        self._dump("---- RESPONSE ----", body)
        if not isinstance(body, dict):
            raise ProviderResponseError(
                f"Expected a JSON object from {self.name}, got {type(body).__name__}",
                provider=self.name,
            )
        return parse_assistant_message(self.extract_message(body), provider=self.name)

    def _exchange_with_tracing(self, payload: dict) -> dict:
        """Round-trip wrapped in a Langfuse generation."""
        with self.tracing_context.generation(
            name=f"{self.name}_chat",
            model=self.model,
            input=payload["messages"],
            metadata={"provider": self.name},
            model_parameters={"tool_choice": payload.get("tool_choice")},
        ) as gen:
            try:
                body = self._exchange(payload)
            except TransportError as e:
                gen.set_status("error")
                gen.set_output(str(e))
                raise
            gen.set_output(body)
            usage = body.get("usage") if isinstance(body, dict) else None
            if isinstance(usage, dict):
                gen.set_usage(
                    prompt_tokens=usage.get("prompt_tokens"),
                    completion_tokens=usage.get("completion_tokens"),
                    total_tokens=usage.get("total_tokens"),
                )
            return body

    def _dump(self, title: str, data: Any) -> None:
        if self.debug_logger.isEnabledFor(logging.DEBUG):
            self.debug_logger.debug(
                "%s\n%s", title, json.dumps(data, indent=2, default=str)
            )

    def close(self) -> None:
        """Release any underlying client resources."""
