"""
Pytest configuration and fixtures for cowchat tests.
"""

import pytest

from cowchat.models import Message, ToolCallRequest
from cowchat.orchestration import Conversation
from cowchat.providers import ProviderAdapter
from cowchat.tools import ToolDefinition, ToolParameter, ToolRegistry


class ScriptedProvider(ProviderAdapter):
    """
    Provider that replays canned Ollama-style response bodies.

    Each ``send`` consumes the next body; once the script runs out the last
    body is repeated. Every payload sent is kept in ``payloads``.
    """

    name = "scripted"

    def __init__(self, bodies, **kwargs):
        super().__init__(model="test-model", **kwargs)
        self.bodies = list(bodies)
        self.payloads: list[dict] = []

    def _exchange(self, payload: dict) -> dict:
        self.payloads.append(payload)
        if len(self.bodies) > 1:
            return self.bodies.pop(0)
        return self.bodies[0]

    def extract_message(self, body: dict):
        return body["message"]

    @property
    def calls(self) -> int:
        return len(self.payloads)


def reply_body(content: str = "", tool_calls=None) -> dict:
    """Build an Ollama-style response body."""
    message = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls
    return {"model": "test-model", "message": message, "done": True}


def tool_call(name: str, arguments: dict | None = None, call_id: str = "call_1") -> dict:
    """Build a raw tool call as it appears in a provider response."""
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": arguments or {}},
    }


@pytest.fixture
def echo_registry():
    """Registry with a tool that echoes its message and one that always fails."""
    registry = ToolRegistry()
    calls: list[dict] = []

    def _echo(params: dict) -> str:
        calls.append(params)
        return f"echo: {params.get('message', '')}"

    def _broken(params: dict) -> str:
        raise RuntimeError("boom")

    registry.register(
        ToolDefinition(
            name="echo",
            description="Echo the message back.",
            parameters=(ToolParameter(name="message", description="Text to echo"),),
            executor=_echo,
        )
    )
    registry.register(
        ToolDefinition(
            name="broken",
            description="Always fails.",
            parameters=(),
            executor=_broken,
        )
    )
    registry.calls = calls
    return registry


@pytest.fixture
def conversation():
    """Conversation that already holds the system message."""
    conv = Conversation()
    conv.append(Message.system("You are an AI assistant with tool support"))
    return conv


@pytest.fixture
def sample_call():
    return ToolCallRequest(
        id="call_abc", name="echo", arguments={"message": "hello"}
    )


@pytest.fixture(autouse=True)
def reset_tracing():
    """Make sure no global tracing client leaks between tests."""
    from cowchat.tracing import shutdown_tracing

    shutdown_tracing()
    yield
    shutdown_tracing()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in (
        "LLM_PROVIDER",
        "MODEL",
        "OPENAI_TOKEN",
        "OPENAI_HOST",
        "OLLAMA_HOST",
        "PROVIDER_TIMEOUT",
        "MAX_TOOL_RECURSION",
        "PROCESS_ALL_TOOL_CALLS",
        "SYSTEM_PROMPT",
        "COWSAY_BINARY",
        "TOOL_TIMEOUT",
        "LOG_LEVEL",
        "DEBUG",
        "LANGFUSE_PUBLIC_KEY",
        "LANGFUSE_SECRET_KEY",
        "LANGFUSE_HOST",
        "LANGFUSE_DEBUG",
        "COWCHAT_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
