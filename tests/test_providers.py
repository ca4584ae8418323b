"""
Tests for the provider adapters, response normalization and provider selection.

No network traffic: requests.post and the OpenAI client are patched.
"""

import json
import logging
from unittest.mock import MagicMock, Mock, patch

import openai
import pytest
import requests

from cowchat.exceptions import ConfigurationError, ProviderResponseError, TransportError
from cowchat.models import Message, ProviderConfig, Role, ToolCallRequest
from cowchat.providers import (
    OllamaProvider,
    OpenAIProvider,
    parse_assistant_message,
    resolve_provider_name,
    select_provider,
)

OLLAMA_URL = "http://localhost:11434/api/chat"
ROUTER_URL = "https://router.huggingface.co/v1"


def _history():
    call = ToolCallRequest(id="call_1", name="call_cowsay", arguments={"message": "moo"})
    return (
        Message.system("You are an AI assistant with tool support"),
        Message.user("Tell me a joke, use cowsay."),
        Message.assistant(tool_calls=(call,)),
        Message.tool_result(call, "< moo >"),
    )


def _ollama_response(body):
    response = Mock()
    response.json.return_value = body
    response.raise_for_status.return_value = None
    response.status_code = 200
    return response


class TestParseAssistantMessage:
    """Tests for normalizing provider messages."""

    def test_plain_content(self):
        message = parse_assistant_message({"role": "assistant", "content": "Hi!"})

        assert message.role is Role.ASSISTANT
        assert message.content == "Hi!"
        assert message.tool_calls == ()

    def test_null_content_becomes_empty(self):
        """OpenAI sends content null alongside tool calls."""
        message = parse_assistant_message({"role": "assistant", "content": None})
        assert message.content == ""

    def test_object_arguments(self):
        """Ollama sends arguments as an object."""
        message = parse_assistant_message(
            {
                "content": "",
                "tool_calls": [
                    {
                        "id": "call_x",
                        "function": {
                            "name": "call_cowsay",
                            "arguments": {"message": "moo", "file": "tux"},
                        },
                    }
                ],
            }
        )

        (call,) = message.tool_calls
        assert call.id == "call_x"
        assert call.name == "call_cowsay"
        assert dict(call.arguments) == {"message": "moo", "file": "tux"}

    def test_string_arguments_are_decoded(self):
        """OpenAI sends arguments as a JSON string."""
        message = parse_assistant_message(
            {
                "tool_calls": [
                    {
                        "id": "call_y",
                        "type": "function",
                        "function": {
                            "name": "call_cowsay",
                            "arguments": json.dumps({"message": "moo"}),
                        },
                    }
                ]
            }
        )

        assert dict(message.tool_calls[0].arguments) == {"message": "moo"}

    def test_undecodable_arguments_become_empty(self):
        message = parse_assistant_message(
            {"tool_calls": [{"id": "c", "function": {"name": "t", "arguments": "{oops"}}]}
        )
        assert dict(message.tool_calls[0].arguments) == {}

    def test_missing_id_is_generated(self):
        message = parse_assistant_message(
            {"tool_calls": [{"function": {"name": "get_cow_files"}}]}
        )
        assert message.tool_calls[0].id.startswith("call_")

    def test_nameless_tool_call_is_dropped(self):
        message = parse_assistant_message(
            {"content": "hm", "tool_calls": [{"id": "c", "function": {}}]}
        )
        assert message.tool_calls == ()

    def test_non_object_raises(self):
        with pytest.raises(ProviderResponseError):
            parse_assistant_message("not a message", provider="ollama")


class TestOllamaProvider:
    """Tests for OllamaProvider."""

    @patch("cowchat.providers.ollama.requests.post")
    def test_payload_shape(self, mock_post):
        """The request carries model, tools, tool_choice and response_format."""
        mock_post.return_value = _ollama_response(
            {"message": {"role": "assistant", "content": "ok"}}
        )
        provider = OllamaProvider(model="gpt-oss:latest", url=OLLAMA_URL, timeout=12)
        tools = [{"type": "function", "function": {"name": "get_cow_files"}}]

        provider.send(_history(), tools)

        args, kwargs = mock_post.call_args
        assert args[0] == OLLAMA_URL
        assert kwargs["timeout"] == 12
        payload = kwargs["json"]
        assert payload["model"] == "gpt-oss:latest"
        assert payload["stream"] is False
        assert payload["tool_choice"] == "auto"
        assert payload["tools"] == tools
        assert payload["response_format"] == {"type": "json_object"}
        assert [m["role"] for m in payload["messages"]] == [
            "system",
            "user",
            "assistant",
            "tool",
        ]
        # Ollama keeps arguments as an object
        assert payload["messages"][2]["tool_calls"][0]["function"]["arguments"] == {
            "message": "moo"
        }

    @patch("cowchat.providers.ollama.requests.post")
    def test_unwraps_message_envelope(self, mock_post):
        mock_post.return_value = _ollama_response(
            {
                "model": "gpt-oss:latest",
                "message": {
                    "role": "assistant",
                    "content": "",
                    "tool_calls": [
                        {"function": {"name": "get_cow_files", "arguments": {}}}
                    ],
                },
                "done": True,
            }
        )
        provider = OllamaProvider(model="m", url=OLLAMA_URL)

        message = provider.send(_history(), [])

        assert message.tool_calls[0].name == "get_cow_files"

    @patch("cowchat.providers.ollama.requests.post")
    def test_connection_error(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")
        provider = OllamaProvider(model="m", url=OLLAMA_URL)

        with pytest.raises(TransportError) as exc_info:
            provider.send(_history(), [])

        assert exc_info.value.provider == "ollama"

    @patch("cowchat.providers.ollama.requests.post")
    def test_timeout(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()
        provider = OllamaProvider(model="m", url=OLLAMA_URL, timeout=3)

        with pytest.raises(TransportError, match="timed out"):
            provider.send(_history(), [])

    @patch("cowchat.providers.ollama.requests.post")
    def test_http_error_keeps_status(self, mock_post):
        response = Mock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            "500 Server Error", response=Mock(status_code=500)
        )
        mock_post.return_value = response
        provider = OllamaProvider(model="m", url=OLLAMA_URL)

        with pytest.raises(TransportError) as exc_info:
            provider.send(_history(), [])

        assert exc_info.value.status_code == 500

    @patch("cowchat.providers.ollama.requests.post")
    def test_non_json_body(self, mock_post):
        response = _ollama_response(None)
        response.json.side_effect = ValueError("no json")
        response.text = "<html>"
        mock_post.return_value = response
        provider = OllamaProvider(model="m", url=OLLAMA_URL)

        with pytest.raises(ProviderResponseError):
            provider.send(_history(), [])

    @patch("cowchat.providers.ollama.requests.post")
    def test_error_body(self, mock_post):
        mock_post.return_value = _ollama_response({"error": "model not found"})
        provider = OllamaProvider(model="m", url=OLLAMA_URL)

        with pytest.raises(TransportError, match="model not found"):
            provider.send(_history(), [])

    @patch("cowchat.providers.ollama.requests.post")
    def test_missing_message(self, mock_post):
        mock_post.return_value = _ollama_response({"done": True})
        provider = OllamaProvider(model="m", url=OLLAMA_URL)

        with pytest.raises(ProviderResponseError):
            provider.send(_history(), [])

    @patch("cowchat.providers.ollama.requests.post")
    def test_debug_dumps(self, mock_post):
        """Payload and response are dumped to the injected logger at DEBUG."""
        mock_post.return_value = _ollama_response(
            {"message": {"role": "assistant", "content": "ok"}}
        )
        debug_logger = Mock()
        debug_logger.isEnabledFor.return_value = True
        provider = OllamaProvider(model="m", url=OLLAMA_URL, debug_logger=debug_logger)

        provider.send(_history(), [])

        titles = [c.args[1] for c in debug_logger.debug.call_args_list]
        assert titles == ["---- PAYLOAD ----", "---- RESPONSE ----"]

    @patch("cowchat.providers.ollama.requests.post")
    def test_no_dumps_when_debug_disabled(self, mock_post):
        mock_post.return_value = _ollama_response(
            {"message": {"role": "assistant", "content": "ok"}}
        )
        debug_logger = Mock()
        debug_logger.isEnabledFor.return_value = False
        provider = OllamaProvider(model="m", url=OLLAMA_URL, debug_logger=debug_logger)

        provider.send(_history(), [])

        debug_logger.debug.assert_not_called()


class TestOpenAIProvider:
    """Tests for OpenAIProvider."""

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_client_configuration(self, mock_openai_cls):
        """The SDK client gets the router URL, the token and no retries."""
        OpenAIProvider(model="openai/gpt-oss-20b", token="hf_x", base_url=ROUTER_URL, timeout=9)

        kwargs = mock_openai_cls.call_args.kwargs
        assert kwargs["base_url"] == ROUTER_URL
        assert kwargs["api_key"] == "hf_x"
        assert kwargs["timeout"] == 9
        assert kwargs["max_retries"] == 0

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_arguments_sent_as_json_strings(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value.model_dump.return_value = {
            "choices": [{"message": {"role": "assistant", "content": "done"}}]
        }
        mock_openai_cls.return_value = mock_client
        provider = OpenAIProvider(model="m", token="t", base_url=ROUTER_URL)

        provider.send(_history(), [])

        payload = mock_client.chat.completions.create.call_args.kwargs
        assert "response_format" not in payload
        assert payload["tool_choice"] == "auto"
        function = payload["messages"][2]["tool_calls"][0]["function"]
        assert function["arguments"] == json.dumps({"message": "moo"})

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_history_not_mutated_by_serialization(self, mock_openai_cls):
        """Stringifying arguments for the wire leaves the log untouched."""
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value.model_dump.return_value = {
            "choices": [{"message": {"role": "assistant", "content": "done"}}]
        }
        mock_openai_cls.return_value = mock_client
        provider = OpenAIProvider(model="m", token="t", base_url=ROUTER_URL)
        history = _history()

        provider.send(history, [])

        assert dict(history[2].tool_calls[0].arguments) == {"message": "moo"}

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_unwraps_choices_envelope(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value.model_dump.return_value = {
            "choices": [
                {
                    "index": 0,
                    "message": {
                        "role": "assistant",
                        "content": None,
                        "tool_calls": [
                            {
                                "id": "call_r",
                                "type": "function",
                                "function": {
                                    "name": "call_cowsay",
                                    "arguments": '{"message": "moo", "file": "kangaroo"}',
                                },
                            }
                        ],
                    },
                }
            ]
        }
        mock_openai_cls.return_value = mock_client
        provider = OpenAIProvider(model="m", token="t", base_url=ROUTER_URL)

        message = provider.send(_history(), [])

        assert message.content == ""
        assert message.tool_calls[0].id == "call_r"
        assert message.tool_calls[0].arguments["file"] == "kangaroo"

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_empty_choices(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value.model_dump.return_value = {
            "choices": []
        }
        mock_openai_cls.return_value = mock_client
        provider = OpenAIProvider(model="m", token="t", base_url=ROUTER_URL)

        with pytest.raises(ProviderResponseError):
            provider.send(_history(), [])

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_status_error_is_transport_error(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIStatusError(
            "unauthorized", response=Mock(status_code=401), body=None
        )
        mock_openai_cls.return_value = mock_client
        provider = OpenAIProvider(model="m", token="bad", base_url=ROUTER_URL)

        with pytest.raises(TransportError) as exc_info:
            provider.send(_history(), [])

        assert exc_info.value.status_code == 401
        assert exc_info.value.provider == "openai"

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_api_error_is_transport_error(self, mock_openai_cls):
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            "connection reset", request=Mock(), body=None
        )
        mock_openai_cls.return_value = mock_client
        provider = OpenAIProvider(model="m", token="t", base_url=ROUTER_URL)

        with pytest.raises(TransportError):
            provider.send(_history(), [])

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_close_closes_client(self, mock_openai_cls):
        provider = OpenAIProvider(model="m", token="t", base_url=ROUTER_URL)
        provider.close()
        mock_openai_cls.return_value.close.assert_called_once()


class TestProviderSelection:
    """Tests for select_provider and the credential fallback."""

    def test_default_is_ollama(self):
        provider = select_provider(ProviderConfig())
        assert isinstance(provider, OllamaProvider)
        assert provider.url == OLLAMA_URL

    def test_openai_without_token_falls_back(self, caplog):
        """A missing token switches to Ollama with a warning."""
        with caplog.at_level(logging.WARNING, logger="cowchat.providers.factory"):
            provider = select_provider(ProviderConfig(name="openai", openai_token=""))

        assert isinstance(provider, OllamaProvider)
        assert "OPENAI_TOKEN is not set" in caplog.text

    @patch("cowchat.providers.openai_router.OpenAI")
    def test_openai_with_token(self, mock_openai_cls):
        provider = select_provider(
            ProviderConfig(name="openai", openai_token="hf_x", model="openai/gpt-oss-20b")
        )

        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "openai/gpt-oss-20b"

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unsupported LLM provider"):
            resolve_provider_name(ProviderConfig(name="anthropic"))

    def test_name_is_case_insensitive(self):
        assert resolve_provider_name(ProviderConfig(name=" Ollama ")) == "ollama"

    def test_timeout_is_forwarded(self):
        provider = select_provider(ProviderConfig(timeout=7.5))
        assert provider.timeout == 7.5
