"""
OpenAI-compatible provider (Hugging Face router).

Uses the OpenAI SDK with a bearer token against
``https://router.huggingface.co/v1``. The router rejects ``response_format``,
expects tool call arguments as JSON strings, and nests the reply under
``choices[0].message``.
"""

import json
import logging
from typing import Any

import openai
from openai import OpenAI

from ..exceptions import ProviderResponseError, TransportError
from .base import ProviderAdapter

logger = logging.getLogger(__name__)


class OpenAIProvider(ProviderAdapter):
    """Chat with an OpenAI-compatible endpoint."""

    name = "openai"

    def __init__(self, model: str, token: str, base_url: str, **kwargs: Any):
        super().__init__(model, **kwargs)
        self.base_url = base_url
        self._client = OpenAI(
            base_url=base_url,
            api_key=token,
            timeout=self.timeout,
            max_retries=0,
        )

    def serialize_messages(self, messages) -> list[dict]:
        serialized = super().serialize_messages(messages)
        for message in serialized:
            for call in message.get("tool_calls", []):
                function = call["function"]
                function["arguments"] = json.dumps(function["arguments"])
        return serialized

    def _exchange(self, payload: dict) -> dict:
        try:
            response = self._client.chat.completions.create(**payload)
        except openai.APIStatusError as e:
            logger.error(f"OpenAI-compatible call to {self.base_url} failed: {e}")
            raise TransportError(
                f"{self.base_url} returned HTTP {e.status_code}: {e.message}",
                provider=self.name,
                status_code=e.status_code,
            ) from e
        except openai.APIError as e:
            logger.error(f"OpenAI-compatible call to {self.base_url} failed: {e}")
            raise TransportError(
                f"Request to {self.base_url} failed: {e}", provider=self.name
            ) from e
        return response.model_dump()

    def extract_message(self, body: dict) -> Any:
        choices = body.get("choices")
        if not choices:
            raise ProviderResponseError(
                "OpenAI response has no choices", provider=self.name
            )
        first = choices[0]
        if not isinstance(first, dict) or "message" not in first:
            raise ProviderResponseError(
                "OpenAI response choice has no 'message' field", provider=self.name
            )
        return first["message"]

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        try:
            self._client.close()
        except Exception as e:
            logger.debug("Error closing OpenAI client: %s", e)
