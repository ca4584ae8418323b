"""
Ollama provider.

Talks to a local Ollama server's ``/api/chat`` endpoint with ``requests``.
No authentication. Ollama is asked for JSON output via ``response_format``
and nests the reply directly under ``message``.
"""

import logging
from typing import Any

import requests

from ..exceptions import ProviderResponseError, TransportError
from .base import ProviderAdapter

logger = logging.getLogger(__name__)


class OllamaProvider(ProviderAdapter):
    """Chat with a local Ollama instance."""

    name = "ollama"

    def __init__(self, model: str, url: str, **kwargs: Any):
        super().__init__(model, **kwargs)
        # The URL already ends with /api/chat.
        self.url = url

    def build_payload(self, messages, tools) -> dict:
        payload = super().build_payload(messages, tools)
        payload["response_format"] = {"type": "json_object"}
        return payload

    def _exchange(self, payload: dict) -> dict:
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error(f"Ollama request timed out after {self.timeout}s")
            raise TransportError(
                f"Ollama request timed out after {self.timeout} seconds",
                provider=self.name,
            ) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Failed to connect to Ollama at {self.url}: {e}")
            raise TransportError(
                f"Failed to connect to Ollama at {self.url}: {e}", provider=self.name
            ) from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Ollama HTTP error: {e}")
            raise TransportError(
                f"Ollama service error: {e}", provider=self.name, status_code=status
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Ollama request failed: {e}")
            raise TransportError(str(e), provider=self.name) from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"Ollama returned a non-JSON body: {response.text[:200]}",
                provider=self.name,
                status_code=response.status_code,
            ) from e

    def extract_message(self, body: dict) -> Any:
        if body.get("error"):
            raise TransportError(f"Ollama error: {body['error']}", provider=self.name)
        if "message" not in body:
            raise ProviderResponseError(
                "Ollama response has no 'message' field", provider=self.name
            )
        return body["message"]
