"""
Chat-completion providers.

- ollama: local Ollama server (no credentials)
- openai: OpenAI-compatible Hugging Face router (bearer token)
"""

from .base import ProviderAdapter, parse_assistant_message
from .ollama import OllamaProvider
from .openai_router import OpenAIProvider
from .factory import SUPPORTED_PROVIDERS, resolve_provider_name, select_provider

__all__ = [
    "ProviderAdapter",
    "parse_assistant_message",
    "OllamaProvider",
    "OpenAIProvider",
    "SUPPORTED_PROVIDERS",
    "resolve_provider_name",
    "select_provider",
]
