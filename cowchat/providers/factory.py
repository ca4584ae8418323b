"""
Provider selection.

The provider is chosen once per session. Asking for the OpenAI router
without a token falls back to the credential-free Ollama provider with a
warning, so a missing credential never surfaces mid-conversation.
"""

import logging
from typing import Optional

from ..exceptions import ConfigurationError
from ..models import ProviderConfig
from ..tracing import TracingContext
from .base import ProviderAdapter
from .ollama import OllamaProvider
from .openai_router import OpenAIProvider

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("ollama", "openai")


def resolve_provider_name(settings: ProviderConfig) -> str:
    """Apply the credential fallback and validate the provider name."""
    name = (settings.name or "").strip().lower()
    if name not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Unsupported LLM provider: {settings.name!r} "
            f"(expected one of {', '.join(SUPPORTED_PROVIDERS)})"
        )
    if name == "openai" and not settings.openai_token:
        logger.warning("Variable OPENAI_TOKEN is not set - switching to Ollama")
        return "ollama"
    return name


def select_provider(
    settings: ProviderConfig,
    debug_logger: Optional[logging.Logger] = None,
    tracing_context: Optional[TracingContext] = None,
) -> ProviderAdapter:
    """Build the provider adapter for a session."""
    name = resolve_provider_name(settings)
    common = {
        "timeout": settings.timeout,
        "debug_logger": debug_logger,
        "tracing_context": tracing_context,
    }
    if name == "openai":
        provider: ProviderAdapter = OpenAIProvider(
            model=settings.model,
            token=settings.openai_token,
            base_url=settings.openai_base_url,
            **common,
        )
    else:
        provider = OllamaProvider(model=settings.model, url=settings.ollama_url, **common)

    logger.info(f"Using provider '{provider.name}' with model '{settings.model}'")
    return provider
