"""
Configuration management for cowchat.

Loads all configuration from environment variables with sensible defaults
for local development. A ``.env`` file in the working directory is read
first.
"""

import os

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .models import (
    AppConfig,
    DEFAULT_SYSTEM_PROMPT,
    LangfuseConfig,
    LoggingConfig,
    OrchestrationConfig,
    ProviderConfig,
    ToolsConfig,
)

load_dotenv()

_TRUE_VALUES = ("1", "true", "yes", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable ("1", "true", "yes", "on")."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_number(name: str, default: str, convert):
    value = os.getenv(name, default)
    try:
        return convert(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Environment variable {name} must be a {convert.__name__}, got {value!r}"
        ) from e


def check_max_tool_recursion(value: int) -> int:
    """Reject a negative tool recursion ceiling."""
    if value < 0:
        raise ConfigurationError(
            f"orchestration.max_tool_recursion must be >= 0, got {value}"
        )
    return value


def get_config() -> AppConfig:
    """Build the application configuration from the current environment."""
    return AppConfig(
        provider=ProviderConfig(
            name=os.getenv("LLM_PROVIDER", "ollama").strip().lower(),
            model=os.getenv("MODEL", "gpt-oss:latest"),
            openai_token=os.getenv("OPENAI_TOKEN", ""),
            openai_base_url=os.getenv(
                "OPENAI_HOST", "https://router.huggingface.co/v1"
            ),
            ollama_url=os.getenv("OLLAMA_HOST", "http://localhost:11434/api/chat"),
            timeout=_env_number("PROVIDER_TIMEOUT", "120", float),
        ),
        orchestration=OrchestrationConfig(
            max_tool_recursion=check_max_tool_recursion(
                _env_number("MAX_TOOL_RECURSION", "8", int)
            ),
            process_all_tool_calls=env_flag("PROCESS_ALL_TOOL_CALLS"),
            system_prompt=os.getenv("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
        ),
        tools=ToolsConfig(
            cowsay_binary=os.getenv("COWSAY_BINARY", "cowsay"),
            timeout=_env_number("TOOL_TIMEOUT", "30", float),
        ),
        logging=LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO"),
            debug=env_flag("DEBUG"),
        ),
        langfuse=LangfuseConfig(
            public_key=os.getenv("LANGFUSE_PUBLIC_KEY", ""),
            secret_key=os.getenv("LANGFUSE_SECRET_KEY", ""),
            host=os.getenv("LANGFUSE_HOST", ""),
            debug=env_flag("LANGFUSE_DEBUG"),
        ),
    )
