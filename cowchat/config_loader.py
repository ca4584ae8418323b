"""
Configuration loader for cowchat.

Loads configuration from YAML files with support for
environment variable interpolation. Missing sections and keys fall back to
the dataclass defaults.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .config import check_max_tool_recursion, get_config
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

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars resolved
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _parse_provider_config(data: dict) -> ProviderConfig:
    """Parse provider configuration from dict."""
    defaults = ProviderConfig()
    return ProviderConfig(
        name=str(data.get("name", defaults.name)).strip().lower(),
        model=data.get("model", defaults.model),
        openai_token=data.get("openai_token", defaults.openai_token) or "",
        openai_base_url=data.get("openai_base_url", defaults.openai_base_url),
        ollama_url=data.get("ollama_url", defaults.ollama_url),
        timeout=float(data.get("timeout", defaults.timeout)),
    )


def _parse_orchestration_config(data: dict) -> OrchestrationConfig:
    """Parse orchestration loop configuration from dict."""
    return OrchestrationConfig(
        max_tool_recursion=check_max_tool_recursion(
            int(data.get("max_tool_recursion", 8))
        ),
        process_all_tool_calls=_as_bool(data.get("process_all_tool_calls", False)),
        system_prompt=data.get("system_prompt", DEFAULT_SYSTEM_PROMPT),
    )


def _parse_tools_config(data: dict) -> ToolsConfig:
    """Parse tools configuration from dict."""
    return ToolsConfig(
        cowsay_binary=data.get("cowsay_binary", "cowsay"),
        timeout=float(data.get("timeout", 30)),
    )


def _parse_logging_config(data: dict) -> LoggingConfig:
    """Parse logging configuration from dict."""
    return LoggingConfig(
        level=data.get("level", "INFO"),
        debug=_as_bool(data.get("debug", False)),
    )


def _parse_langfuse_config(data: dict) -> LangfuseConfig:
    """Parse Langfuse configuration from dict."""
    return LangfuseConfig(
        public_key=data.get("public_key", "") or "",
        secret_key=data.get("secret_key", "") or "",
        host=data.get("host", "") or "",
        debug=_as_bool(data.get("debug", False)),
    )


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file. If None, uses the
              COWCHAT_CONFIG env var or the default path (config/config.yaml).
              When no file exists at the resolved default location the
              environment-only configuration is returned.

    Returns:
        AppConfig with all configuration loaded

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ConfigurationError: If the config is invalid
    """
    explicit = path is not None or "COWCHAT_CONFIG" in os.environ
    if path is None:
        path = os.environ.get("COWCHAT_CONFIG", str(DEFAULT_CONFIG_PATH))

    config_path = Path(path)

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Configuration file not found at {config_path}")
        logger.debug(
            f"No config file at {config_path}, using environment configuration"
        )
        return get_config()

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, "r") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping"
        )

    # Substitute environment variables throughout the config
    raw_config = _substitute_env_vars_recursive(raw_config)

    try:
        app_config = AppConfig(
            provider=_parse_provider_config(raw_config.get("provider") or {}),
            orchestration=_parse_orchestration_config(
                raw_config.get("orchestration") or {}
            ),
            tools=_parse_tools_config(raw_config.get("tools") or {}),
            logging=_parse_logging_config(raw_config.get("logging") or {}),
            langfuse=_parse_langfuse_config(raw_config.get("langfuse") or {}),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    logger.debug(
        f"Configuration loaded: provider={app_config.provider.name}, "
        f"model={app_config.provider.model}"
    )
    return app_config
