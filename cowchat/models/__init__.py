"""
Data models for cowchat.
"""

from .messages import Message, Role, ToolCallRequest
from .config import (
    DEFAULT_SYSTEM_PROMPT,
    ProviderConfig,
    OrchestrationConfig,
    ToolsConfig,
    LoggingConfig,
    LangfuseConfig,
    AppConfig,
)

__all__ = [
    # Conversation models
    "Message",
    "Role",
    "ToolCallRequest",
    # Config models
    "DEFAULT_SYSTEM_PROMPT",
    "ProviderConfig",
    "OrchestrationConfig",
    "ToolsConfig",
    "LoggingConfig",
    "LangfuseConfig",
    "AppConfig",
]
