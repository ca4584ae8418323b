"""
Configuration models for cowchat.

Plain dataclasses shared by the environment loader (``cowchat.config``) and
the YAML loader (``cowchat.config_loader``).
"""

from dataclasses import dataclass, field

DEFAULT_SYSTEM_PROMPT = "You are an AI assistant with tool support"


@dataclass
class ProviderConfig:
    """Which chat-completion provider to talk to, and how."""
    name: str = "ollama"
    model: str = "gpt-oss:latest"
    openai_token: str = ""
    openai_base_url: str = "https://router.huggingface.co/v1"
    # Ollama's URL already includes the /api/chat suffix.
    ollama_url: str = "http://localhost:11434/api/chat"
    timeout: float = 120.0


@dataclass
class OrchestrationConfig:
    """Settings for the tool-call loop."""
    max_tool_recursion: int = 8
    process_all_tool_calls: bool = False
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


@dataclass
class ToolsConfig:
    """Settings for the cowsay-backed tools."""
    cowsay_binary: str = "cowsay"
    timeout: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    debug: bool = False


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = ""
    secret_key: str = ""
    host: str = ""
    debug: bool = False

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class AppConfig:
    """Main configuration container."""
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    orchestration: OrchestrationConfig = field(default_factory=OrchestrationConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)

    @property
    def log_level(self) -> str:
        """Effective log level; the debug flag wins over the configured level."""
        return "DEBUG" if self.logging.debug else self.logging.level.upper()
