"""
Error taxonomy for cowchat.

Transport and recursion-limit errors end the current turn. Tool errors are
turned into tool-result messages by the orchestration loop and never reach
the caller.
"""

from typing import Optional


class CowchatError(Exception):
    """Base class for all cowchat errors."""


class ConfigurationError(CowchatError):
    """Invalid or unsupported configuration value."""


class ConversationError(CowchatError, ValueError):
    """A message would break the conversation log invariants."""


class TransportError(CowchatError):
    """Network or HTTP failure while talking to a provider."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderResponseError(TransportError):
    """The provider answered, but not with the expected envelope."""


class ToolError(CowchatError):
    """Base class for failures raised by tool dispatch."""

    def __init__(self, message: str, tool_name: str = ""):
        super().__init__(message)
        self.tool_name = tool_name


class UnknownTool(ToolError):
    """The model asked for a tool that is not registered."""


class InvalidArgument(ToolError):
    """A required tool argument is missing or empty."""


class ToolExecutionFailed(ToolError):
    """The tool's executable failed, timed out, or could not be started."""

    def __init__(
        self,
        message: str,
        tool_name: str = "",
        exit_code: Optional[int] = None,
    ):
        super().__init__(message, tool_name=tool_name)
        self.exit_code = exit_code


class RecursionLimitExceeded(CowchatError):
    """Too many tool-triggered provider round-trips in a single turn."""

    def __init__(self, depth: int, ceiling: int):
        super().__init__(
            f"Tool recursion depth {depth} exceeds the limit of {ceiling}"
        )
        self.depth = depth
        self.ceiling = ceiling
