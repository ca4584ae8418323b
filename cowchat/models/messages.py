"""
Conversation message types.

Messages are immutable value objects. ``to_dict`` produces the generic wire
form shared by both providers; provider adapters adjust it where their APIs
differ (for example, OpenAI wants tool call arguments as a JSON string).
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class Role(str, Enum):
    """Conversation roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


def _freeze(arguments: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(arguments or {}))


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "arguments", _freeze(self.arguments))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": dict(self.arguments),
            },
        }


@dataclass(frozen=True)
class Message:
    """One entry in the conversation log."""

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "content", self.content or "")
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls or ()))
        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ValueError("Only assistant messages may carry tool calls")
        if self.role is Role.TOOL and not self.tool_call_id:
            raise ValueError("Tool messages require a tool_call_id")
        if self.role is not Role.TOOL and (self.tool_call_id or self.name):
            raise ValueError("tool_call_id and name are only valid on tool messages")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: tuple[ToolCallRequest, ...] = ()
    ) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tool_calls)

    @classmethod
    def tool_result(cls, call: ToolCallRequest, content: str) -> "Message":
        """Build the tool-role reply to ``call``."""
        return cls(
            role=Role.TOOL,
            content=content,
            tool_call_id=call.id,
            name=call.name,
        )

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_dict(self) -> dict:
        """Serialize to the chat-completion message format."""
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.role is Role.TOOL:
            data["tool_call_id"] = self.tool_call_id
            data["name"] = self.name
        return data
