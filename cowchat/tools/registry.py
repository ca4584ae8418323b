"""
Tool Registry - Single source of truth for tool definitions.

Holds each tool's metadata and executor, produces the function-calling
schemas sent to the provider, and dispatches calls by name.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ..exceptions import ToolError, ToolExecutionFailed, UnknownTool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolParameter:
    """One named parameter in a tool's schema."""

    name: str
    description: str
    type: str = "string"
    required: bool = True


@dataclass
class ToolDefinition:
    """Metadata for a tool - defined once, used everywhere."""

    name: str
    description: str
    parameters: tuple[ToolParameter, ...]
    executor: Callable[[dict], str]

    def to_schema(self) -> dict:
        """Render as an OpenAI-style function-calling tool definition."""
        properties = {
            param.name: {"type": param.type, "description": param.description}
            for param in self.parameters
        }
        required = [param.name for param in self.parameters if param.required]
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }


class ToolRegistry:
    """Registry of callable tools for one session."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> None:
        """Register a tool, replacing any previous tool with the same name."""
        if definition.name in self._tools:
            logger.debug("Replacing registered tool '%s'", definition.name)
        self._tools[definition.name] = definition

    def get(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return self._tools.get(name)

    def all_tools(self) -> dict[str, ToolDefinition]:
        """Get a copy of all registered tools."""
        return self._tools.copy()

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def describe(self) -> list[dict]:
        """Function-calling schemas for every registered tool, in registration order."""
        return [tool.to_schema() for tool in self._tools.values()]

    def dispatch(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> str:
        """
        Execute the named tool.

        Args:
            name: Registered tool name.
            arguments: Parameter name -> value mapping from the model.

        Returns:
            The tool's result text.

        Raises:
            UnknownTool: No tool is registered under ``name``.
            InvalidArgument: A required argument is missing or empty.
            ToolExecutionFailed: The tool failed for any other reason.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownTool(f"Unknown tool '{name}'", tool_name=name)

        try:
            return tool.executor(dict(arguments or {}))
        except ToolError as e:
            if not e.tool_name:
                e.tool_name = name
            raise
        except Exception as e:
            logger.error("Tool '%s' raised unexpectedly: %s", name, e)
            raise ToolExecutionFailed(
                f"Tool '{name}' execution error: {e}", tool_name=name
            ) from e

    def clear(self) -> None:
        """Remove all registered tools (mainly for testing)."""
        self._tools.clear()
