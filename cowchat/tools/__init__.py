"""
cowchat Tools Package

Available tools:
- call_cowsay: render a cowsay speech bubble
- get_cow_files: list the installed cow-art files
"""

from typing import Optional

from ..models import ToolsConfig
from .registry import ToolDefinition, ToolParameter, ToolRegistry
from .cowsay import call_cowsay, get_cow_files, register_cowsay_tools


def build_default_registry(settings: Optional[ToolsConfig] = None) -> ToolRegistry:
    """Create a registry holding the built-in tools."""
    return register_cowsay_tools(ToolRegistry(), settings)


__all__ = [
    "ToolDefinition",
    "ToolParameter",
    "ToolRegistry",
    "build_default_registry",
    "call_cowsay",
    "get_cow_files",
]
