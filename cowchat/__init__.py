"""
cowchat - a small tool-calling chat orchestrator

This package provides:
- Provider adapters for Ollama and OpenAI-compatible endpoints
- A cowsay-backed tool registry
- The bounded tool-call orchestration loop
- Demo, interactive and single-shot CLI modes
"""

from .session import ChatSession, run_demo
from .orchestration import Conversation, OrchestrationLoop, TurnResult

__all__ = [
    "ChatSession",
    "Conversation",
    "OrchestrationLoop",
    "TurnResult",
    "run_demo",
]

__version__ = "0.1.0"
