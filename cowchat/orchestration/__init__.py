"""
Tool-call orchestration: the conversation log and the loop that drives it.
"""

from .conversation import Conversation
from .loop import (
    MAX_TOOL_RECURSION,
    LoopState,
    OrchestrationLoop,
    RecursionGuard,
    TurnResult,
)

__all__ = [
    "Conversation",
    "MAX_TOOL_RECURSION",
    "LoopState",
    "OrchestrationLoop",
    "RecursionGuard",
    "TurnResult",
]
