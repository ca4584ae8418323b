"""
Tool-call orchestration loop.

Drives one user turn through the state machine::

    AwaitingProviderReply -> InspectingMessage -> ExecutingTool | Terminal

Every assistant reply is appended to the conversation. A reply with tool
calls has them executed, their results appended as tool messages, and the
provider re-queried; a reply without tool calls ends the turn. The
RecursionGuard caps tool rounds per turn so a model that keeps asking for
tools cannot loop forever.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..exceptions import (
    CowchatError,
    InvalidArgument,
    RecursionLimitExceeded,
    ToolExecutionFailed,
    UnknownTool,
)
from ..models import Message, ToolCallRequest
from ..providers import ProviderAdapter
from ..tools import ToolRegistry
from ..tracing import TracingContext
from .conversation import Conversation

logger = logging.getLogger(__name__)

# Maximum tool-triggered provider re-queries per user turn.
MAX_TOOL_RECURSION = 8


class LoopState(Enum):
    """States of the per-turn state machine."""

    AWAITING_PROVIDER_REPLY = "awaiting_provider_reply"
    INSPECTING_MESSAGE = "inspecting_message"
    EXECUTING_TOOL = "executing_tool"
    TERMINAL = "terminal"


@dataclass
class RecursionGuard:
    """Per-turn depth counter for tool rounds."""

    ceiling: int = MAX_TOOL_RECURSION
    depth: int = 0

    def reset(self) -> None:
        self.depth = 0

    def enter(self) -> int:
        """Count one more tool round; raises once the ceiling is passed."""
        self.depth += 1
        if self.depth > self.ceiling:
            raise RecursionLimitExceeded(self.depth, self.ceiling)
        return self.depth


@dataclass
class TurnResult:
    """Outcome of one user turn."""

    reply: str = ""
    depth: int = 0
    tools_used: list[str] = field(default_factory=list)
    messages_added: int = 0
    success: bool = True
    error: Optional[str] = None


class OrchestrationLoop:
    """
    Owns a conversation and runs the tool-call loop against one provider.

    By default only the first tool call of an assistant message is executed.
    With ``process_all_tool_calls`` every call in the message is executed
    before the provider is re-queried; this still counts as a single round.
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        registry: ToolRegistry,
        conversation: Conversation,
        max_depth: int = MAX_TOOL_RECURSION,
        process_all_tool_calls: bool = False,
        tracing_context: Optional[TracingContext] = None,
    ):
        self.provider = provider
        self.registry = registry
        self.conversation = conversation
        self.guard = RecursionGuard(ceiling=max_depth)
        self.process_all_tool_calls = process_all_tool_calls
        self.tracing_context = tracing_context
        self.state = LoopState.TERMINAL

    def run_turn(self, user_text: str) -> TurnResult:
        """
        Run a full user turn.

        Raises:
            TransportError: The provider could not be reached.
            RecursionLimitExceeded: The model kept requesting tools.
        """
        self.guard.reset()
        start = len(self.conversation)
        self.conversation.append(Message.user(user_text))
        return self._drive(start, LoopState.AWAITING_PROVIDER_REPLY)

    def handle_message(self, message: Message, follow_up: bool = True) -> TurnResult:
        """
        Enter the loop at InspectingMessage with an externally built
        assistant message.

        Args:
            message: Assistant message, possibly carrying tool calls.
            follow_up: Re-query the provider after tool results are appended.
                With False the turn ends once the tools have run, so no
                network call is made.
        """
        self.guard.reset()
        start = len(self.conversation)
        return self._drive(
            start, LoopState.INSPECTING_MESSAGE, pending=message, follow_up=follow_up
        )

    def _drive(
        self,
        start: int,
        state: LoopState,
        pending: Optional[Message] = None,
        follow_up: bool = True,
    ) -> TurnResult:
        result = TurnResult()
        message = pending
        calls: list[ToolCallRequest] = []
        self.state = state

        try:
            while self.state is not LoopState.TERMINAL:
                if self.state is LoopState.AWAITING_PROVIDER_REPLY:
                    message = self.provider.send(
                        self.conversation.snapshot(), self.registry.describe()
                    )
                    self.state = LoopState.INSPECTING_MESSAGE

                elif self.state is LoopState.INSPECTING_MESSAGE:
                    self.conversation.append(message)
                    if message.content:
                        result.reply = message.content
                    calls = self._select_tool_calls(message)
                    if calls:
                        self.state = LoopState.EXECUTING_TOOL
                    else:
                        logger.debug("No tool calls present, turn complete")
                        self.state = LoopState.TERMINAL

                elif self.state is LoopState.EXECUTING_TOOL:
                    self.guard.enter()
                    answered = self._execute_tool_calls(calls, result)
                    if answered and follow_up:
                        self.state = LoopState.AWAITING_PROVIDER_REPLY
                    else:
                        self.state = LoopState.TERMINAL
        except CowchatError:
            self.state = LoopState.TERMINAL
            raise

        result.depth = self.guard.depth
        result.messages_added = len(self.conversation) - start
        return result

    def _select_tool_calls(self, message: Message) -> list[ToolCallRequest]:
        if not message.has_tool_calls:
            return []
        if self.process_all_tool_calls:
            return list(message.tool_calls)
        if len(message.tool_calls) > 1:
            logger.info(
                "Assistant requested %d tool calls; processing only the first",
                len(message.tool_calls),
            )
        return [message.tool_calls[0]]

    def _execute_tool_calls(
        self, calls: list[ToolCallRequest], result: TurnResult
    ) -> int:
        """Run ``calls`` and append their results; returns how many were answered."""
        answered = 0
        for call in calls:
            logger.info("Processing tool call %s -> %s", call.id, call.name)
            output = self._execute_tool(call)
            if output is None:
                continue
            self.conversation.append(Message.tool_result(call, output))
            result.tools_used.append(call.name)
            answered += 1
        return answered

    def _execute_tool(self, call: ToolCallRequest) -> Optional[str]:
        """
        Dispatch one tool call.

        Returns:
            The tool-result text (tool failures included), or None when the
            tool is unknown and the call must be left unanswered.
        """
        if self.tracing_context:
            return self._execute_tool_with_tracing(call)

        try:
            return self.registry.dispatch(call.name, call.arguments)
        except UnknownTool:
            logger.warning("Unknown tool function '%s' - ignored", call.name)
            return None
        except (InvalidArgument, ToolExecutionFailed) as e:
            logger.warning("Tool '%s' failed: %s", call.name, e)
            return f"Error: {e}"

    def _execute_tool_with_tracing(self, call: ToolCallRequest) -> Optional[str]:
        """Dispatch one tool call inside a tracing span."""
        with self.tracing_context.span(
            name=f"tool:{call.name}",
            metadata={"tool_call_id": call.id, "depth": self.guard.depth},
            input=dict(call.arguments),
        ) as span:
            try:
                output = self.registry.dispatch(call.name, call.arguments)
            except UnknownTool:
                logger.warning("Unknown tool function '%s' - ignored", call.name)
                span.set_status("unknown_tool")
                return None
            except (InvalidArgument, ToolExecutionFailed) as e:
                logger.warning("Tool '%s' failed: %s", call.name, e)
                span.set_status("error")
                output = f"Error: {e}"
            span.set_output({"result": output[:500]})
            return output
