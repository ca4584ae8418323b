"""
cowchat session driver

Wires configuration, provider, tool registry, conversation and loop into a
single chat session, and provides the scripted demo and the single-shot
harness message.
"""

import logging
import uuid
from typing import Callable, Iterable, Optional

from .exceptions import RecursionLimitExceeded, TransportError
from .models import AppConfig, Message, ToolCallRequest
from .orchestration import Conversation, OrchestrationLoop, TurnResult
from .providers import ProviderAdapter, select_provider
from .tools import ToolRegistry, build_default_registry
from .tracing import TracingContext

logger = logging.getLogger(__name__)

DEMO_QUESTIONS = (
    "Which cow bodies my system support?",
    "Tell me a joke, use cowsay.",
    "Use kangaroo and tell me one more.",
)

TEST_TOOL_CALL_ID = "call_tj0y4y59"
TEST_JOKE = "Why don't programmers like nature? Too many bugs!"


def build_test_message() -> Message:
    """Hand-crafted assistant message carrying a pre-formed cowsay tool call."""
    return Message.assistant(
        content="",
        tool_calls=(
            ToolCallRequest(
                id=TEST_TOOL_CALL_ID,
                name="call_cowsay",
                arguments={"file": "default", "message": TEST_JOKE},
            ),
        ),
    )


class ChatSession:
    """
    One conversation with one provider.

    Transport failures and runaway tool recursion end the current turn but
    not the session; they come back as an unsuccessful ``TurnResult``.
    """

    def __init__(
        self,
        settings: Optional[AppConfig] = None,
        provider: Optional[ProviderAdapter] = None,
        registry: Optional[ToolRegistry] = None,
        on_message: Optional[Callable[[Message], None]] = None,
        tracing_context: Optional[TracingContext] = None,
    ):
        """
        Initialize the session.

        Args:
            settings: Application configuration (defaults if not provided)
            provider: Provider adapter (selected from settings if not provided)
            registry: Tool registry (built-in tools if not provided)
            on_message: Called with every message appended to the conversation
            tracing_context: Optional tracing context for Langfuse observability
        """
        self.settings = settings or AppConfig()
        self.session_id = uuid.uuid4().hex[:12]
        self.tracing_context = tracing_context
        self.provider = provider or select_provider(
            self.settings.provider, tracing_context=tracing_context
        )
        self.registry = registry or build_default_registry(self.settings.tools)
        self.conversation = Conversation(on_append=on_message)
        self.conversation.append(Message.system(self.settings.orchestration.system_prompt))
        self.loop = OrchestrationLoop(
            provider=self.provider,
            registry=self.registry,
            conversation=self.conversation,
            max_depth=self.settings.orchestration.max_tool_recursion,
            process_all_tool_calls=self.settings.orchestration.process_all_tool_calls,
            tracing_context=tracing_context,
        )

    def ask(self, text: str) -> TurnResult:
        """Run one user turn."""
        return self._run(text, lambda: self.loop.run_turn(text))

    def inject(self, message: Message, follow_up: bool = False) -> TurnResult:
        """Feed an assistant message straight into the loop (test harness)."""
        return self._run(
            None, lambda: self.loop.handle_message(message, follow_up=follow_up)
        )

    def _run(self, text: Optional[str], turn: Callable[[], TurnResult]) -> TurnResult:
        if self.tracing_context:
            self.tracing_context.start_turn(text)
        try:
            result = turn()
        except (TransportError, RecursionLimitExceeded) as e:
            logger.error(f"[{self.session_id}] Turn aborted: {e}")
            result = TurnResult(
                depth=self.loop.guard.depth, success=False, error=str(e)
            )
        if self.tracing_context:
            self.tracing_context.end_turn(
                output=result.reply if result.success else result.error,
                status="success" if result.success else "error",
            )
        return result

    def close(self) -> None:
        self.provider.close()


def run_demo(
    session: ChatSession, questions: Iterable[str] = DEMO_QUESTIONS
) -> list[TurnResult]:
    """Run the scripted multi-turn demo."""
    return [session.ask(question) for question in questions]
