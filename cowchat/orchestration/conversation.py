"""
Append-only conversation log for a single session.

The log is replayed verbatim to the provider on every round, so insertion
order is the conversation order. Entries are never mutated or removed.
"""

import logging
from typing import Callable, Iterator, Optional

from ..exceptions import ConversationError
from ..models import Message, Role

logger = logging.getLogger(__name__)


class Conversation:
    """
    Ordered message log owned by one orchestration loop.

    Enforces the log invariants on ``append``: a single system message that
    comes first, and tool results that answer a tool call issued earlier in
    the same log. Not thread-safe.
    """

    def __init__(self, on_append: Optional[Callable[[Message], None]] = None):
        self._messages: list[Message] = []
        self._issued_call_ids: set[str] = set()
        self.on_append = on_append

    def append(self, message: Message) -> None:
        """Add ``message`` to the end of the log."""
        self._validate(message)
        self._messages.append(message)
        for call in message.tool_calls:
            self._issued_call_ids.add(call.id)
        logger.debug(
            "Appended %s message #%d", message.role.value, len(self._messages)
        )
        if self.on_append is not None:
            self.on_append(message)

    def _validate(self, message: Message) -> None:
        if message.role is Role.SYSTEM:
            if self._messages:
                raise ConversationError(
                    "The system message must be the first and only system message"
                )
        elif not self._messages:
            raise ConversationError(
                f"Conversation must start with a system message, got {message.role.value}"
            )

        if message.role is Role.TOOL and message.tool_call_id not in self._issued_call_ids:
            raise ConversationError(
                f"Tool result references unknown tool call '{message.tool_call_id}'"
            )

    def snapshot(self) -> tuple[Message, ...]:
        """The full ordered log, for transmission to the provider."""
        return tuple(self._messages)

    @property
    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
