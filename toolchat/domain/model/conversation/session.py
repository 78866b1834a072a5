"""Conversation session aggregate and transient step records."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from toolchat.domain.model.conversation.message import (
    ConversationMessage,
    MessagePart,
    ToolCallPart,
    ToolResultPart,
)
from toolchat.domain.shared_kernel import Entity

TITLE_MAX_LENGTH = 100


@dataclass(kw_only=True)
class ConversationSession(Entity):
    """
    A durable conversation owned by one user.

    Created empty at turn start; its message list is replaced wholesale at
    turn end.
    """

    owner_id: str
    title: str = "New Chat"
    messages: list[ConversationMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_owned_by(self, owner_id: str) -> bool:
        return self.owner_id == owner_id


def derive_title(messages: list[ConversationMessage]) -> str | None:
    """Title from the first user message's text, or None if there is none."""
    for message in messages:
        if message.is_from_user():
            text = message.text.strip()
            if text:
                return text[:TITLE_MAX_LENGTH]
    return None


@dataclass
class StepRecord:
    """What one loop iteration produced. Never persisted on its own."""

    index: int
    parts: list[MessagePart] = field(default_factory=list)

    @property
    def tool_calls(self) -> list[ToolCallPart]:
        return [p for p in self.parts if isinstance(p, ToolCallPart)]

    @property
    def tool_results(self) -> list[ToolResultPart]:
        return [p for p in self.parts if isinstance(p, ToolResultPart)]
