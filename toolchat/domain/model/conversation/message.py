"""Conversation message entity and its ordered parts."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Union

from toolchat.domain.shared_kernel import Entity


class MessageRole(str, Enum):
    """Role of the message sender."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class TextPart:
    """Answer text."""

    type: ClassVar[str] = "text"
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ReasoningPart:
    """Reasoning text, kept out of the visible answer."""

    type: ClassVar[str] = "reasoning"
    reasoning: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "reasoning": self.reasoning}


@dataclass(frozen=True)
class ToolCallPart:
    """A tool invocation requested by the model."""

    type: ClassVar[str] = "tool-call"
    tool_name: str
    args: dict[str, Any]
    call_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "toolName": self.tool_name,
            "args": self.args,
            "toolCallId": self.call_id,
        }


@dataclass(frozen=True)
class ToolResultPart:
    """
    Outcome of a tool call.

    Exactly one of result and error is set; an error result is still fed
    back to the model on the next step.
    """

    type: ClassVar[str] = "tool-result"
    call_id: str
    tool_name: str
    result: Any = None
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "toolCallId": self.call_id,
            "toolName": self.tool_name,
        }
        if self.is_error:
            data["error"] = self.error
        else:
            data["result"] = self.result
        return data


MessagePart = Union[TextPart, ReasoningPart, ToolCallPart, ToolResultPart]


def part_from_dict(data: dict[str, Any]) -> MessagePart:
    """Rebuild a part from its stored or wire form."""
    part_type = data.get("type")
    if part_type == TextPart.type:
        return TextPart(text=data.get("text", ""))
    if part_type == ReasoningPart.type:
        return ReasoningPart(reasoning=data.get("reasoning", ""))
    if part_type == ToolCallPart.type:
        return ToolCallPart(
            tool_name=data["toolName"],
            args=dict(data.get("args") or {}),
            call_id=data["toolCallId"],
        )
    if part_type == ToolResultPart.type:
        return ToolResultPart(
            call_id=data["toolCallId"],
            tool_name=data.get("toolName", ""),
            result=data.get("result"),
            error=data.get("error"),
        )
    raise ValueError(f"Unknown message part type: {part_type!r}")


@dataclass(kw_only=True)
class ConversationMessage(Entity):
    """
    A single message in a conversation.

    Part order is significant: it is the order in which content was emitted
    and it must survive storage unchanged.
    """

    role: MessageRole
    parts: list[MessagePart] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def text(self) -> str:
        """Concatenated answer text, reasoning excluded."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    def is_from_user(self) -> bool:
        return self.role == MessageRole.USER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "parts": [p.to_dict() for p in self.parts],
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationMessage":
        """Create from the wire shape; a bare content string becomes one text part."""
        raw_parts = data.get("parts")
        if raw_parts:
            parts = [part_from_dict(p) for p in raw_parts]
        elif data.get("content"):
            parts = [TextPart(text=data["content"])]
        else:
            parts = []
        kwargs: dict[str, Any] = {"role": MessageRole(data["role"]), "parts": parts}
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)
