from toolchat.domain.model.conversation.message import (
    ConversationMessage,
    MessagePart,
    MessageRole,
    ReasoningPart,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    part_from_dict,
)
from toolchat.domain.model.conversation.session import (
    ConversationSession,
    StepRecord,
    derive_title,
)

__all__ = [
    "MessageRole",
    "MessagePart",
    "TextPart",
    "ReasoningPart",
    "ToolCallPart",
    "ToolResultPart",
    "part_from_dict",
    "ConversationMessage",
    "ConversationSession",
    "StepRecord",
    "derive_title",
]
