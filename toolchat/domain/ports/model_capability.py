"""
Model Capability Port - Domain interface for one streamed model step.

The completion driver knows nothing about providers. It hands the running
transcript and the merged tool catalog to a capability and consumes the
events it yields until the step finishes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Optional, Protocol, Sequence, runtime_checkable

from toolchat.domain.model.conversation import ConversationMessage, ToolCallPart
from toolchat.domain.model.mcp import ToolDescriptor


class ModelEventType(str, Enum):
    """Types of events in one model step."""

    TEXT = "text"  # Answer text delta, may contain reasoning markers
    REASONING = "reasoning"  # Provider-native reasoning delta
    TOOL_CALL = "tool_call"  # Complete tool call request
    FINISH = "finish"  # Step finished


@dataclass(frozen=True)
class ModelEvent:
    """An event from a model step.

    Attributes:
        event_type: Type of event
        text: Delta text (TEXT and REASONING events)
        tool_call: Parsed tool call (TOOL_CALL events)
        finish_reason: Provider finish reason (FINISH events)
    """

    event_type: ModelEventType
    text: str = ""
    tool_call: Optional[ToolCallPart] = None
    finish_reason: Optional[str] = None

    @classmethod
    def text_delta(cls, text: str) -> "ModelEvent":
        return cls(ModelEventType.TEXT, text=text)

    @classmethod
    def reasoning_delta(cls, text: str) -> "ModelEvent":
        return cls(ModelEventType.REASONING, text=text)

    @classmethod
    def call(cls, tool_call: ToolCallPart) -> "ModelEvent":
        return cls(ModelEventType.TOOL_CALL, tool_call=tool_call)

    @classmethod
    def finish(cls, reason: str = "stop") -> "ModelEvent":
        return cls(ModelEventType.FINISH, finish_reason=reason)


@runtime_checkable
class ModelCapability(Protocol):
    """Protocol for a streamed model step.

    Implementations raise ModelStepError for provider failures or malformed
    streams; the driver treats that as fatal to the turn.
    """

    def stream(
        self,
        transcript: Sequence[ConversationMessage],
        tools: Sequence[ToolDescriptor],
        **kwargs: Any,
    ) -> AsyncIterator[ModelEvent]:
        """Stream events for one step."""
        ...
