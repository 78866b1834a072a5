"""
Turn events streamed to the caller.

Every turn stream ends with exactly one DONE or ERROR event.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from toolchat.domain.model.conversation import ToolCallPart, ToolResultPart


class TurnEventType(str, Enum):
    """Types of events emitted while a turn runs."""

    TEXT_DELTA = "text-delta"
    REASONING_DELTA = "reasoning-delta"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    ERROR = "error"
    DONE = "done"


@dataclass
class TurnEvent:
    """An event emitted during a turn."""

    type: TurnEventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    @property
    def is_terminal(self) -> bool:
        return self.type in (TurnEventType.DONE, TurnEventType.ERROR)

    @classmethod
    def text_delta(cls, delta: str) -> "TurnEvent":
        """Create text delta event."""
        return cls(TurnEventType.TEXT_DELTA, {"delta": delta})

    @classmethod
    def reasoning_delta(cls, delta: str) -> "TurnEvent":
        """Create reasoning delta event."""
        return cls(TurnEventType.REASONING_DELTA, {"delta": delta})

    @classmethod
    def tool_call(cls, part: ToolCallPart) -> "TurnEvent":
        return cls(
            TurnEventType.TOOL_CALL,
            {"toolCallId": part.call_id, "toolName": part.tool_name, "args": part.args},
        )

    @classmethod
    def tool_result(cls, part: ToolResultPart) -> "TurnEvent":
        data = part.to_dict()
        data.pop("type")
        return cls(TurnEventType.TOOL_RESULT, data)

    @classmethod
    def error(cls, message: str, code: str = "model_error") -> "TurnEvent":
        return cls(TurnEventType.ERROR, {"message": message, "code": code})

    @classmethod
    def done(cls, finish_reason: str, steps: int) -> "TurnEvent":
        return cls(TurnEventType.DONE, {"finishReason": finish_reason, "steps": steps})

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, **self.data}

    def to_sse(self) -> str:
        """Format as one Server-Sent Events frame."""
        return f"data: {json.dumps(self.to_dict(), default=str)}\n\n"
