"""
Agent core: the per-turn completion loop and its stream shaping.

- CompletionDriver: bounded model/tool loop
- ReasoningExtractor: splits inline reasoning markers out of answer text
- ChunkSmoother: coalesces deltas into line or sentence chunks
- TurnEvent: what the caller receives
"""

from toolchat.infrastructure.agent.core.completion_driver import (
    CompletionDriver,
    DriverConfig,
    DriverState,
)
from toolchat.infrastructure.agent.core.events import TurnEvent, TurnEventType
from toolchat.infrastructure.agent.core.reasoning import ReasoningExtractor
from toolchat.infrastructure.agent.core.smoothing import ChunkSmoother

__all__ = [
    "CompletionDriver",
    "DriverConfig",
    "DriverState",
    "TurnEvent",
    "TurnEventType",
    "ReasoningExtractor",
    "ChunkSmoother",
]
