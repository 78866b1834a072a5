"""
MCP domain models.

- ServerDescriptor / ConnectionRecipe: per-request server addressing
- ToolDescriptor / ToolCallResult: tool catalog entries and call outcomes
"""

from toolchat.domain.model.mcp.tool import ToolCallResult, ToolDescriptor
from toolchat.domain.model.mcp.transport import (
    ConnectionRecipe,
    KeyValuePair,
    ServerDescriptor,
    TransportKind,
)

__all__ = [
    "TransportKind",
    "KeyValuePair",
    "ServerDescriptor",
    "ConnectionRecipe",
    "ToolDescriptor",
    "ToolCallResult",
]
