"""
MCP transport layer.

- resolver: descriptor -> connection recipe (no I/O)
- factory: recipe -> transport instance
- stream: Streamable HTTP and SSE transports over the MCP SDK
"""

from toolchat.infrastructure.mcp.transport.base import (
    BaseTransport,
    MCPTransportClosedError,
    MCPTransportError,
    MCPTransportTimeoutError,
)
from toolchat.infrastructure.mcp.transport.factory import TransportFactory
from toolchat.infrastructure.mcp.transport.resolver import flatten_headers, resolve
from toolchat.infrastructure.mcp.transport.stream import (
    SSETransport,
    StreamableHTTPTransport,
    StreamTransport,
    unwrap_message,
    wrap_message,
)

__all__ = [
    "BaseTransport",
    "MCPTransportError",
    "MCPTransportClosedError",
    "MCPTransportTimeoutError",
    "TransportFactory",
    "resolve",
    "flatten_headers",
    "StreamTransport",
    "StreamableHTTPTransport",
    "SSETransport",
    "wrap_message",
    "unwrap_message",
]
