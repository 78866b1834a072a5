"""
MCP client for one tool server.

Wraps a transport with the protocol handshake and the tools/list and
tools/call methods. One client lives for one turn and is closed by the pool.
"""

import asyncio
import logging
from typing import Any

from toolchat.domain.exceptions import MCPConnectionError, MCPToolExecutionError
from toolchat.domain.model.mcp import ServerDescriptor, ToolCallResult, ToolDescriptor
from toolchat.infrastructure.mcp.transport import BaseTransport, MCPTransportError

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class MCPClient:
    """
    A live connection to one MCP server.

    Owns exactly one transport. close() is safe to call more than once.
    """

    def __init__(
        self,
        descriptor: ServerDescriptor,
        transport: BaseTransport,
        client_name: str = "toolchat",
        client_version: str = "0.1.0",
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
    ) -> None:
        self.descriptor = descriptor
        self._transport = transport
        self._client_name = client_name
        self._client_version = client_version
        self._protocol_version = protocol_version
        self._closed = False
        self.server_info: dict[str, Any] = {}

    @property
    def label(self) -> str:
        return self.descriptor.label

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        """
        Open the transport and perform the initialize handshake.

        Raises:
            MCPConnectionError: If the transport or the handshake fails.
        """
        try:
            await self._transport.open()
            result = await self._transport.request(
                "initialize",
                {
                    "protocolVersion": self._protocol_version,
                    "capabilities": {},
                    "clientInfo": {"name": self._client_name, "version": self._client_version},
                },
            )
            self.server_info = result.get("serverInfo") or {}
            await self._transport.notify("notifications/initialized")
        except MCPTransportError as e:
            await self.close()
            raise MCPConnectionError(self.label, original_error=e) from e
        logger.info(f"[MCPClient] Connected to {self.label} ({self.server_info.get('name', 'unknown')})")

    async def list_tools(self) -> list[ToolDescriptor]:
        """List all tools the server advertises."""
        try:
            result = await self._transport.request("tools/list")
        except MCPTransportError as e:
            raise MCPConnectionError(self.label, "Failed to list tools", original_error=e) from e
        tools = result.get("tools", [])
        return [
            ToolDescriptor.from_dict(t.model_dump() if hasattr(t, "model_dump") else t) for t in tools
        ]

    async def call_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        timeout: float | None = None,
    ) -> ToolCallResult:
        """
        Call a tool on the server.

        A result with isError set is returned, not raised.

        Raises:
            MCPToolExecutionError: If the call could not complete.
        """
        try:
            result = await self._transport.request(
                "tools/call", {"name": tool_name, "arguments": arguments}, timeout=timeout
            )
        except (MCPTransportError, asyncio.TimeoutError) as e:
            raise MCPToolExecutionError(tool_name, original_error=e) from e
        return ToolCallResult.from_dict(result)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._transport.close()
        except Exception as e:
            logger.warning(f"[MCPClient] Error closing {self.label}: {e}")
