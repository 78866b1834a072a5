"""Unit tests for StreamTransport over in-memory SDK message streams."""

import asyncio
from collections.abc import Callable
from contextlib import AsyncExitStack
from typing import Any

import anyio
import pytest
from mcp.shared.message import SessionMessage
from mcp.types import (
    ErrorData,
    JSONRPCError,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
)

from toolchat.domain.model.mcp import ConnectionRecipe, TransportKind
from toolchat.infrastructure.mcp.transport import (
    MCPTransportClosedError,
    MCPTransportError,
    MCPTransportTimeoutError,
    StreamTransport,
    unwrap_message,
    wrap_message,
)

Handler = Callable[[JSONRPCRequest], list[Any]]


class MemoryTransport(StreamTransport):
    """Talks to an in-process fake server instead of a network endpoint."""

    def __init__(self, handler: Handler, fail_open: bool = False) -> None:
        super().__init__(ConnectionRecipe(kind=TransportKind.HTTP, url="memory://server"), timeout=1.0)
        self.handler = handler
        self.fail_open = fail_open
        self.received: list[Any] = []

    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        if self.fail_open:
            raise ConnectionError("connection refused")
        client_send, server_recv = anyio.create_memory_object_stream(16)
        server_send, client_recv = anyio.create_memory_object_stream(16)
        for stream in (client_send, server_recv, server_send, client_recv):
            await stack.enter_async_context(stream)

        async def serve() -> None:
            async for session_message in server_recv:
                root = unwrap_message(session_message)
                self.received.append(root)
                if isinstance(root, JSONRPCRequest):
                    for reply in self.handler(root):
                        await server_send.send(wrap_message(reply))

        server = asyncio.create_task(serve())
        stack.callback(server.cancel)
        return client_recv, client_send


def echo_handler(request: JSONRPCRequest) -> list[Any]:
    if request.method == "tools/list":
        return [JSONRPCResponse(jsonrpc="2.0", id=request.id, result={"tools": []})]
    if request.method == "slow":
        return []
    if request.method == "chatty":
        return [
            JSONRPCNotification(jsonrpc="2.0", method="notifications/message", params={"level": "info"}),
            JSONRPCRequest(jsonrpc="2.0", id=999, method="ping"),
            JSONRPCResponse(jsonrpc="2.0", id=request.id, result={"ok": True}),
        ]
    return [
        JSONRPCError(
            jsonrpc="2.0",
            id=request.id,
            error=ErrorData(code=-32601, message="Method not found"),
        )
    ]


@pytest.mark.unit
class TestStreamTransport:
    async def test_request_resolves_matching_response(self):
        transport = MemoryTransport(echo_handler)
        await transport.open()
        try:
            result = await transport.request("tools/list")
        finally:
            await transport.close()

        assert result == {"tools": []}

    async def test_jsonrpc_error_raises_transport_error(self):
        transport = MemoryTransport(echo_handler)
        await transport.open()
        try:
            with pytest.raises(MCPTransportError, match="-32601"):
                await transport.request("unknown/method")
        finally:
            await transport.close()

    async def test_server_notifications_and_requests_are_ignored(self):
        transport = MemoryTransport(echo_handler)
        await transport.open()
        try:
            result = await transport.request("chatty")
        finally:
            await transport.close()

        assert result == {"ok": True}

    async def test_request_timeout(self):
        transport = MemoryTransport(echo_handler)
        await transport.open()
        try:
            with pytest.raises(MCPTransportTimeoutError):
                await transport.request("slow", timeout=0.05)
        finally:
            await transport.close()

    async def test_notify_reaches_server(self):
        transport = MemoryTransport(echo_handler)
        await transport.open()
        try:
            await transport.notify("notifications/initialized")
            await transport.request("tools/list")
        finally:
            await transport.close()

        assert isinstance(transport.received[0], JSONRPCNotification)
        assert transport.received[0].method == "notifications/initialized"

    async def test_open_failure_raises_transport_error(self):
        transport = MemoryTransport(echo_handler, fail_open=True)

        with pytest.raises(MCPTransportError, match="connection refused"):
            await transport.open()

        assert not transport.is_open

    async def test_close_is_idempotent_and_blocks_further_requests(self):
        transport = MemoryTransport(echo_handler)
        await transport.open()

        await transport.close()
        await transport.close()

        assert not transport.is_open
        with pytest.raises(MCPTransportClosedError):
            await transport.request("tools/list")


@pytest.mark.unit
class TestSessionMessageEnvelope:
    def test_request_envelope_is_accepted_by_installed_sdk(self):
        request = JSONRPCRequest(jsonrpc="2.0", id=1, method="initialize", params={"capabilities": {}})

        envelope = wrap_message(request)

        assert isinstance(envelope, SessionMessage)
        assert unwrap_message(envelope) == request

    def test_notification_envelope(self):
        notification = JSONRPCNotification(jsonrpc="2.0", method="notifications/initialized")

        assert unwrap_message(wrap_message(notification)).method == "notifications/initialized"

    def test_envelope_serializes_as_jsonrpc(self):
        request = JSONRPCRequest(jsonrpc="2.0", id=7, method="tools/list")

        payload = wrap_message(request).message.model_dump(by_alias=True, exclude_none=True)

        assert payload["jsonrpc"] == "2.0"
        assert payload["id"] == 7
        assert payload["method"] == "tools/list"
