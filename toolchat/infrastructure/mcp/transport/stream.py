"""
Stream transports backed by the MCP SDK client streams.

The SDK context managers run anyio task groups, which must be entered and
exited from the same task. Each transport therefore keeps one runner task
that owns the exit stack and the reader loop for the whole connection;
close() cancels that task rather than unwinding the stack from the caller.
"""

import asyncio
import contextlib
import logging
from abc import abstractmethod
from contextlib import AsyncExitStack
from typing import Any, cast

import httpx
from mcp.client.sse import sse_client
from mcp.client.streamable_http import streamable_http_client
from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage, JSONRPCNotification, JSONRPCRequest

from toolchat.domain.model.mcp import ConnectionRecipe
from toolchat.infrastructure.mcp.transport.base import (
    BaseTransport,
    MCPTransportClosedError,
    MCPTransportError,
    MCPTransportTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0


def wrap_message(message: Any) -> SessionMessage:
    """Envelope a JSON-RPC model for the SDK write stream.

    mcp 1.x wraps every message in the JSONRPCMessage root model; releases
    where JSONRPCMessage is a plain union take the model itself.
    """
    if isinstance(JSONRPCMessage, type):
        return SessionMessage(message=JSONRPCMessage(root=message))
    return SessionMessage(message=message)


def unwrap_message(session_message: SessionMessage) -> Any:
    """The request, notification or response carried by a session message."""
    return getattr(session_message.message, "root", session_message.message)


class StreamTransport(BaseTransport):
    """JSON-RPC over a pair of SDK message streams."""

    def __init__(self, recipe: ConnectionRecipe, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        super().__init__(recipe)
        self._timeout = timeout
        self._write_stream: Any | None = None
        self._pending_requests: dict[int, asyncio.Future[Any]] = {}
        self._runner: asyncio.Task[None] | None = None

    @abstractmethod
    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        """Enter the SDK client context on the stack and return (read, write)."""
        ...

    async def open(self) -> None:
        if self._runner is not None:
            return
        loop = asyncio.get_running_loop()
        ready: asyncio.Future[None] = loop.create_future()
        self._runner = asyncio.create_task(self._run(ready))
        try:
            await ready
        except BaseException:
            await self.close()
            raise
        self._is_open = True
        logger.info(f"Opened {self._recipe.kind.value} transport to {self._recipe.url}")

    async def _run(self, ready: asyncio.Future[None]) -> None:
        try:
            async with AsyncExitStack() as stack:
                read_stream, self._write_stream = await self._open_streams(stack)
                ready.set_result(None)
                await self._read_messages(read_stream)
        except Exception as e:
            if not ready.done():
                ready.set_exception(
                    MCPTransportError(f"Failed to open {self._recipe.url}: {e}")
                )
            else:
                logger.warning(f"Transport to {self._recipe.url} ended with error: {e}")
            self._fail_pending(e)
        finally:
            self._is_open = False
            self._write_stream = None
            self._fail_pending(MCPTransportClosedError("Transport closed"))

    async def _read_messages(self, read_stream: Any) -> None:
        """Resolve pending futures from incoming responses until the stream ends."""
        async for message in read_stream:
            if isinstance(message, Exception):
                logger.error(f"Received exception from MCP server: {message}")
                self._fail_pending(message)
                continue

            msg = unwrap_message(message)
            request_id = getattr(msg, "id", None)
            if request_id is None or (not hasattr(msg, "result") and not hasattr(msg, "error")):
                # Server-initiated notifications and requests are not used here
                logger.debug(f"Ignoring server message: {getattr(msg, 'method', msg)}")
                continue

            future = self._pending_requests.pop(request_id, None)
            if future is None or future.done():
                continue
            error = getattr(msg, "error", None)
            if error is not None:
                future.set_exception(MCPTransportError(f"MCP error {error.code}: {error.message}"))
            else:
                future.set_result(getattr(msg, "result", None))

    def _fail_pending(self, error: BaseException) -> None:
        for future in self._pending_requests.values():
            if not future.done():
                future.set_exception(error)
        self._pending_requests.clear()

    async def close(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        if not runner.done():
            runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        self._is_open = False
        logger.info(f"Closed {self._recipe.kind.value} transport to {self._recipe.url}")

    async def _send(self, root: JSONRPCRequest | JSONRPCNotification) -> None:
        if not self._is_open or self._write_stream is None:
            raise MCPTransportClosedError("Transport is not open")
        await self._write_stream.send(wrap_message(root))

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        request_id = self._next_request_id()
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future

        request = JSONRPCRequest(jsonrpc="2.0", id=request_id, method=method, params=params)
        try:
            await self._send(request)
            result = await asyncio.wait_for(future, timeout=timeout or self._timeout)
        except asyncio.TimeoutError:
            raise MCPTransportTimeoutError(f"Timeout waiting for response to {method}") from None
        finally:
            self._pending_requests.pop(request_id, None)

        if hasattr(result, "model_dump"):
            return cast(dict[str, Any], result.model_dump())
        if isinstance(result, dict):
            return cast(dict[str, Any], result)
        return {"result": result}

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        await self._send(JSONRPCNotification(jsonrpc="2.0", method=method, params=params))


class StreamableHTTPTransport(StreamTransport):
    """MCP transport using Streamable HTTP (MCP SDK)."""

    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        http_client = await stack.enter_async_context(
            httpx.AsyncClient(headers=self._recipe.headers, timeout=httpx.Timeout(self._timeout))
        )
        read_stream, write_stream, _ = await stack.enter_async_context(
            streamable_http_client(self._recipe.url, http_client=http_client)
        )
        return read_stream, write_stream


class SSETransport(StreamTransport):
    """MCP transport using Server-Sent Events (MCP SDK)."""

    async def _open_streams(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        read_stream, write_stream = await stack.enter_async_context(
            sse_client(self._recipe.url, headers=self._recipe.headers, timeout=self._timeout)
        )
        return read_stream, write_stream
