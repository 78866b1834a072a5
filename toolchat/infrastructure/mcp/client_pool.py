"""Request-scoped MCP client pool.

One pool is created per turn. It opens one client per server descriptor,
tolerates individual failures, and guarantees that every client it handed
out is closed exactly once however the turn ends.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from toolchat.domain.exceptions import MCPConnectionError
from toolchat.domain.model.mcp import ServerDescriptor
from toolchat.infrastructure.agent.cancellation import CancellationToken
from toolchat.infrastructure.mcp.client import MCPClient
from toolchat.infrastructure.mcp.transport import TransportFactory, resolve

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ServerDescriptor], MCPClient]


@dataclass
class PoolOpenResult:
    """Outcome of opening a batch of descriptors.

    Attributes:
        handles: Connected clients, in descriptor order
        errors: (descriptor, error) for every server that was dropped
    """

    handles: list[MCPClient] = field(default_factory=list)
    errors: list[tuple[ServerDescriptor, Exception]] = field(default_factory=list)


class MCPClientPool:
    """Opens and tears down the MCP clients of one turn."""

    def __init__(
        self,
        connect_timeout: float = 10.0,
        request_timeout: float = 30.0,
        client_name: str = "toolchat",
        protocol_version: str = "2024-11-05",
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._connect_timeout = connect_timeout
        self._request_timeout = request_timeout
        self._client_name = client_name
        self._protocol_version = protocol_version
        self._client_factory = client_factory or self._default_client_factory
        self._handles: list[MCPClient] = []
        self._closed = False

    @property
    def handles(self) -> tuple[MCPClient, ...]:
        return tuple(self._handles)

    @property
    def closed(self) -> bool:
        return self._closed

    def _default_client_factory(self, descriptor: ServerDescriptor) -> MCPClient:
        recipe = resolve(descriptor)
        transport = TransportFactory.create(recipe, timeout=self._request_timeout)
        return MCPClient(
            descriptor,
            transport,
            client_name=self._client_name,
            protocol_version=self._protocol_version,
        )

    def bind(self, cancel: CancellationToken) -> None:
        """Tear the pool down when the token fires."""
        cancel.register(self.close_all)

    async def open(
        self,
        descriptors: Sequence[ServerDescriptor],
        cancel: Optional[CancellationToken] = None,
    ) -> PoolOpenResult:
        """
        Connect to every descriptor concurrently.

        Each attempt is bounded by the connect timeout. Failed attempts are
        logged and dropped; zero handles is a valid outcome. If the token
        fires while attempts are pending they are abandoned, and anything
        that did connect is closed instead of being kept.
        """
        result = PoolOpenResult()
        if not descriptors:
            return result

        tasks = [asyncio.create_task(self._connect_one(d)) for d in descriptors]
        if cancel is not None:
            cancel.register(lambda: [t.cancel() for t in tasks if not t.done()])

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        abandoned = self._closed or (cancel is not None and cancel.cancelled)
        for descriptor, outcome in zip(descriptors, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                result.errors.append(
                    (descriptor, MCPConnectionError(descriptor.label, "Connection abandoned"))
                )
            elif isinstance(outcome, Exception):
                logger.warning(f"[ClientPool] Dropping server {descriptor.label}: {outcome}")
                result.errors.append((descriptor, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            elif abandoned:
                await outcome.close()
            else:
                result.handles.append(outcome)

        self._handles.extend(result.handles)
        logger.info(
            f"[ClientPool] Opened {len(result.handles)}/{len(descriptors)} MCP servers"
            f" ({len(result.errors)} failed)"
        )
        return result

    async def _connect_one(self, descriptor: ServerDescriptor) -> MCPClient:
        client = self._client_factory(descriptor)
        try:
            await asyncio.wait_for(client.connect(), timeout=self._connect_timeout)
        except asyncio.TimeoutError as e:
            await client.close()
            raise MCPConnectionError(
                descriptor.label,
                f"Timed out connecting to '{descriptor.label}' after {self._connect_timeout}s",
            ) from e
        except BaseException:
            await client.close()
            raise
        return client

    async def close_all(self) -> bool:
        """
        Close every handle.

        Only the first call does the work; it returns True. Every later or
        concurrent call returns False without touching the handles.
        """
        if self._closed:
            return False
        self._closed = True
        handles, self._handles = self._handles, []
        results = await asyncio.gather(*(h.close() for h in handles), return_exceptions=True)
        for handle, outcome in zip(handles, results):
            if isinstance(outcome, Exception):
                logger.warning(f"[ClientPool] Error closing {handle.label}: {outcome}")
        logger.info(f"[ClientPool] Closed {len(handles)} MCP clients")
        return True
