"""Unit tests for the request-scoped MCP client pool."""

import asyncio

import pytest

from toolchat.domain.exceptions import MCPConnectionError, UnsupportedTransportError
from toolchat.domain.model.mcp import ServerDescriptor, TransportKind
from toolchat.infrastructure.agent.cancellation import CancellationToken
from toolchat.infrastructure.mcp import MCPClientPool


class FakeClient:
    """Stands in for MCPClient; connect behaviour is chosen per URL."""

    def __init__(self, descriptor: ServerDescriptor, behaviour: str = "ok") -> None:
        self.descriptor = descriptor
        self.behaviour = behaviour
        self.close_count = 0

    @property
    def label(self) -> str:
        return self.descriptor.label

    async def connect(self) -> None:
        if self.behaviour == "fail":
            raise MCPConnectionError(self.label, "refused")
        if self.behaviour == "hang":
            await asyncio.sleep(3600)

    async def close(self) -> None:
        self.close_count += 1


def sse(url: str) -> ServerDescriptor:
    return ServerDescriptor(kind=TransportKind.SSE, url=url)


class ClientFactory:
    def __init__(self, behaviours: dict[str, str]) -> None:
        self.behaviours = behaviours
        self.created: list[FakeClient] = []

    def __call__(self, descriptor: ServerDescriptor) -> FakeClient:
        client = FakeClient(descriptor, self.behaviours.get(descriptor.url or "", "ok"))
        self.created.append(client)
        return client


@pytest.mark.unit
class TestClientPoolOpen:
    async def test_partial_failure_keeps_successful_handles_in_order(self):
        factory = ClientFactory({"https://b": "fail"})
        pool = MCPClientPool(client_factory=factory)

        result = await pool.open([sse("https://a"), sse("https://b"), sse("https://c")])

        assert [h.label for h in result.handles] == ["https://a", "https://c"]
        assert len(result.errors) == 1
        assert result.errors[0][0].url == "https://b"
        assert isinstance(result.errors[0][1], MCPConnectionError)

    async def test_handles_from_custom_factory_are_kept_as_is(self):
        factory = ClientFactory({})
        pool = MCPClientPool(client_factory=factory)

        result = await pool.open([sse("https://a")])

        assert result.errors == []
        assert result.handles[0] is factory.created[0]
        assert pool.handles == (factory.created[0],)

    async def test_all_failures_is_a_valid_outcome(self):
        factory = ClientFactory({"https://a": "fail"})
        pool = MCPClientPool(client_factory=factory)

        result = await pool.open([sse("https://a")])

        assert result.handles == []
        assert len(result.errors) == 1

    async def test_empty_descriptor_list(self):
        pool = MCPClientPool(client_factory=ClientFactory({}))

        result = await pool.open([])

        assert result.handles == [] and result.errors == []

    async def test_connect_timeout_drops_server_and_closes_client(self):
        factory = ClientFactory({"https://slow": "hang"})
        pool = MCPClientPool(connect_timeout=0.05, client_factory=factory)

        result = await pool.open([sse("https://slow"), sse("https://fast")])

        assert [h.label for h in result.handles] == ["https://fast"]
        assert "Timed out" in str(result.errors[0][1])
        assert factory.created[0].close_count == 1

    async def test_subprocess_descriptor_is_dropped_by_default_factory(self):
        pool = MCPClientPool()
        descriptor = ServerDescriptor(kind=TransportKind.SUBPROCESS, command="uvx")

        result = await pool.open([descriptor])

        assert result.handles == []
        assert isinstance(result.errors[0][1], UnsupportedTransportError)

    async def test_cancel_during_open_abandons_pending_and_closes_connected(self):
        factory = ClientFactory({"https://slow": "hang"})
        pool = MCPClientPool(connect_timeout=10, client_factory=factory)
        cancel = CancellationToken()
        pool.bind(cancel)

        opening = asyncio.create_task(pool.open([sse("https://fast"), sse("https://slow")], cancel))
        await asyncio.sleep(0.01)
        cancel.cancel("client disconnected")
        result = await opening
        await cancel.drain()

        assert result.handles == []
        assert all(client.close_count == 1 for client in factory.created)


@pytest.mark.unit
class TestClientPoolClose:
    async def test_close_all_is_single_fire(self):
        factory = ClientFactory({})
        pool = MCPClientPool(client_factory=factory)
        await pool.open([sse("https://a"), sse("https://b")])

        first = await pool.close_all()
        second = await pool.close_all()

        assert first is True
        assert second is False
        assert [c.close_count for c in factory.created] == [1, 1]

    async def test_concurrent_close_all_closes_each_handle_once(self):
        factory = ClientFactory({})
        pool = MCPClientPool(client_factory=factory)
        await pool.open([sse("https://a"), sse("https://b")])

        outcomes = await asyncio.gather(pool.close_all(), pool.close_all(), pool.close_all())

        assert sorted(outcomes) == [False, False, True]
        assert [c.close_count for c in factory.created] == [1, 1]

    async def test_cancel_then_explicit_close(self):
        factory = ClientFactory({})
        pool = MCPClientPool(client_factory=factory)
        cancel = CancellationToken()
        pool.bind(cancel)
        await pool.open([sse("https://a")], cancel)

        cancel.cancel()
        await cancel.drain()
        explicit = await pool.close_all()

        assert explicit is False
        assert factory.created[0].close_count == 1

    async def test_explicit_close_then_cancel(self):
        factory = ClientFactory({})
        pool = MCPClientPool(client_factory=factory)
        cancel = CancellationToken()
        pool.bind(cancel)
        await pool.open([sse("https://a")], cancel)

        assert await pool.close_all() is True
        cancel.cancel()
        await cancel.drain()

        assert factory.created[0].close_count == 1
        assert pool.closed
