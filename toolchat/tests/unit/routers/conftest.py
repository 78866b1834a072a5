"""Fixtures for router tests: the real app with services wired to fakes."""

import pytest
from httpx import ASGITransport, AsyncClient

from toolchat.application.services import ChatSessionService, ChatTurnService, SessionReconciler
from toolchat.domain.model.mcp import ToolCallResult, ToolDescriptor
from toolchat.domain.ports import ModelEvent
from toolchat.infrastructure.adapters.primary.web.dependencies import (
    get_app_settings,
    get_chat_session_service,
    get_chat_turn_service,
    get_repository_scope,
)
from toolchat.infrastructure.adapters.primary.web.main import create_app
from toolchat.infrastructure.mcp import MCPClientPool
from toolchat.infrastructure.mcp.transport.resolver import resolve


class EchoToolClient:
    def __init__(self, descriptor) -> None:
        self.descriptor = descriptor
        self.close_count = 0

    @property
    def label(self) -> str:
        return self.descriptor.label

    async def connect(self) -> None:
        pass

    async def list_tools(self):
        return [ToolDescriptor(name="echo")]

    async def call_tool(self, name, args, timeout=None):
        return ToolCallResult(content=[{"type": "text", "text": str(args)}])

    async def close(self) -> None:
        self.close_count += 1

    @property
    def closed(self) -> bool:
        return self.close_count > 0


class GreetingCapability:
    """Answers every step with a fixed greeting."""

    def __init__(self) -> None:
        self.specs = []

    async def stream(self, transcript, tools, **kwargs):
        yield ModelEvent.text_delta("Hello there.")
        yield ModelEvent.finish()


@pytest.fixture
def capability() -> GreetingCapability:
    return GreetingCapability()


@pytest.fixture
def tool_clients() -> list:
    return []


@pytest.fixture
def app(test_settings, repository_scope, capability, tool_clients):
    def client_factory(descriptor):
        resolve(descriptor)  # raises for subprocess servers
        client = EchoToolClient(descriptor)
        tool_clients.append(client)
        return client

    def turn_service() -> ChatTurnService:
        def capability_factory(spec):
            capability.specs.append(spec)
            return capability

        return ChatTurnService(
            test_settings,
            SessionReconciler(repository_scope),
            capability_factory=capability_factory,
            pool_factory=lambda: MCPClientPool(connect_timeout=1, client_factory=client_factory),
        )

    application = create_app()
    application.dependency_overrides[get_app_settings] = lambda: test_settings
    application.dependency_overrides[get_repository_scope] = lambda: repository_scope
    application.dependency_overrides[get_chat_turn_service] = turn_service
    application.dependency_overrides[get_chat_session_service] = lambda: ChatSessionService(
        repository_scope
    )
    yield application
    application.dependency_overrides = {}


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
