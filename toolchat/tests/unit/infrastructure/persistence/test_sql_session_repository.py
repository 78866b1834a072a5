"""Unit tests for SqlSessionRepository on in-memory SQLite."""

from unittest.mock import AsyncMock

import pytest

from toolchat.domain.exceptions import RepositoryError
from toolchat.domain.model.conversation import (
    ConversationMessage,
    ConversationSession,
    MessageRole,
    ReasoningPart,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from toolchat.infrastructure.adapters.secondary.persistence.sql_session_repository import (
    SqlSessionRepository,
)


def conversation() -> list[ConversationMessage]:
    return [
        ConversationMessage(id="m1", role=MessageRole.USER, parts=[TextPart(text="Weather in Oslo?")]),
        ConversationMessage(
            id="m2",
            role=MessageRole.ASSISTANT,
            parts=[
                ReasoningPart(reasoning="Need the forecast tool"),
                TextPart(text="Let me check."),
                ToolCallPart(tool_name="forecast", args={"city": "Oslo"}, call_id="c1"),
                ToolResultPart(call_id="c1", tool_name="forecast", result={"sky": "clear"}),
                TextPart(text="Clear skies."),
            ],
        ),
    ]


@pytest.mark.unit
class TestSqlSessionRepository:
    async def test_create_and_find(self, session_repository: SqlSessionRepository):
        await session_repository.create(ConversationSession(id="chat-1", owner_id="alice"))
        await session_repository.commit()

        found = await session_repository.find_by_id("chat-1")

        assert found is not None
        assert found.owner_id == "alice"
        assert found.title == "New Chat"
        assert found.messages == []

    async def test_create_raises_when_row_cannot_be_read_back(
        self, session_repository: SqlSessionRepository
    ):
        session_repository.find_by_id = AsyncMock(return_value=None)

        with pytest.raises(RepositoryError, match="chat-1"):
            await session_repository.create(ConversationSession(id="chat-1", owner_id="alice"))

    async def test_find_missing_returns_none(self, session_repository: SqlSessionRepository):
        assert await session_repository.find_by_id("missing") is None

    async def test_create_keeps_existing_owner(self, session_repository: SqlSessionRepository):
        await session_repository.create(ConversationSession(id="chat-1", owner_id="alice"))

        stored = await session_repository.create(ConversationSession(id="chat-1", owner_id="bob"))

        assert stored.owner_id == "alice"

    async def test_round_trip_preserves_part_order(self, session_repository: SqlSessionRepository):
        messages = conversation()

        await session_repository.replace_messages("chat-1", "alice", messages, title="Weather in Oslo?")
        await session_repository.commit()
        found = await session_repository.find_by_id("chat-1")

        assert found is not None
        assert found.title == "Weather in Oslo?"
        assert [m.id for m in found.messages] == ["m1", "m2"]
        assert [m.role for m in found.messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert found.messages[1].parts == messages[1].parts

    async def test_replace_is_idempotent(self, session_repository: SqlSessionRepository):
        messages = conversation()

        await session_repository.replace_messages("chat-1", "alice", messages)
        await session_repository.replace_messages("chat-1", "alice", messages)
        found = await session_repository.find_by_id("chat-1")

        assert found is not None
        assert len(found.messages) == 2

    async def test_replace_drops_messages_no_longer_present(self, session_repository: SqlSessionRepository):
        messages = conversation()
        await session_repository.replace_messages("chat-1", "alice", messages)

        await session_repository.replace_messages("chat-1", "alice", messages[:1])
        found = await session_repository.find_by_id("chat-1")

        assert found is not None
        assert [m.id for m in found.messages] == ["m1"]

    async def test_replace_reorders_by_position(self, session_repository: SqlSessionRepository):
        first, second = conversation()
        await session_repository.replace_messages("chat-1", "alice", [first, second])

        await session_repository.replace_messages("chat-1", "alice", [second, first])
        found = await session_repository.find_by_id("chat-1")

        assert found is not None
        assert [m.id for m in found.messages] == ["m2", "m1"]

    async def test_replace_without_title_keeps_existing(self, session_repository: SqlSessionRepository):
        await session_repository.replace_messages("chat-1", "alice", [], title="Kept")

        await session_repository.replace_messages("chat-1", "alice", [])
        found = await session_repository.find_by_id("chat-1")

        assert found is not None
        assert found.title == "Kept"

    async def test_list_by_owner(self, session_repository: SqlSessionRepository):
        await session_repository.create(ConversationSession(id="a1", owner_id="alice"))
        await session_repository.create(ConversationSession(id="a2", owner_id="alice"))
        await session_repository.create(ConversationSession(id="b1", owner_id="bob"))

        sessions = await session_repository.list_by_owner("alice")

        assert {s.id for s in sessions} == {"a1", "a2"}

    async def test_delete(self, session_repository: SqlSessionRepository):
        await session_repository.replace_messages("chat-1", "alice", conversation())

        assert await session_repository.delete("chat-1") is True
        assert await session_repository.find_by_id("chat-1") is None
        assert await session_repository.delete("chat-1") is False

    async def test_dialect_is_sqlite(self, session_repository: SqlSessionRepository):
        assert session_repository.dialect_name == "sqlite"
