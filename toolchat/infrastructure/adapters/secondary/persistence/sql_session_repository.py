"""
SQLAlchemy implementation of SessionRepositoryPort.

Writes use dialect-aware upserts (ON CONFLICT DO UPDATE on PostgreSQL and
SQLite), so re-running a write-back for the same message list changes
nothing and a concurrent writer for the same session ends last-write-wins.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from toolchat.domain.exceptions import RepositoryError
from toolchat.domain.model.conversation import (
    ConversationMessage,
    ConversationSession,
    MessageRole,
    part_from_dict,
)
from toolchat.domain.ports.repositories import SessionRepositoryPort
from toolchat.infrastructure.adapters.secondary.common.base_repository import (
    BaseRepository,
    handle_db_errors,
)
from toolchat.infrastructure.adapters.secondary.persistence.models import (
    ChatMessage as DBChatMessage,
    ChatSession as DBChatSession,
)

logger = logging.getLogger(__name__)


class SqlSessionRepository(BaseRepository, SessionRepositoryPort):
    """Chat sessions and their ordered messages."""

    @handle_db_errors("ConversationSession")
    async def find_by_id(self, session_id: str) -> Optional[ConversationSession]:
        result = await self._session.execute(
            select(DBChatSession)
            .where(DBChatSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        db_chat = result.scalar_one_or_none()
        if db_chat is None:
            return None

        rows = await self._session.execute(
            select(DBChatMessage)
            .where(DBChatMessage.chat_id == session_id)
            .order_by(DBChatMessage.position)
            .execution_options(populate_existing=True)
        )
        return self._to_domain(db_chat, [self._message_to_domain(m) for m in rows.scalars()])

    @handle_db_errors("ConversationSession")
    async def create(self, session: ConversationSession) -> ConversationSession:
        stmt = (
            self._upsert(DBChatSession)
            .values(
                id=session.id,
                owner_id=session.owner_id,
                title=session.title,
                created_at=session.created_at,
                updated_at=session.updated_at,
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        await self._session.execute(stmt)
        await self._session.flush()
        stored = await self.find_by_id(session.id)
        if stored is None:
            raise RepositoryError(f"Chat '{session.id}' vanished after insert")
        return stored

    @handle_db_errors("ConversationSession")
    async def replace_messages(
        self,
        session_id: str,
        owner_id: str,
        messages: list[ConversationMessage],
        title: str | None = None,
    ) -> None:
        now = datetime.now(timezone.utc)
        chat_update: dict = {"updated_at": now}
        if title:
            chat_update["title"] = title
        chat_stmt = (
            self._upsert(DBChatSession)
            .values(
                id=session_id,
                owner_id=owner_id,
                title=title or "New Chat",
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_update(index_elements=["id"], set_=chat_update)
        )
        await self._session.execute(chat_stmt)

        for position, message in enumerate(messages):
            parts = [p.to_dict() for p in message.parts]
            insert_stmt = self._upsert(DBChatMessage).values(
                chat_id=session_id,
                id=message.id,
                role=message.role.value,
                parts=parts,
                content=message.text,
                position=position,
                created_at=message.created_at,
            )
            await self._session.execute(
                insert_stmt.on_conflict_do_update(
                    index_elements=["chat_id", "id"],
                    set_={
                        "role": insert_stmt.excluded.role,
                        "parts": insert_stmt.excluded.parts,
                        "content": insert_stmt.excluded.content,
                        "position": insert_stmt.excluded.position,
                    },
                )
            )

        keep_ids = [m.id for m in messages]
        stale = delete(DBChatMessage).where(DBChatMessage.chat_id == session_id)
        if keep_ids:
            stale = stale.where(DBChatMessage.id.not_in(keep_ids))
        await self._session.execute(stale)
        await self._session.flush()
        logger.debug(f"Stored {len(messages)} messages for chat {session_id}")

    @handle_db_errors("ConversationSession")
    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[ConversationSession]:
        result = await self._session.execute(
            select(DBChatSession)
            .where(DBChatSession.owner_id == owner_id)
            .order_by(desc(DBChatSession.updated_at))
            .limit(limit)
        )
        return [self._to_domain(row, []) for row in result.scalars()]

    @handle_db_errors("ConversationSession")
    async def delete(self, session_id: str) -> bool:
        await self._session.execute(delete(DBChatMessage).where(DBChatMessage.chat_id == session_id))
        result = await self._session.execute(
            delete(DBChatSession).where(DBChatSession.id == session_id)
        )
        await self._session.flush()
        return bool(result.rowcount)

    @staticmethod
    def _message_to_domain(db_message: DBChatMessage) -> ConversationMessage:
        return ConversationMessage(
            id=db_message.id,
            role=MessageRole(db_message.role),
            parts=[part_from_dict(p) for p in db_message.parts or []],
            created_at=db_message.created_at,
        )

    @staticmethod
    def _to_domain(
        db_chat: DBChatSession, messages: list[ConversationMessage]
    ) -> ConversationSession:
        return ConversationSession(
            id=db_chat.id,
            owner_id=db_chat.owner_id,
            title=db_chat.title,
            messages=messages,
            created_at=db_chat.created_at,
            updated_at=db_chat.updated_at,
        )


def make_repository_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], AbstractAsyncContextManager[SqlSessionRepository]]:
    """A factory of short-lived repositories, each on its own database session."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[SqlSessionRepository]:
        async with session_factory() as session:
            yield SqlSessionRepository(session)

    return scope
