"""Read and delete access to an owner's chat sessions."""

import logging
from typing import Optional

from toolchat.application.services.session_reconciler import RepositoryScope
from toolchat.domain.model.conversation import ConversationSession

logger = logging.getLogger(__name__)


class ChatSessionService:
    def __init__(self, repository_scope: RepositoryScope) -> None:
        self._repository_scope = repository_scope

    async def list_sessions(self, owner_id: str, limit: int = 50) -> list[ConversationSession]:
        async with self._repository_scope() as repository:
            return await repository.list_by_owner(owner_id, limit=limit)

    async def get_session(self, session_id: str, owner_id: str) -> Optional[ConversationSession]:
        """The session with its messages, or None when missing or owned by someone else."""
        async with self._repository_scope() as repository:
            session = await repository.find_by_id(session_id)
        if session is None or not session.is_owned_by(owner_id):
            return None
        return session

    async def delete_session(self, session_id: str, owner_id: str) -> bool:
        async with self._repository_scope() as repository:
            session = await repository.find_by_id(session_id)
            if session is None or not session.is_owned_by(owner_id):
                return False
            deleted = await repository.delete(session_id)
            await repository.commit()
        logger.info(f"Deleted chat {session_id}")
        return deleted
