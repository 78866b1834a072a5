"""
Session reconciliation around a chat turn.

The session record is created when the turn starts and committed right away,
so listings show in-flight chats. When the turn ends, the full message list
is written back in one transaction.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from toolchat.domain.exceptions import RepositoryError, SessionOwnershipError, StorageFailureError
from toolchat.domain.model.conversation import (
    ConversationMessage,
    ConversationSession,
    derive_title,
)
from toolchat.domain.ports.repositories import SessionRepositoryPort

logger = logging.getLogger(__name__)

RepositoryScope = Callable[[], AbstractAsyncContextManager[SessionRepositoryPort]]


class SessionReconciler:
    """Creates sessions lazily and writes finished transcripts back."""

    def __init__(self, repository_scope: RepositoryScope) -> None:
        self._repository_scope = repository_scope

    async def ensure_session(self, session_id: str, owner_id: str) -> ConversationSession:
        """
        Return the session, creating and committing an empty one if needed.

        Raises:
            SessionOwnershipError: If the session belongs to someone else.
        """
        async with self._repository_scope() as repository:
            existing = await repository.find_by_id(session_id)
            if existing is not None:
                if not existing.is_owned_by(owner_id):
                    raise SessionOwnershipError(session_id)
                return existing

            created = await repository.create(ConversationSession(id=session_id, owner_id=owner_id))
            await repository.commit()
            if not created.is_owned_by(owner_id):
                # Lost a creation race to another owner
                raise SessionOwnershipError(session_id)
            logger.info(f"Created chat {session_id} for user {owner_id}")
            return created

    async def reconcile(
        self,
        session_id: str,
        owner_id: str,
        messages: list[ConversationMessage],
    ) -> None:
        """
        Replace the stored message list with messages.

        Raises:
            StorageFailureError: If the write-back failed.
        """
        try:
            async with self._repository_scope() as repository:
                try:
                    await repository.replace_messages(
                        session_id, owner_id, messages, title=derive_title(messages)
                    )
                    await repository.commit()
                except RepositoryError:
                    await repository.rollback()
                    raise
        except RepositoryError as e:
            raise StorageFailureError(session_id, original_error=e) from e
        logger.info(f"Stored {len(messages)} messages for chat {session_id}")
