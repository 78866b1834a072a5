"""
SessionRepository port for conversation persistence.
"""

from abc import ABC, abstractmethod
from typing import Optional

from toolchat.domain.model.conversation import ConversationMessage, ConversationSession


class SessionRepositoryPort(ABC):
    """
    Repository port for conversation sessions.

    Message lists are written wholesale: the stored list after
    replace_messages is exactly the list passed in.
    """

    @abstractmethod
    async def find_by_id(self, session_id: str) -> Optional[ConversationSession]:
        """Find a session with its messages in stored order."""

    @abstractmethod
    async def create(self, session: ConversationSession) -> ConversationSession:
        """Insert a session record if absent and return the stored record."""

    @abstractmethod
    async def replace_messages(
        self,
        session_id: str,
        owner_id: str,
        messages: list[ConversationMessage],
        title: str | None = None,
    ) -> None:
        """
        Replace a session's message list, creating the session if missing.

        Args:
            session_id: Session ID
            owner_id: Owner used when the session has to be created
            messages: Full ordered message list
            title: New title, or None to keep the current one
        """

    @abstractmethod
    async def list_by_owner(self, owner_id: str, limit: int = 50) -> list[ConversationSession]:
        """List an owner's sessions, most recently updated first, without messages."""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Delete a session and its messages. Returns False if it did not exist."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit pending changes."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard pending changes."""
