"""Chat history endpoints, scoped to the x-user-id owner."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from toolchat.application.services import ChatSessionService
from toolchat.domain.exceptions import EntityNotFoundError
from toolchat.domain.model.conversation import ConversationSession
from toolchat.infrastructure.adapters.primary.web.dependencies import (
    get_chat_session_service,
    get_owner_id,
)

router = APIRouter(prefix="/api/chats", tags=["chats"])
logger = logging.getLogger(__name__)


def _summary(session: ConversationSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "userId": session.owner_id,
        "title": session.title,
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
    }


@router.get("")
async def list_chats(
    limit: int = Query(50, ge=1, le=200),
    owner_id: str = Depends(get_owner_id),
    service: ChatSessionService = Depends(get_chat_session_service),
) -> list[dict[str, Any]]:
    """The owner's chats, most recently updated first."""
    sessions = await service.list_sessions(owner_id, limit=limit)
    return [_summary(s) for s in sessions]


@router.get("/{chat_id}")
async def get_chat(
    chat_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ChatSessionService = Depends(get_chat_session_service),
) -> dict[str, Any]:
    session = await service.get_session(chat_id, owner_id)
    if session is None:
        raise EntityNotFoundError("Chat", chat_id)
    return {**_summary(session), "messages": [m.to_dict() for m in session.messages]}


@router.delete("/{chat_id}", status_code=204)
async def delete_chat(
    chat_id: str,
    owner_id: str = Depends(get_owner_id),
    service: ChatSessionService = Depends(get_chat_session_service),
) -> None:
    if not await service.delete_session(chat_id, owner_id):
        raise EntityNotFoundError("Chat", chat_id)
