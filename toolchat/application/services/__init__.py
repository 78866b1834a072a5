from toolchat.application.services.chat_session_service import ChatSessionService
from toolchat.application.services.chat_turn_service import (
    ChatTurnService,
    PreparedTurn,
    TurnMetadata,
)
from toolchat.application.services.session_reconciler import SessionReconciler

__all__ = [
    "ChatSessionService",
    "ChatTurnService",
    "PreparedTurn",
    "TurnMetadata",
    "SessionReconciler",
]
