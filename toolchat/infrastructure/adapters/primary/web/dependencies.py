"""FastAPI dependency providers. Tests override these via app.dependency_overrides."""

from typing import Optional

from fastapi import Depends, Header

from toolchat.application.services import (
    ChatSessionService,
    ChatTurnService,
    SessionReconciler,
)
from toolchat.application.services.session_reconciler import RepositoryScope
from toolchat.configuration.config import Settings, get_settings
from toolchat.domain.exceptions import AuthenticationRequiredError
from toolchat.infrastructure.adapters.secondary.persistence.database import (
    async_session_factory,
)
from toolchat.infrastructure.adapters.secondary.persistence.sql_session_repository import (
    make_repository_scope,
)


def get_app_settings() -> Settings:
    return get_settings()


def get_repository_scope() -> RepositoryScope:
    """Each scope opens its own database session, independent of the request."""
    return make_repository_scope(async_session_factory)


def get_session_reconciler(
    scope: RepositoryScope = Depends(get_repository_scope),
) -> SessionReconciler:
    return SessionReconciler(scope)


def get_chat_turn_service(
    settings: Settings = Depends(get_app_settings),
    reconciler: SessionReconciler = Depends(get_session_reconciler),
) -> ChatTurnService:
    return ChatTurnService(settings, reconciler)


def get_chat_session_service(
    scope: RepositoryScope = Depends(get_repository_scope),
) -> ChatSessionService:
    return ChatSessionService(scope)


def get_owner_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Owner id from the x-user-id header."""
    if not x_user_id:
        raise AuthenticationRequiredError()
    return x_user_id
