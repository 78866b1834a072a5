from typing import Any

from fastapi import APIRouter, Depends

from toolchat.configuration.config import Settings
from toolchat.infrastructure.adapters.primary.web.dependencies import get_app_settings
from toolchat.infrastructure.llm import list_models

router = APIRouter(prefix="/api/models", tags=["models"])


@router.get("")
async def get_models(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    """Models a client may send as selectedModel."""
    return {
        "models": [spec.to_dict() for spec in list_models()],
        "default": settings.default_model,
    }
