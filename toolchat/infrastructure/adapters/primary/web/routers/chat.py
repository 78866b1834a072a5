"""Streaming chat endpoint.

POST /api/chat runs one turn and streams its events as Server-Sent Events:

    data: {"type": "text-delta", "delta": "..."}

The stream always ends with exactly one "done" or "error" event.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator

from toolchat.application.services import ChatTurnService, PreparedTurn, TurnMetadata
from toolchat.domain.model.conversation import ConversationMessage
from toolchat.domain.model.mcp import ServerDescriptor, TransportKind
from toolchat.infrastructure.adapters.primary.web.dependencies import get_chat_turn_service
from toolchat.infrastructure.agent.cancellation import CancellationToken

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.5


class KeyValueEntry(BaseModel):
    key: str = ""
    value: str = ""


class MCPServerConfig(BaseModel):
    """One tool server as described by the caller."""

    type: str = "sse"
    url: Optional[str] = None
    command: Optional[str] = None
    args: list[str] = Field(default_factory=list)
    env: list[KeyValueEntry] = Field(default_factory=list)
    headers: list[KeyValueEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_transport_fields(self) -> "MCPServerConfig":
        try:
            kind = TransportKind.normalize(self.type)
        except ValueError:
            raise ValueError(f"Unknown transport type '{self.type}'")
        if kind == TransportKind.SUBPROCESS:
            if not self.command:
                raise ValueError("command is required for subprocess servers")
        elif not self.url:
            raise ValueError(f"url is required for {kind.value} servers")
        return self

    def to_descriptor(self) -> ServerDescriptor:
        return ServerDescriptor.from_dict(self.model_dump())


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[dict[str, Any]] = Field(default_factory=list)
    mcp_servers: list[MCPServerConfig] = Field(default_factory=list, alias="mcpServers")
    selected_model: Optional[str] = Field(default=None, alias="selectedModel")
    chat_id: Optional[str] = Field(default=None, alias="chatId")
    user_id: Optional[str] = Field(default=None, alias="userId")

    def to_messages(self) -> list[ConversationMessage]:
        return [ConversationMessage.from_dict(m) for m in self.messages]


async def _watch_disconnect(request: Request, cancel: CancellationToken) -> None:
    while not cancel.cancelled:
        if await request.is_disconnected():
            logger.info("[ChatAPI] Client disconnected, cancelling turn")
            cancel.cancel("client disconnected")
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def sse_generator(
    request: Request,
    service: ChatTurnService,
    turn: PreparedTurn,
    cancel: CancellationToken,
) -> AsyncIterator[str]:
    watcher = asyncio.create_task(_watch_disconnect(request, cancel))
    try:
        async with aclosing(service.stream(turn, cancel)) as events:
            async for event in events:
                yield event.to_sse()
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


@router.post("/chat")
async def chat(
    request: Request,
    body: ChatRequest,
    x_user_id: Optional[str] = Header(None),
    x_chat_id: Optional[str] = Header(None),
    x_selected_model: Optional[str] = Header(None),
    service: ChatTurnService = Depends(get_chat_turn_service),
):
    """
    Run one chat turn against the caller's tool servers.

    Headers x-user-id, x-chat-id and x-selected-model are fallbacks for the
    userId, chatId and selectedModel body fields. The resolved chat id is
    echoed in the X-Chat-ID response header.
    """
    try:
        messages = body.to_messages()
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid message: {e}")

    metadata = TurnMetadata(
        body_user_id=body.user_id,
        header_user_id=x_user_id,
        body_chat_id=body.chat_id,
        header_chat_id=x_chat_id,
        body_model=body.selected_model,
        header_model=x_selected_model,
    )
    turn = await service.prepare(
        metadata, messages, [server.to_descriptor() for server in body.mcp_servers]
    )

    return StreamingResponse(
        sse_generator(request, service, turn, CancellationToken()),
        media_type="text/event-stream",
        headers={
            "X-Chat-ID": turn.session_id,
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
