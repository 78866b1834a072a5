"""Chat turn service: one streamed conversation turn, end to end.

Turn lifecycle:
1. prepare(): resolve owner, chat id and model, create the chat record.
   Anything wrong here is rejected before a single server is contacted.
2. stream(): open the per-turn client pool, merge tool catalogs, run the
   completion driver and forward its events.
3. On any exit (finish, model failure, cancellation, consumer gone) the pool
   is closed exactly once and the transcript is written back best-effort.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Optional

from toolchat.application.services.session_reconciler import SessionReconciler
from toolchat.configuration.config import Settings
from toolchat.domain.exceptions import (
    AuthenticationRequiredError,
    StorageFailureError,
    TurnCancelledError,
)
from toolchat.domain.model.conversation import ConversationMessage
from toolchat.domain.model.mcp import ServerDescriptor
from toolchat.domain.ports import ModelCapability
from toolchat.domain.shared_kernel import new_id
from toolchat.infrastructure.agent.cancellation import CancellationToken
from toolchat.infrastructure.agent.core import CompletionDriver, DriverConfig, TurnEvent
from toolchat.infrastructure.agent.prompts import build_system_prompt
from toolchat.infrastructure.llm import LiteLLMCapability, ModelSpec, get_model
from toolchat.infrastructure.mcp import MCPClientPool, ToolRegistry

logger = logging.getLogger(__name__)

CapabilityFactory = Callable[[ModelSpec], ModelCapability]
PoolFactory = Callable[[], MCPClientPool]


@dataclass
class TurnMetadata:
    """Caller-supplied identifiers, before resolution. Body values win over headers."""

    body_user_id: Optional[str] = None
    header_user_id: Optional[str] = None
    body_chat_id: Optional[str] = None
    header_chat_id: Optional[str] = None
    body_model: Optional[str] = None
    header_model: Optional[str] = None

    def resolve(self, default_model: str) -> tuple[str, str, str]:
        """
        Returns (owner_id, session_id, model alias).

        Raises:
            AuthenticationRequiredError: If no owner id was supplied.
        """
        owner_id = self.body_user_id or self.header_user_id
        if not owner_id:
            raise AuthenticationRequiredError()
        session_id = self.body_chat_id or self.header_chat_id or new_id()
        model = self.body_model or self.header_model or default_model
        return owner_id, session_id, model


@dataclass
class PreparedTurn:
    owner_id: str
    session_id: str
    model: ModelSpec
    messages: list[ConversationMessage] = field(default_factory=list)
    servers: list[ServerDescriptor] = field(default_factory=list)


class ChatTurnService:
    """Runs chat turns against per-request MCP servers."""

    def __init__(
        self,
        settings: Settings,
        reconciler: SessionReconciler,
        capability_factory: Optional[CapabilityFactory] = None,
        pool_factory: Optional[PoolFactory] = None,
    ) -> None:
        self._settings = settings
        self._reconciler = reconciler
        self._capability_factory = capability_factory or self._default_capability
        self._pool_factory = pool_factory or self._default_pool

    def _default_capability(self, spec: ModelSpec) -> ModelCapability:
        return LiteLLMCapability(
            spec.litellm_model,
            system_prompt=build_system_prompt(),
            temperature=self._settings.llm_temperature,
            max_tokens=self._settings.llm_max_tokens,
            timeout=int(self._settings.agent_step_timeout_seconds),
        )

    def _default_pool(self) -> MCPClientPool:
        return MCPClientPool(
            connect_timeout=self._settings.mcp_connect_timeout_seconds,
            request_timeout=self._settings.mcp_tool_call_timeout_seconds,
            client_name=self._settings.mcp_client_name,
            protocol_version=self._settings.mcp_protocol_version,
        )

    def _driver_config(self) -> DriverConfig:
        return DriverConfig(
            max_steps=self._settings.agent_max_steps,
            step_timeout=self._settings.agent_step_timeout_seconds,
            tool_call_timeout=self._settings.mcp_tool_call_timeout_seconds,
            reasoning_tag=self._settings.agent_reasoning_tag,
            chunking=self._settings.stream_smooth_chunking,
            smooth_delay_ms=self._settings.stream_smooth_delay_ms,
            smooth_max_delay_ms=self._settings.stream_smooth_max_delay_ms,
        )

    async def prepare(
        self,
        metadata: TurnMetadata,
        messages: Sequence[ConversationMessage],
        servers: Sequence[ServerDescriptor],
    ) -> PreparedTurn:
        """
        Validate a turn request and make sure its chat record exists.

        Raises:
            AuthenticationRequiredError: No owner id.
            UnknownModelError: Model alias not in the catalog.
            SessionOwnershipError: Chat id belongs to another owner.
        """
        owner_id, session_id, alias = metadata.resolve(self._settings.default_model)
        spec = get_model(alias)
        await self._reconciler.ensure_session(session_id, owner_id)
        logger.info(
            f"Prepared turn: chat={session_id}, user={owner_id}, model={alias}, "
            f"servers={len(servers)}"
        )
        return PreparedTurn(
            owner_id=owner_id,
            session_id=session_id,
            model=spec,
            messages=list(messages),
            servers=list(servers),
        )

    async def stream(
        self, turn: PreparedTurn, cancel: CancellationToken
    ) -> AsyncIterator[TurnEvent]:
        """Run the turn and yield its events. Always ends with one done or error event."""
        pool = self._pool_factory()
        pool.bind(cancel)
        cancel.cancel_after(self._settings.turn_max_duration_seconds, "turn duration exceeded")
        driver: Optional[CompletionDriver] = None

        try:
            opened = await pool.open(turn.servers, cancel)
            registry = await cancel.guard(ToolRegistry.merge(opened.handles))
            driver = CompletionDriver(
                self._capability_factory(turn.model),
                registry,
                turn.messages,
                cancel,
                self._driver_config(),
            )
            async with aclosing(driver.run()) as events:
                async for event in events:
                    yield event
        except TurnCancelledError:
            logger.info(f"Turn for chat {turn.session_id} cancelled before the model ran")
            yield TurnEvent.done("cancelled", 0)
        finally:
            cancel.dispose()
            # Teardown must finish even if the response task is being cancelled
            await asyncio.shield(self._teardown(pool, turn, driver))

    async def _teardown(
        self, pool: MCPClientPool, turn: PreparedTurn, driver: Optional[CompletionDriver]
    ) -> None:
        await pool.close_all()
        messages = driver.final_messages if driver is not None else turn.messages
        try:
            await self._reconciler.reconcile(turn.session_id, turn.owner_id, messages)
        except StorageFailureError as e:
            logger.error(f"Failed to persist chat {turn.session_id}: {e}")
