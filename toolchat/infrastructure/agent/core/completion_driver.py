"""
Completion Driver - bounded multi-step model/tool loop for one turn.

Each step:
1. Stream one model step over the running transcript and the merged catalog
2. Shape the deltas (reasoning extraction, chunk smoothing) into turn events
3. Dispatch requested tool calls through the registry
4. Feed the results back and repeat, until a step asks for no tools, the
   step budget runs out, the token fires, or the model fails

The driver never closes connections or writes storage; the turn service does
both once the event stream has ended.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from toolchat.domain.exceptions import (
    MCPToolError,
    MCPToolNotFoundError,
    ModelStepError,
    TurnCancelledError,
)
from toolchat.domain.model.conversation import (
    ConversationMessage,
    MessagePart,
    MessageRole,
    ReasoningPart,
    StepRecord,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from toolchat.domain.model.mcp import ToolCallResult
from toolchat.domain.ports import ModelCapability, ModelEventType
from toolchat.infrastructure.agent.cancellation import CancellationToken
from toolchat.infrastructure.agent.core.events import TurnEvent
from toolchat.infrastructure.agent.core.reasoning import ReasoningExtractor, Segment
from toolchat.infrastructure.agent.core.smoothing import ChunkSmoother, Chunking
from toolchat.infrastructure.mcp.client import MCPClient
from toolchat.infrastructure.mcp.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

_STREAM_END = object()


class DriverState(str, Enum):
    """State of the completion driver."""

    IDLE = "idle"
    STREAMING = "streaming"
    FINISHED = "finished"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class DriverConfig:
    """Configuration for the completion driver."""

    max_steps: int = 5
    step_timeout: float = 60.0
    tool_call_timeout: float = 30.0
    reasoning_tag: str = "think"
    chunking: Chunking = "line"
    smooth_delay_ms: int = 5
    smooth_max_delay_ms: int = 250


class CompletionDriver:
    """
    Runs one turn's agent loop and streams its events.

    Consume run() to completion (or close it); afterwards state,
    final_messages and model_invocations describe what happened.
    """

    def __init__(
        self,
        capability: ModelCapability,
        registry: ToolRegistry,
        messages: Sequence[ConversationMessage],
        cancel: CancellationToken,
        config: DriverConfig | None = None,
    ) -> None:
        self._capability = capability
        self._registry = registry
        self._messages = list(messages)
        self._cancel = cancel
        self._config = config or DriverConfig()
        self._assistant = ConversationMessage(role=MessageRole.ASSISTANT)
        self.state = DriverState.IDLE
        self.model_invocations = 0
        self.steps: list[StepRecord] = []
        self.finish_reason: str | None = None
        self.error: str | None = None

    @property
    def assistant_message(self) -> ConversationMessage:
        return self._assistant

    @property
    def final_messages(self) -> list[ConversationMessage]:
        """Prior messages plus the assistant message, if it has any content."""
        if self._assistant.parts:
            return [*self._messages, self._assistant]
        return list(self._messages)

    async def run(self) -> AsyncIterator[TurnEvent]:
        if self.state != DriverState.IDLE:
            raise RuntimeError("CompletionDriver.run() can only be consumed once")
        self.state = DriverState.STREAMING
        catalog = self._registry.catalog()
        transcript = [*self._messages, self._assistant]

        try:
            for index in range(self._config.max_steps):
                step = StepRecord(index=index)
                self.steps.append(step)
                async with aclosing(self._stream_step(transcript, catalog, step)) as events:
                    async for event in events:
                        yield event
                if self.state != DriverState.STREAMING:
                    break

                tool_calls = step.tool_calls
                if not tool_calls:
                    self.state = DriverState.FINISHED
                    self.finish_reason = self.finish_reason or "stop"
                    break

                async with aclosing(self._dispatch_tools(tool_calls, step)) as events:
                    async for event in events:
                        yield event
                logger.debug(f"[Driver] Step {index + 1} returned {len(step.tool_results)} tool results")
                if self.state != DriverState.STREAMING:
                    break
            else:
                logger.info(f"[Driver] Step budget of {self._config.max_steps} exhausted")
                self.state = DriverState.FINISHED
                self.finish_reason = "max-steps"
        finally:
            if self.state == DriverState.STREAMING:
                # Consumer went away mid-stream
                self.state = DriverState.ABORTED
                self.finish_reason = "cancelled"

        if self.state == DriverState.FAILED:
            yield TurnEvent.error(self.error or "Model step failed")
        else:
            yield TurnEvent.done(self.finish_reason or "stop", len(self.steps))

    async def _stream_step(
        self,
        transcript: list[ConversationMessage],
        catalog: list[Any],
        step: StepRecord,
    ) -> AsyncIterator[TurnEvent]:
        extractor = ReasoningExtractor(self._config.reasoning_tag)
        smoother = ChunkSmoother(self._config.chunking, self._config.smooth_max_delay_ms)
        self.model_invocations += 1
        logger.debug(f"[Driver] Step {step.index + 1}/{self._config.max_steps}")

        stream = self._capability.stream(transcript, catalog)
        loop = asyncio.get_running_loop()
        pending: asyncio.Future[Any] | None = None
        idle_deadline = 0.0
        try:
            while True:
                if pending is None:
                    pending = asyncio.ensure_future(anext(stream, _STREAM_END))
                    idle_deadline = loop.time() + self._config.step_timeout
                remaining = idle_deadline - loop.time()
                hold = smoother.due_in()
                wait = remaining if hold is None else min(remaining, hold)
                try:
                    # Shielded so a smoothing wake-up does not abort the provider read
                    event = await self._cancel.guard(asyncio.shield(pending), timeout=max(wait, 0.0))
                except asyncio.TimeoutError:
                    if hold is not None and hold < remaining:
                        async for out in self._emit(smoother.flush(), step):
                            yield out
                        continue
                    raise
                pending = None
                if event is _STREAM_END:
                    break

                if event.event_type == ModelEventType.TEXT:
                    for kind, text in extractor.feed(event.text):
                        async for out in self._emit(smoother.push(kind, text), step):
                            yield out
                elif event.event_type == ModelEventType.REASONING:
                    async for out in self._emit(smoother.push("reasoning", event.text), step):
                        yield out
                elif event.event_type == ModelEventType.TOOL_CALL and event.tool_call:
                    async for out in self._emit(smoother.flush(), step):
                        yield out
                    self._append(step, event.tool_call)
                    yield TurnEvent.tool_call(event.tool_call)
                elif event.event_type == ModelEventType.FINISH:
                    self.finish_reason = event.finish_reason
        except TurnCancelledError:
            logger.info("[Driver] Turn cancelled during model step")
            self.state = DriverState.ABORTED
            self.finish_reason = "cancelled"
        except asyncio.TimeoutError:
            self._fail(f"Model step timed out after {self._config.step_timeout}s")
        except ModelStepError as e:
            self._fail(str(e))
        except Exception as e:
            logger.exception(f"[Driver] Unexpected model stream failure: {e}")
            self._fail(f"Model stream failed: {e}")
        finally:
            if pending is not None and not pending.done():
                pending.cancel()
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await pending
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as e:
                    logger.debug(f"[Driver] Error closing model stream: {e}")

        # Remainders go out once, whatever ended the step
        async for out in self._emit(self._drain(extractor, smoother), step):
            yield out

    def _drain(self, extractor: ReasoningExtractor, smoother: ChunkSmoother) -> list[Segment]:
        segments: list[Segment] = []
        for kind, text in extractor.flush():
            segments.extend(smoother.push(kind, text))
        segments.extend(smoother.flush())
        return segments

    async def _emit(self, segments: list[Segment], step: StepRecord) -> AsyncIterator[TurnEvent]:
        for kind, text in segments:
            if kind == "reasoning":
                self._append(step, ReasoningPart(reasoning=text))
                yield TurnEvent.reasoning_delta(text)
            else:
                self._append(step, TextPart(text=text))
                yield TurnEvent.text_delta(text)
            if self._config.smooth_delay_ms > 0:
                await asyncio.sleep(self._config.smooth_delay_ms / 1000.0)

    def _append(self, step: StepRecord, part: MessagePart) -> None:
        """Record a part on the step and the assistant message, merging adjacent text runs."""
        parts = self._assistant.parts
        last = parts[-1] if parts else None
        if isinstance(part, TextPart) and isinstance(last, TextPart):
            parts[-1] = replace(last, text=last.text + part.text)
        elif isinstance(part, ReasoningPart) and isinstance(last, ReasoningPart):
            parts[-1] = replace(last, reasoning=last.reasoning + part.reasoning)
        else:
            parts.append(part)
        step.parts.append(part)

    def _fail(self, message: str) -> None:
        logger.error(f"[Driver] Turn failed: {message}")
        self.state = DriverState.FAILED
        self.finish_reason = "error"
        self.error = message

    async def _dispatch_tools(
        self, tool_calls: list[ToolCallPart], step: StepRecord
    ) -> AsyncIterator[TurnEvent]:
        """
        Execute a step's tool calls.

        Calls bound for the same server run one after another in issue order;
        different servers run concurrently. Results are emitted in issue order.
        """
        results: dict[str, ToolResultPart] = {}
        groups: dict[int, tuple[MCPClient, list[ToolCallPart]]] = {}
        for call in tool_calls:
            tool = self._registry.get(call.tool_name)
            if tool is None:
                error = MCPToolNotFoundError(call.tool_name)
                results[call.call_id] = ToolResultPart(
                    call_id=call.call_id, tool_name=call.tool_name, error=str(error)
                )
                continue
            groups.setdefault(id(tool.handle), (tool.handle, []))[1].append(call)

        async def run_group(handle: MCPClient, calls: list[ToolCallPart]) -> None:
            for call in calls:
                results[call.call_id] = await self._call_tool(handle, call)

        try:
            await self._cancel.guard(
                asyncio.gather(*(run_group(handle, calls) for handle, calls in groups.values()))
            )
        except TurnCancelledError:
            logger.info("[Driver] Turn cancelled during tool execution")
            self.state = DriverState.ABORTED
            self.finish_reason = "cancelled"

        for call in tool_calls:
            result = results.get(call.call_id)
            if result is None:
                continue
            self._append(step, result)
            yield TurnEvent.tool_result(result)

    async def _call_tool(self, handle: MCPClient, call: ToolCallPart) -> ToolResultPart:
        try:
            outcome: ToolCallResult = await asyncio.wait_for(
                handle.call_tool(call.tool_name, call.args, timeout=self._config.tool_call_timeout),
                timeout=self._config.tool_call_timeout,
            )
        except asyncio.TimeoutError:
            message = f"Tool '{call.tool_name}' timed out after {self._config.tool_call_timeout}s"
            logger.warning(f"[Driver] {message}")
            return ToolResultPart(call_id=call.call_id, tool_name=call.tool_name, error=message)
        except MCPToolError as e:
            logger.warning(f"[Driver] Tool '{call.tool_name}' failed: {e}")
            return ToolResultPart(call_id=call.call_id, tool_name=call.tool_name, error=str(e))
        except Exception as e:
            logger.exception(f"[Driver] Tool '{call.tool_name}' raised unexpectedly: {e}")
            return ToolResultPart(call_id=call.call_id, tool_name=call.tool_name, error=str(e))

        if outcome.is_error:
            return ToolResultPart(
                call_id=call.call_id,
                tool_name=call.tool_name,
                error=outcome.text or f"Tool '{call.tool_name}' reported an error",
            )
        text_only = all(item.get("type") == "text" for item in outcome.content)
        return ToolResultPart(
            call_id=call.call_id,
            tool_name=call.tool_name,
            result=outcome.text if text_only else outcome.content,
        )
