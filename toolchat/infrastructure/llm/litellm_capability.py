"""
LiteLLM-backed model capability.

Streams one model step through litellm.acompletion and turns the raw chunks
into ModelEvents:
- content deltas -> TEXT (inline reasoning markers are handled downstream)
- reasoning_content / thinking deltas -> REASONING
- tool call fragments -> accumulated per index, emitted as complete calls
"""

import json
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, cast

import litellm

from toolchat.domain.exceptions import ModelStepError
from toolchat.domain.model.conversation import ConversationMessage, ToolCallPart
from toolchat.domain.model.mcp import ToolDescriptor
from toolchat.domain.ports import ModelEvent
from toolchat.infrastructure.llm.message_converter import to_openai_messages, tool_to_openai

logger = logging.getLogger(__name__)

CompletionFn = Callable[..., Awaitable[Any]]


@dataclass
class ToolCallChunk:
    """
    Partial tool call being accumulated from stream.

    The first fragment carries id and name; later ones carry argument text.
    """

    id: str
    index: int
    name: str = ""
    arguments: str = ""


@dataclass
class StreamConfig:
    """Configuration for one LiteLLM streaming call."""

    model: str
    temperature: float = 0.7
    max_tokens: int = 4096
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | None = None
    timeout: int = 600
    provider_options: dict[str, Any] = field(default_factory=dict)

    def to_litellm_kwargs(self) -> dict[str, Any]:
        """Convert to LiteLLM acompletion kwargs."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True,
            "timeout": self.timeout,
        }
        if self.tools:
            kwargs["tools"] = self.tools
            if self.tool_choice:
                kwargs["tool_choice"] = self.tool_choice
        kwargs.update(self.provider_options)
        return kwargs


class LiteLLMCapability:
    """ModelCapability implementation over LiteLLM."""

    def __init__(
        self,
        model: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        timeout: int = 600,
        completion_fn: Optional[CompletionFn] = None,
    ) -> None:
        self._model = model
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._completion_fn = completion_fn or litellm.acompletion

    @property
    def model(self) -> str:
        return self._model

    async def stream(
        self,
        transcript: Sequence[ConversationMessage],
        tools: Sequence[ToolDescriptor],
        **kwargs: Any,
    ) -> AsyncIterator[ModelEvent]:
        config = StreamConfig(
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            tools=[tool_to_openai(t) for t in tools] or None,
            tool_choice="auto" if tools else None,
            timeout=self._timeout,
            provider_options=kwargs,
        )
        request = config.to_litellm_kwargs()
        request["messages"] = to_openai_messages(transcript, self._system_prompt)
        logger.debug(f"[LiteLLM] Starting step: model={self._model}, tools={len(tools)}")

        try:
            response = await self._completion_fn(**request)
        except Exception as e:
            raise ModelStepError(f"Model request failed for {self._model}", original_error=e) from e

        tool_calls: dict[int, ToolCallChunk] = {}
        finish_reason: str | None = None
        try:
            async for chunk in response:
                choices = getattr(chunk, "choices", None) or []
                if not choices:
                    continue
                choice = choices[0]
                delta = getattr(choice, "delta", None)
                if delta is not None:
                    content = getattr(delta, "content", None)
                    if content:
                        yield ModelEvent.text_delta(content)

                    reasoning = (
                        getattr(delta, "reasoning_content", None)
                        or getattr(delta, "thinking", None)
                        or getattr(delta, "reasoning", None)
                    )
                    if isinstance(reasoning, str) and reasoning:
                        yield ModelEvent.reasoning_delta(reasoning)

                    fragments = getattr(delta, "tool_calls", None)
                    if fragments:
                        self._accumulate_tool_calls(tool_calls, fragments)

                finish_reason = getattr(choice, "finish_reason", None) or finish_reason
        except Exception as e:
            raise ModelStepError(f"Model stream failed for {self._model}", original_error=e) from e

        for tracker in sorted(tool_calls.values(), key=lambda t: t.index):
            if not tracker.name:
                raise ModelStepError(f"Model emitted a tool call without a name (index {tracker.index})")
            yield ModelEvent.call(
                ToolCallPart(
                    tool_name=tracker.name,
                    args=self._parse_tool_arguments(tracker),
                    call_id=tracker.id,
                )
            )
        yield ModelEvent.finish(finish_reason or "stop")

    @staticmethod
    def _accumulate_tool_calls(trackers: dict[int, ToolCallChunk], fragments: list[Any]) -> None:
        for tc in fragments:
            index = getattr(tc, "index", None)
            if index is None:
                index = len(trackers)
            if index not in trackers:
                call_id = getattr(tc, "id", None) or f"call_{uuid.uuid4().hex[:8]}"
                trackers[index] = ToolCallChunk(id=call_id, index=index)
            tracker = trackers[index]

            function = getattr(tc, "function", None)
            if function is None:
                continue
            name = getattr(function, "name", None)
            if name:
                tracker.name = name
            args_delta = getattr(function, "arguments", None)
            if args_delta:
                tracker.arguments += args_delta

    @staticmethod
    def _parse_tool_arguments(tracker: ToolCallChunk) -> dict[str, Any]:
        """Parse accumulated arguments, tolerating unescaped control characters."""
        if not tracker.arguments:
            return {}
        raw_args = tracker.arguments
        try:
            parsed = json.loads(raw_args)
        except json.JSONDecodeError as e:
            logger.warning(
                f"Failed to parse tool arguments for {tracker.name}: {e}. "
                f"Arguments preview: {raw_args[:200]}..."
            )
            escaped = raw_args.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
            try:
                parsed = json.loads(escaped)
            except json.JSONDecodeError:
                raise ModelStepError(
                    f"Model emitted malformed arguments for tool '{tracker.name}'"
                ) from e
        if not isinstance(parsed, dict):
            raise ModelStepError(f"Tool arguments for '{tracker.name}' are not a JSON object")
        return cast(dict[str, Any], parsed)
