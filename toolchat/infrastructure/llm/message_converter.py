"""
Transcript conversion to the OpenAI chat format LiteLLM accepts.

Reasoning parts stay out of the prompt. An assistant message whose parts
interleave text, tool calls and tool results becomes a run of assistant and
tool messages in the same order.
"""

import json
from collections.abc import Sequence
from typing import Any

from toolchat.domain.model.conversation import (
    ConversationMessage,
    MessageRole,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from toolchat.domain.model.mcp import ToolDescriptor

INCOMPLETE_TOOL_CALL = "Tool call did not complete"


def build_tool_result_message(call_id: str, tool_name: str, result: str) -> dict[str, Any]:
    """Build a tool result message in OpenAI format."""
    return {
        "role": "tool",
        "tool_call_id": call_id,
        "name": tool_name,
        "content": result,
    }


def build_assistant_message_with_tool_calls(
    tool_calls: list[dict[str, Any]],
    content: str | None = None,
) -> dict[str, Any]:
    """Build an assistant message with tool calls."""
    msg: dict[str, Any] = {
        "role": "assistant",
        "tool_calls": tool_calls,
    }
    if content:
        msg["content"] = content
    return msg


def tool_to_openai(tool: ToolDescriptor) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.input_schema or {"type": "object", "properties": {}},
        },
    }


def _result_content(part: ToolResultPart) -> str:
    if part.is_error:
        return f"Error: {part.error}"
    if isinstance(part.result, str):
        return part.result
    return json.dumps(part.result, default=str)


def _convert_assistant(message: ConversationMessage) -> list[dict[str, Any]]:
    converted: list[dict[str, Any]] = []
    text = ""
    calls: list[ToolCallPart] = []
    results: dict[str, ToolResultPart] = {}

    def flush() -> None:
        nonlocal text, calls, results
        if calls:
            converted.append(
                build_assistant_message_with_tool_calls(
                    [
                        {
                            "id": call.call_id,
                            "type": "function",
                            "function": {"name": call.tool_name, "arguments": json.dumps(call.args)},
                        }
                        for call in calls
                    ],
                    content=text or None,
                )
            )
            for call in calls:
                result = results.get(call.call_id)
                content = _result_content(result) if result else f"Error: {INCOMPLETE_TOOL_CALL}"
                converted.append(build_tool_result_message(call.call_id, call.tool_name, content))
        elif text:
            converted.append({"role": "assistant", "content": text})
        text, calls, results = "", [], {}

    for part in message.parts:
        if isinstance(part, TextPart):
            if results:
                flush()
            text += part.text
        elif isinstance(part, ToolCallPart):
            if results:
                flush()
            calls.append(part)
        elif isinstance(part, ToolResultPart):
            results[part.call_id] = part
    flush()
    return converted


def to_openai_messages(
    transcript: Sequence[ConversationMessage],
    system_prompt: str | None = None,
) -> list[dict[str, Any]]:
    messages: list[dict[str, Any]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    for message in transcript:
        if message.role == MessageRole.ASSISTANT:
            messages.extend(_convert_assistant(message))
        elif message.text:
            messages.append({"role": message.role.value, "content": message.text})
    return messages
