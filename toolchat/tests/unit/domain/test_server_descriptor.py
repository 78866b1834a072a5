"""Unit tests for MCP server descriptor and tool value objects."""

import pytest

from toolchat.domain.model.mcp import (
    KeyValuePair,
    ServerDescriptor,
    ToolCallResult,
    ToolDescriptor,
    TransportKind,
)


@pytest.mark.unit
class TestTransportKind:
    def test_normalize_known_kinds(self):
        assert TransportKind.normalize("HTTP") == TransportKind.HTTP
        assert TransportKind.normalize(" sse ") == TransportKind.SSE

    def test_normalize_subprocess_aliases(self):
        assert TransportKind.normalize("stdio") == TransportKind.SUBPROCESS
        assert TransportKind.normalize("local") == TransportKind.SUBPROCESS

    def test_normalize_unknown_raises(self):
        with pytest.raises(ValueError):
            TransportKind.normalize("websocket")


@pytest.mark.unit
class TestServerDescriptor:
    def test_remote_descriptor_requires_url(self):
        with pytest.raises(ValueError, match="URL is required"):
            ServerDescriptor(kind=TransportKind.SSE)

    def test_subprocess_descriptor_requires_command(self):
        with pytest.raises(ValueError, match="Command is required"):
            ServerDescriptor(kind=TransportKind.SUBPROCESS)

    def test_from_dict_keeps_header_order(self):
        descriptor = ServerDescriptor.from_dict(
            {
                "type": "http",
                "url": "https://tools.example.com/mcp",
                "headers": [
                    {"key": "Authorization", "value": "Bearer a"},
                    {"key": "Authorization", "value": "Bearer b"},
                ],
            }
        )

        assert descriptor.kind == TransportKind.HTTP
        assert descriptor.headers == (
            KeyValuePair("Authorization", "Bearer a"),
            KeyValuePair("Authorization", "Bearer b"),
        )

    def test_from_dict_defaults_to_sse(self):
        descriptor = ServerDescriptor.from_dict({"url": "https://tools.example.com/sse"})

        assert descriptor.kind == TransportKind.SSE
        assert descriptor.label == "https://tools.example.com/sse"

    def test_descriptor_is_immutable(self):
        descriptor = ServerDescriptor(kind=TransportKind.SSE, url="https://a")

        with pytest.raises(AttributeError):
            descriptor.url = "https://b"  # type: ignore[misc]


@pytest.mark.unit
class TestToolValueObjects:
    def test_tool_descriptor_accepts_camel_case_schema(self):
        tool = ToolDescriptor.from_dict(
            {"name": "search", "description": "Web search", "inputSchema": {"type": "object"}}
        )

        assert tool.name == "search"
        assert tool.input_schema == {"type": "object"}

    def test_call_result_text_joins_text_items(self):
        result = ToolCallResult.from_dict(
            {
                "content": [
                    {"type": "text", "text": "line 1"},
                    {"type": "image", "data": "..."},
                    {"type": "text", "text": "line 2"},
                ],
                "isError": False,
            }
        )

        assert "line 1" in result.text
        assert "line 2" in result.text
        assert result.is_error is False
