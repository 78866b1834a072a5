"""MCP tool value objects."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolDescriptor:
    """
    A tool as advertised by a server's tools/list.

    The input schema is passed to the model unchanged.
    """

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP protocol format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolDescriptor":
        """Create from MCP protocol format."""
        return cls(
            name=data["name"],
            description=data.get("description") or "",
            input_schema=data.get("inputSchema") or data.get("input_schema") or {},
        )


@dataclass(frozen=True)
class ToolCallResult:
    """Outcome of one tools/call, normalized to text."""

    content: list[dict[str, Any]] = field(default_factory=list)
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(
            item.get("text", "") for item in self.content if item.get("type") == "text"
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCallResult":
        return cls(
            content=list(data.get("content") or []),
            is_error=bool(data.get("isError", False)),
        )
