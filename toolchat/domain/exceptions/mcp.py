"""
MCP domain exceptions.

Exception hierarchy for per-turn MCP operations: transport resolution,
connection, tool lookup and tool execution.

Exception Hierarchy:
    MCPError (base)
    ├── UnsupportedTransportError   - Descriptor kind cannot be connected per request
    ├── MCPConnectionError          - Connection/handshake/transport failure
    └── MCPToolError
        ├── MCPToolNotFoundError    - Tool name absent from the merged registry
        └── MCPToolExecutionError   - Tool call failed or reported isError
"""

from typing import Any


class MCPError(Exception):
    """Base exception for all MCP-related errors."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (caused by: {self.original_error})"
        return self.message


class UnsupportedTransportError(MCPError):
    """Raised when a server descriptor names a transport that cannot be opened here."""

    def __init__(self, kind: str, message: str | None = None) -> None:
        self.kind = kind
        msg = message or f"Transport '{kind}' is not supported"
        super().__init__(msg, details={"kind": kind})


class MCPConnectionError(MCPError):
    """Raised when connection to an MCP server fails."""

    def __init__(
        self,
        server_url: str,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.server_url = server_url
        msg = message or f"Failed to connect to MCP server '{server_url}'"
        super().__init__(msg, original_error=original_error, details={"server_url": server_url})


class MCPToolError(MCPError):
    """Base exception for MCP tool errors."""


class MCPToolNotFoundError(MCPToolError):
    """Raised when the model requests a tool that no connected server exposes."""

    def __init__(self, tool_name: str, message: str | None = None) -> None:
        self.tool_name = tool_name
        msg = message or f"Tool '{tool_name}' not found"
        super().__init__(msg, details={"tool_name": tool_name})


class MCPToolExecutionError(MCPToolError):
    """Raised when a tool call fails on the server or in transit."""

    def __init__(
        self,
        tool_name: str,
        message: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.tool_name = tool_name
        msg = message or f"Tool '{tool_name}' execution failed"
        super().__init__(msg, original_error=original_error, details={"tool_name": tool_name})
