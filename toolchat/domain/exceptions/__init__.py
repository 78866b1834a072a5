"""
Domain exceptions for toolchat.

Repositories, MCP clients and the agent loop raise these; the web layer maps
them to HTTP responses in one place.
"""

from toolchat.domain.exceptions.mcp import (
    MCPConnectionError,
    MCPError,
    MCPToolError,
    MCPToolExecutionError,
    MCPToolNotFoundError,
    UnsupportedTransportError,
)
from toolchat.domain.exceptions.repository_exceptions import (
    EntityNotFoundError,
    RepositoryError,
    StorageFailureError,
)
from toolchat.domain.exceptions.turn import (
    AuthenticationRequiredError,
    ModelStepError,
    SessionOwnershipError,
    TurnCancelledError,
    TurnConfigurationError,
    UnknownModelError,
)

__all__ = [
    "MCPError",
    "MCPConnectionError",
    "MCPToolError",
    "MCPToolExecutionError",
    "MCPToolNotFoundError",
    "UnsupportedTransportError",
    "RepositoryError",
    "EntityNotFoundError",
    "StorageFailureError",
    "TurnConfigurationError",
    "AuthenticationRequiredError",
    "UnknownModelError",
    "SessionOwnershipError",
    "ModelStepError",
    "TurnCancelledError",
]
