"""
Base transport implementation for MCP.

A transport owns one connection to one server and exchanges JSON-RPC
requests and notifications over it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from toolchat.domain.model.mcp import ConnectionRecipe

logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """
    Abstract base class for MCP transport implementations.

    Provides request ID management and the interface the client uses.
    """

    def __init__(self, recipe: ConnectionRecipe) -> None:
        self._recipe = recipe
        self._request_id = 0
        self._is_open = False

    @property
    def is_open(self) -> bool:
        """Check if transport is currently open."""
        return self._is_open

    @property
    def recipe(self) -> ConnectionRecipe:
        return self._recipe

    def _next_request_id(self) -> int:
        """Generate next request ID."""
        self._request_id += 1
        return self._request_id

    @abstractmethod
    async def open(self) -> None:
        """
        Open the connection.

        Raises:
            MCPTransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the connection.

        Must be idempotent.
        """
        ...

    @abstractmethod
    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        Send a JSON-RPC request and wait for its result.

        Raises:
            MCPTransportClosedError: If the transport is not open.
            MCPTransportTimeoutError: If no response arrives in time.
            MCPTransportError: If the server answers with a JSON-RPC error.
        """
        ...

    @abstractmethod
    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a JSON-RPC notification."""
        ...


class MCPTransportError(Exception):
    """Base exception for transport errors."""

    pass


class MCPTransportClosedError(MCPTransportError):
    """Exception raised when transport is closed."""

    pass


class MCPTransportTimeoutError(MCPTransportError):
    """Exception raised on transport timeout."""

    pass
