"""
Transport factory for MCP.

Creates transport instances for resolved connection recipes.
"""

import logging
from typing import Dict, Type

from toolchat.domain.exceptions import UnsupportedTransportError
from toolchat.domain.model.mcp import ConnectionRecipe, TransportKind
from toolchat.infrastructure.mcp.transport.base import BaseTransport
from toolchat.infrastructure.mcp.transport.stream import SSETransport, StreamableHTTPTransport

logger = logging.getLogger(__name__)


class TransportFactory:
    """Maps transport kinds to transport classes."""

    _transports: Dict[TransportKind, Type[BaseTransport]] = {
        TransportKind.HTTP: StreamableHTTPTransport,
        TransportKind.SSE: SSETransport,
    }

    @classmethod
    def register(cls, kind: TransportKind, transport_class: Type[BaseTransport]) -> None:
        """Register a transport implementation."""
        cls._transports[kind] = transport_class
        logger.debug(f"Registered transport: {kind.value} -> {transport_class.__name__}")

    @classmethod
    def create(cls, recipe: ConnectionRecipe, timeout: float | None = None) -> BaseTransport:
        """
        Create a transport instance for a recipe.

        Raises:
            UnsupportedTransportError: If no transport is registered for the kind.
        """
        transport_class = cls._transports.get(recipe.kind)
        if not transport_class:
            raise UnsupportedTransportError(recipe.kind.value)
        if timeout is None:
            return transport_class(recipe)
        return transport_class(recipe, timeout=timeout)  # type: ignore[call-arg]

    @classmethod
    def supported_kinds(cls) -> list[TransportKind]:
        return list(cls._transports.keys())
