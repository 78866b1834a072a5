"""
Merged tool namespace for one turn.

Built once from the connected clients, then read-only while the agent loop
runs.
"""

import asyncio
import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from toolchat.domain.model.mcp import ToolDescriptor
from toolchat.infrastructure.mcp.client import MCPClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredTool:
    """A tool and the client that executes it."""

    descriptor: ToolDescriptor
    handle: MCPClient

    @property
    def name(self) -> str:
        return self.descriptor.name


class ToolRegistry(Mapping[str, RegisteredTool]):
    """
    Immutable name -> tool mapping.

    On a name collision the handle that comes later in descriptor order
    replaces the earlier one.
    """

    def __init__(self, tools: Optional[Mapping[str, RegisteredTool]] = None) -> None:
        self._tools: Mapping[str, RegisteredTool] = MappingProxyType(dict(tools or {}))

    @classmethod
    async def merge(cls, handles: Sequence[MCPClient]) -> "ToolRegistry":
        """List every handle's tools concurrently and flatten them in handle order."""
        listings = await asyncio.gather(*(h.list_tools() for h in handles), return_exceptions=True)

        merged: dict[str, RegisteredTool] = {}
        for handle, listing in zip(handles, listings):
            if isinstance(listing, BaseException):
                if not isinstance(listing, Exception):
                    raise listing
                logger.warning(f"[ToolRegistry] Listing tools failed for {handle.label}: {listing}")
                continue
            for descriptor in listing:
                previous = merged.get(descriptor.name)
                if previous is not None:
                    logger.info(
                        f"[ToolRegistry] Tool '{descriptor.name}' from {handle.label}"
                        f" overrides the one from {previous.handle.label}"
                    )
                merged[descriptor.name] = RegisteredTool(descriptor=descriptor, handle=handle)

        logger.info(f"[ToolRegistry] Merged {len(merged)} tools from {len(handles)} servers")
        return cls(merged)

    def __getitem__(self, name: str) -> RegisteredTool:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def catalog(self) -> list[ToolDescriptor]:
        """Tool descriptors in registration order, for the model."""
        return [tool.descriptor for tool in self._tools.values()]
