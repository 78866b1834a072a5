"""
MCP transport domain models.

A ServerDescriptor is what a caller sends per request; a ConnectionRecipe is
what the resolver hands to the client layer once the descriptor has been
checked and its header list flattened.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransportKind(str, Enum):
    """MCP transport kinds a descriptor may name."""

    HTTP = "http"  # Streamable HTTP
    SSE = "sse"  # Server-Sent Events
    SUBPROCESS = "subprocess"  # stdio child process

    @classmethod
    def normalize(cls, value: str) -> "TransportKind":
        """Normalize transport kind string to enum."""
        normalized = value.lower().strip()
        if normalized in ("stdio", "local"):
            return cls.SUBPROCESS
        return cls(normalized)


@dataclass(frozen=True)
class KeyValuePair:
    """One header or environment entry as supplied by the caller."""

    key: str
    value: str = ""


@dataclass(frozen=True)
class ServerDescriptor:
    """
    Per-request description of one tool server.

    Immutable for the lifetime of the turn. Header and env entries keep the
    caller's order so duplicate keys can be resolved deterministically.
    """

    kind: TransportKind
    url: str | None = None
    command: str | None = None
    args: tuple[str, ...] = ()
    env: tuple[KeyValuePair, ...] = ()
    headers: tuple[KeyValuePair, ...] = ()

    def __post_init__(self):
        """Validate configuration based on transport kind."""
        if self.kind == TransportKind.SUBPROCESS:
            if not self.command:
                raise ValueError("Command is required for subprocess transport")
        elif not self.url:
            raise ValueError(f"URL is required for {self.kind.value} transport")

    @property
    def label(self) -> str:
        """Short identifier for logs."""
        return self.url or self.command or self.kind.value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServerDescriptor":
        """Create from the request payload shape."""
        return cls(
            kind=TransportKind.normalize(data.get("type", "sse")),
            url=data.get("url") or None,
            command=data.get("command") or None,
            args=tuple(data.get("args") or ()),
            env=tuple(KeyValuePair(e.get("key", ""), e.get("value", "")) for e in data.get("env") or ()),
            headers=tuple(
                KeyValuePair(h.get("key", ""), h.get("value", "")) for h in data.get("headers") or ()
            ),
        )


@dataclass(frozen=True)
class ConnectionRecipe:
    """Everything a stream transport needs to connect to a remote server."""

    kind: TransportKind
    url: str
    headers: dict[str, str] = field(default_factory=dict)
