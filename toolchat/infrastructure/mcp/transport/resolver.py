"""
Transport resolution for per-request server descriptors.

Pure: turns a validated descriptor into a connection recipe without any I/O.
"""

from collections.abc import Iterable

from toolchat.domain.exceptions import UnsupportedTransportError
from toolchat.domain.model.mcp import (
    ConnectionRecipe,
    KeyValuePair,
    ServerDescriptor,
    TransportKind,
)

SUBPROCESS_UNSUPPORTED_MESSAGE = (
    "Subprocess MCP servers are not started per request. Run the server under the "
    "sandbox supervisor and connect to the SSE URL it exposes instead."
)


def flatten_headers(pairs: Iterable[KeyValuePair]) -> dict[str, str]:
    """Header pairs to a dict. Later duplicates win; empty keys are skipped."""
    headers: dict[str, str] = {}
    for pair in pairs:
        key = pair.key.strip()
        if not key:
            continue
        headers[key] = pair.value or ""
    return headers


def resolve(descriptor: ServerDescriptor) -> ConnectionRecipe:
    """
    Map a descriptor to a connection recipe.

    Raises:
        UnsupportedTransportError: For subprocess descriptors, which belong to
            an external always-on supervisor and are never spawned here.
    """
    if descriptor.kind == TransportKind.SUBPROCESS:
        raise UnsupportedTransportError(descriptor.kind.value, SUBPROCESS_UNSUPPORTED_MESSAGE)
    if descriptor.kind not in (TransportKind.HTTP, TransportKind.SSE):
        raise UnsupportedTransportError(descriptor.kind.value)

    if not descriptor.url:
        raise UnsupportedTransportError(descriptor.kind.value, f"{descriptor.kind.value} server has no url")
    return ConnectionRecipe(
        kind=descriptor.kind,
        url=descriptor.url,
        headers=flatten_headers(descriptor.headers),
    )
