"""
Chunk smoothing for streamed deltas.

Provider deltas are often a few characters each. The smoother coalesces them
into line- or sentence-sized chunks, tagged with the channel they belong to.
Switching channel releases the other channel's buffer first, so the emitted
sequence keeps the input order exactly.
"""

import re
import time
from collections.abc import Callable
from typing import Literal

from toolchat.infrastructure.agent.core.reasoning import Segment, SegmentKind

Chunking = Literal["line", "sentence"]

_BOUNDARIES: dict[str, re.Pattern[str]] = {
    "line": re.compile(r"\n"),
    "sentence": re.compile(r"[.!?]+[\s]+|\n"),
}


class ChunkSmoother:
    """Buffers deltas and releases them on chunk boundaries or after max_delay."""

    def __init__(
        self,
        chunking: Chunking = "line",
        max_delay_ms: int = 250,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if chunking not in _BOUNDARIES:
            raise ValueError(f"Unsupported chunking: {chunking}")
        self._boundary = _BOUNDARIES[chunking]
        self._max_delay = max_delay_ms / 1000.0
        self._clock = clock
        self._kind: SegmentKind | None = None
        self._buffer = ""
        self._buffered_since: float | None = None

    def push(self, kind: SegmentKind, text: str) -> list[Segment]:
        chunks: list[Segment] = []
        if not text:
            return chunks
        if self._kind is not None and kind != self._kind:
            chunks.extend(self.flush())

        now = self._clock()
        if not self._buffer:
            self._buffered_since = now
        self._kind = kind
        self._buffer += text

        last_end = 0
        for match in self._boundary.finditer(self._buffer):
            last_end = match.end()
        if last_end:
            chunks.append((kind, self._buffer[:last_end]))
            self._buffer = self._buffer[last_end:]
            self._buffered_since = now if self._buffer else None
        elif self._buffered_since is not None and now - self._buffered_since >= self._max_delay:
            chunks.extend(self.flush())
        return chunks

    def due_in(self) -> float | None:
        """Seconds until buffered text must be released, or None when nothing is buffered."""
        if self._buffered_since is None:
            return None
        return max(0.0, self._buffered_since + self._max_delay - self._clock())

    def flush(self) -> list[Segment]:
        """Release whatever is buffered. A second flush returns nothing."""
        chunks: list[Segment] = []
        if self._buffer and self._kind is not None:
            chunks.append((self._kind, self._buffer))
        self._buffer = ""
        self._buffered_since = None
        self._kind = None
        return chunks
