"""
Reasoning extraction for models that inline their thinking in the answer.

Text between <tag> and </tag> is reasoning; everything else is answer text.
Markers may be split across deltas, so a trailing fragment that could still
become a marker is held back until the next delta decides it.
"""

from typing import Literal

SegmentKind = Literal["text", "reasoning"]
Segment = tuple[SegmentKind, str]


def _partial_suffix(text: str, marker: str) -> int:
    """Length of the longest suffix of text that is a proper prefix of marker."""
    for size in range(min(len(text), len(marker) - 1), 0, -1):
        if marker.startswith(text[-size:]):
            return size
    return 0


class ReasoningExtractor:
    """
    Splits a stream of text deltas into answer and reasoning segments.

    A reasoning block is emitted as one segment once its closing marker has
    been seen. If the stream ends inside a block, the block's content is
    released as answer text; the opening marker itself is never emitted.
    """

    def __init__(self, tag: str = "think") -> None:
        self.open_marker = f"<{tag}>"
        self.close_marker = f"</{tag}>"
        self._pending = ""
        self._reasoning = ""
        self._in_reasoning = False

    @property
    def in_reasoning(self) -> bool:
        return self._in_reasoning

    def feed(self, delta: str) -> list[Segment]:
        segments: list[Segment] = []
        self._pending += delta
        while self._pending:
            if not self._in_reasoning:
                index = self._pending.find(self.open_marker)
                if index >= 0:
                    self._emit(segments, "text", self._pending[:index])
                    self._pending = self._pending[index + len(self.open_marker) :]
                    self._in_reasoning = True
                    self._reasoning = ""
                    continue
                keep = _partial_suffix(self._pending, self.open_marker)
                self._emit(segments, "text", self._pending[: len(self._pending) - keep])
                self._pending = self._pending[len(self._pending) - keep :]
                break

            index = self._pending.find(self.close_marker)
            if index >= 0:
                self._reasoning += self._pending[:index]
                self._emit(segments, "reasoning", self._reasoning)
                self._pending = self._pending[index + len(self.close_marker) :]
                self._reasoning = ""
                self._in_reasoning = False
                continue
            keep = _partial_suffix(self._pending, self.close_marker)
            self._reasoning += self._pending[: len(self._pending) - keep]
            self._pending = self._pending[len(self._pending) - keep :]
            break
        return segments

    def flush(self) -> list[Segment]:
        """Release everything still held at end of stream as answer text."""
        segments: list[Segment] = []
        if self._in_reasoning:
            self._emit(segments, "text", self._reasoning + self._pending)
        else:
            self._emit(segments, "text", self._pending)
        self._pending = ""
        self._reasoning = ""
        self._in_reasoning = False
        return segments

    @staticmethod
    def _emit(segments: list[Segment], kind: SegmentKind, text: str) -> None:
        if text:
            segments.append((kind, text))
