"""Unit tests for inline reasoning extraction."""

import pytest

from toolchat.infrastructure.agent.core.reasoning import ReasoningExtractor


def run(deltas: list[str], tag: str = "think") -> list[tuple[str, str]]:
    extractor = ReasoningExtractor(tag)
    segments = []
    for delta in deltas:
        segments.extend(extractor.feed(delta))
    segments.extend(extractor.flush())
    return segments


def joined(segments: list[tuple[str, str]], kind: str) -> str:
    return "".join(text for k, text in segments if k == kind)


@pytest.mark.unit
class TestReasoningExtractor:
    def test_block_is_split_out(self):
        segments = run(["A<think>B</think>C"])

        assert joined(segments, "text") == "AC"
        assert joined(segments, "reasoning") == "B"

    def test_order_is_preserved(self):
        assert run(["A<think>B</think>C"]) == [("text", "A"), ("reasoning", "B"), ("text", "C")]

    def test_markers_split_across_deltas(self):
        segments = run(["A<th", "ink>B</", "thi", "nk>C"])

        assert joined(segments, "text") == "AC"
        assert joined(segments, "reasoning") == "B"

    def test_unterminated_block_is_released_as_text(self):
        segments = run(["A<think>B"])

        assert joined(segments, "text") == "AB"
        assert joined(segments, "reasoning") == ""

    def test_partial_marker_at_end_is_released(self):
        assert joined(run(["1 <th"]), "text") == "1 <th"

    def test_text_without_markers_passes_through(self):
        assert run(["plain ", "answer"]) == [("text", "plain "), ("text", "answer")]

    def test_multiple_blocks(self):
        segments = run(["<think>x</think>a<think>y</think>b"])

        assert joined(segments, "text") == "ab"
        assert [t for k, t in segments if k == "reasoning"] == ["x", "y"]

    def test_custom_tag(self):
        segments = run(["<reason>r</reason>ok"], tag="reason")

        assert segments == [("reasoning", "r"), ("text", "ok")]

    def test_in_reasoning_flag(self):
        extractor = ReasoningExtractor()

        extractor.feed("<think>hm")

        assert extractor.in_reasoning
