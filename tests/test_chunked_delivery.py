"""Tests for ChunkedDelivery."""

import pytest

from guildbridge.core.delivery import MAX_SEGMENT_LENGTH, ChunkedDelivery, split_text


class Recorder:
    def __init__(self) -> None:
        self.segments: list[str] = []
        self.sleeps: list[float] = []

    async def sink(self, segment: str) -> None:
        self.segments.append(segment)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


class TestChunkedDelivery:
    """Segmenting, pacing and truncation of long text."""

    @pytest.fixture
    def recorder(self):
        return Recorder()

    @pytest.fixture
    def delivery(self, recorder):
        return ChunkedDelivery(sleep=recorder.sleep)

    def test_split_text_is_contiguous(self):
        text = "abcdefghij"
        parts = split_text(text, 3)
        assert parts == ["abc", "def", "ghi", "j"]
        assert "".join(parts) == text

    @pytest.mark.asyncio
    async def test_short_text_is_single_segment(self, delivery, recorder):
        text = "x" * MAX_SEGMENT_LENGTH
        sent = await delivery.deliver(text, recorder.sink)
        assert sent == 1
        assert recorder.segments == [text]
        assert recorder.sleeps == []

    @pytest.mark.asyncio
    async def test_short_text_with_header(self, delivery, recorder):
        await delivery.deliver("hello", recorder.sink, header="📄 **README for Demo**")
        assert recorder.segments == ["📄 **README for Demo**\n\nhello"]

    @pytest.mark.asyncio
    async def test_header_counts_toward_single_segment_limit(self, delivery, recorder):
        text = "r" * MAX_SEGMENT_LENGTH
        header = "📄 **README for " + "A" * 150 + "**"
        sent = await delivery.deliver(text, recorder.sink, header=header)

        print(f"\n OUTPUT: {[len(s) for s in recorder.segments]}")
        assert all(len(segment) <= MAX_SEGMENT_LENGTH for segment in recorder.segments)
        assert recorder.segments == [f"{header} (1 part)", text]
        assert sent == 2

    @pytest.mark.asyncio
    async def test_long_text_reconstructs_exactly(self, delivery, recorder):
        text = "".join(chr(ord("a") + i % 26) for i in range(4500))
        print(f"\n INPUT: {len(text)} chars")
        sent = await delivery.deliver(text, recorder.sink, header="Answer")
        print(f" OUTPUT: {[len(s) for s in recorder.segments]}")

        header, *chunks = recorder.segments
        assert header == "Answer (3 parts)"
        assert len(chunks) == 3
        assert all(len(chunk) <= MAX_SEGMENT_LENGTH for chunk in chunks)
        assert "".join(chunks) == text
        assert sent == 4

    @pytest.mark.asyncio
    async def test_paces_between_segments(self, delivery, recorder):
        await delivery.deliver("y" * 2000, recorder.sink)
        assert recorder.sleeps == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_oversized_text_stops_after_five_chunks(self, delivery, recorder):
        text = "z" * (MAX_SEGMENT_LENGTH * 7 + 10)
        sent = await delivery.deliver(
            text, recorder.sink, overflow_url="https://github.com/acme/Demo#readme"
        )
        header, *rest = recorder.segments
        chunks, pointer = rest[:-1], rest[-1]

        assert "showing 5 of 8 parts" in header
        assert len(chunks) == 5
        assert "".join(chunks) == text[: MAX_SEGMENT_LENGTH * 5]
        assert pointer.endswith("https://github.com/acme/Demo#readme")
        assert sent == 7

    @pytest.mark.asyncio
    async def test_oversized_without_url_reports_remaining(self, delivery, recorder):
        await delivery.deliver("q" * (MAX_SEGMENT_LENGTH * 6 + 1), recorder.sink)
        assert recorder.segments[-1] == "... Output is too long; 2 more part(s) were not shown."
