"""Split oversized text into platform-safe messages and pace their delivery."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

LOGGER = logging.getLogger(__name__)

Sink = Callable[[str], Awaitable[object]]
SleepFn = Callable[[float], Awaitable[None]]

MAX_SEGMENT_LENGTH = 1900
MAX_SEGMENTS = 5
PACE_SECONDS = 0.5


def split_text(text: str, limit: int = MAX_SEGMENT_LENGTH) -> List[str]:
    """Contiguous fixed-width slices; splits may fall mid-word."""
    return [text[i : i + limit] for i in range(0, len(text), limit)]


class ChunkedDelivery:
    """Delivers long responses as at most `max_segments` paced chunks."""

    def __init__(
        self,
        limit: int = MAX_SEGMENT_LENGTH,
        max_segments: int = MAX_SEGMENTS,
        pace_seconds: float = PACE_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._limit = limit
        self._max_segments = max_segments
        self._pace_seconds = pace_seconds
        self._sleep = sleep

    async def deliver(
        self,
        text: str,
        sink: Sink,
        *,
        header: Optional[str] = None,
        overflow_url: Optional[str] = None,
    ) -> int:
        """Send `text` through `sink`; returns the number of segments emitted."""
        single = f"{header}\n\n{text}" if header else text
        if len(single) <= self._limit:
            await sink(single)
            return 1

        chunks = split_text(text, self._limit)
        shown = chunks[: self._max_segments]
        truncated = len(chunks) > len(shown)
        LOGGER.debug(
            "Delivering %d chars as %d of %d chunk(s)", len(text), len(shown), len(chunks)
        )

        title = header or "Response is too long for a single message"
        if truncated:
            await sink(f"{title} (showing {len(shown)} of {len(chunks)} parts)")
        else:
            await sink(f"{title} ({len(chunks)} {'part' if len(chunks) == 1 else 'parts'})")

        for chunk in shown:
            await self._sleep(self._pace_seconds)
            await sink(chunk)

        sent = 1 + len(shown)
        if truncated:
            await self._sleep(self._pace_seconds)
            if overflow_url:
                await sink(f"... Output is too long. View the full content: {overflow_url}")
            else:
                await sink(f"... Output is too long; {len(chunks) - len(shown)} more part(s) were not shown.")
            sent += 1
        return sent
