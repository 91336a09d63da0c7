"""Append-only debugging transcript for AI CLI sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

LOGGER = logging.getLogger(__name__)

PREVIEW_CHARS = 200


class SessionTranscript:
    """Writes timestamped session records; write failures are logged, never raised."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def session_started(self, session_id: str, command: list[str], prompt: str) -> None:
        self._write(session_id, f"START cmd={command!r} prompt_chars={len(prompt)}\n{prompt}")

    def chunk(self, session_id: str, stream: str, data: bytes) -> None:
        preview = data.decode("utf-8", errors="replace")[:PREVIEW_CHARS]
        self._write(session_id, f"{stream.upper()} bytes={len(data)} preview={preview!r}")

    def session_finished(self, session_id: str, outcome: str, duration: float) -> None:
        self._write(session_id, f"END outcome={outcome} duration={duration:.2f}s")

    def _write(self, session_id: str, text: str) -> None:
        stamp = datetime.now(timezone.utc).isoformat()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(f"[{stamp}] [{session_id}] {text}\n")
        except OSError as exc:
            LOGGER.warning("Failed to write session transcript %s: %s", self._path, exc)
