"""Bounded per-channel conversation history."""

from __future__ import annotations

import logging
from collections import OrderedDict
from threading import RLock
from typing import List

from ..models import ConversationMessage

LOGGER = logging.getLogger(__name__)


class ConversationStore:
    """Keeps the last `history_limit` messages for at most `max_channels` channels.

    The least recently used channel is evicted once the channel cap is reached;
    `clear` evicts a channel explicitly.
    """

    def __init__(self, history_limit: int = 10, max_channels: int = 200) -> None:
        self._history: "OrderedDict[str, List[ConversationMessage]]" = OrderedDict()
        self._lock = RLock()
        self._history_limit = history_limit
        self._max_channels = max_channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def get_history(self, channel_id: str) -> list[ConversationMessage]:
        with self._lock:
            history = self._history.get(channel_id)
            if history is None:
                return []
            self._history.move_to_end(channel_id)
            return list(history)

    def append_exchange(self, channel_id: str, question: str, answer: str) -> None:
        with self._lock:
            history = self._history.setdefault(channel_id, [])
            history.append(ConversationMessage(role="user", content=question))
            history.append(ConversationMessage(role="assistant", content=answer))
            if len(history) > self._history_limit:
                del history[: len(history) - self._history_limit]
            self._history.move_to_end(channel_id)
            while len(self._history) > self._max_channels:
                evicted, _ = self._history.popitem(last=False)
                LOGGER.debug("Evicted conversation history for channel %s", evicted)

    def clear(self, channel_id: str) -> bool:
        with self._lock:
            removed = self._history.pop(channel_id, None) is not None
        if removed:
            LOGGER.info("Conversation cleared for channel %s", channel_id)
        return removed

    def clear_all(self) -> int:
        with self._lock:
            count = len(self._history)
            self._history.clear()
        return count
