"""Conversation history helpers."""

from .store import ConversationStore

__all__ = ["ConversationStore"]
