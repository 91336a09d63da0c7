"""Handlers for maintenance-focused commands."""

from __future__ import annotations

import logging

from ..conversation import ConversationStore
from ..models import PurgeTarget
from .base import BaseCommandHandler
from .context import CommandContext

LOGGER = logging.getLogger(__name__)

PURGE_PACE_SECONDS = 0.2
PURGE_ALL_PACE_SECONDS = 0.1
PURGE_ALL_DEFAULT_LIMIT = 100
PURGE_ALL_MAX_LIMIT = 1000


class MaintenanceCommandHandler(BaseCommandHandler):
    """Implements ping, clear, purge and purge-all commands."""

    def __init__(self, *, conversations: ConversationStore) -> None:
        super().__init__()
        self._conversations = conversations

    async def handle_ping(self, context: CommandContext) -> None:
        await self._reply(context, f"Pong! 🏓 Latency: {self._adapter.latency_ms()}ms")

    async def handle_clear(self, context: CommandContext) -> None:
        self._conversations.clear(context.request.channel_id)
        await self._reply(context, "✅ Conversation history cleared for this channel.")

    async def handle_purge(self, context: CommandContext) -> None:
        request = context.request
        user = request.option("user")
        webhook = str(request.option("webhook", "")).strip()
        target = PurgeTarget(user_id=str(user) if user else None, name_contains=webhook or None)
        deleted = await self._adapter.purge_messages(
            request.channel_id, target, pace_seconds=PURGE_PACE_SECONDS
        )
        label = target.describe(self._adapter.bot_name)
        LOGGER.info("Purged %d message(s) from %s in #%s", deleted, label, request.channel_name)
        await self._reply(context, f"🗑️ Deleted {deleted} message(s) from {label}.")

    async def handle_purge_all(self, context: CommandContext) -> None:
        request = context.request
        try:
            limit = int(request.option("limit", PURGE_ALL_DEFAULT_LIMIT))
        except (TypeError, ValueError):
            limit = 0
        if not 1 <= limit <= PURGE_ALL_MAX_LIMIT:
            await self._reply(context, f"❌ Limit must be between 1 and {PURGE_ALL_MAX_LIMIT}.")
            return

        await self._reply(context, f"🗑️ Deleting up to **{limit}** messages in this channel...")
        deleted = await self._adapter.purge_messages(
            request.channel_id, None, limit=limit, pace_seconds=PURGE_ALL_PACE_SECONDS
        )
        LOGGER.info("Purged %d message(s) from #%s", deleted, request.channel_name)
        await self._follow_up(context, f"✅ Deleted {deleted} message(s) from this channel.")
