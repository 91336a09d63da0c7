"""Common utilities for command handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..models import Embed
from .context import CommandContext

if TYPE_CHECKING:
    from ...chat_adapters.i_chat_adapter import IChatAdapter


class BaseCommandHandler:
    """Provides helper methods for replying through the request's responder."""

    def __init__(self, adapter: Optional["IChatAdapter"] = None) -> None:
        self._chat_adapter = adapter

    def bind_adapter(self, adapter: "IChatAdapter") -> None:
        self._chat_adapter = adapter

    @property
    def _adapter(self) -> "IChatAdapter":
        if not self._chat_adapter:
            raise RuntimeError("chat adapter not bound for command handler")
        return self._chat_adapter

    async def _reply(
        self,
        context: CommandContext,
        text: Optional[str] = None,
        *,
        embed: Optional[Embed] = None,
    ) -> Optional[str]:
        return await context.responder.reply(text, embed=embed, ephemeral=context.spec.ephemeral)

    async def _follow_up(self, context: CommandContext, text: str) -> None:
        await context.responder.follow_up(text)

    def _segment_sink(self, context: CommandContext):
        """Sink for ChunkedDelivery: the first segment answers, the rest follow up."""
        sent = 0

        async def _sink(segment: str) -> None:
            nonlocal sent
            if sent == 0:
                await self._reply(context, segment)
            else:
                await self._follow_up(context, segment)
            sent += 1

        return _sink
