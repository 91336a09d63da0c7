"""Handler for Claude-backed questions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..conversation import ConversationStore
from ..delivery import ChunkedDelivery
from .base import BaseCommandHandler
from .context import CommandContext

if TYPE_CHECKING:
    from ...agents.claude_cli import ClaudeCli

LOGGER = logging.getLogger(__name__)

ANSWER_HEADER = "🧠 **Claude AI Analysis**"


class AiCommandHandler(BaseCommandHandler):
    """Runs /ask-claude with the channel's recent exchanges as context."""

    def __init__(
        self,
        *,
        claude: "ClaudeCli",
        conversations: ConversationStore,
        delivery: ChunkedDelivery,
    ) -> None:
        super().__init__()
        self._claude = claude
        self._conversations = conversations
        self._delivery = delivery

    async def handle_ask(self, context: CommandContext) -> None:
        request = context.request
        question = str(request.option("question", "")).strip()
        if not question:
            await self._reply(context, "❌ Please provide a question.")
            return

        history = self._conversations.get_history(request.channel_id)
        LOGGER.info(
            "Asking Claude for #%s (%d chars, %d history message(s))",
            request.channel_name,
            len(question),
            len(history),
        )
        answer = await self._claude.ask(question, history)
        self._conversations.append_exchange(request.channel_id, question, answer)
        await self._delivery.deliver(answer, self._segment_sink(context), header=ANSWER_HEADER)
