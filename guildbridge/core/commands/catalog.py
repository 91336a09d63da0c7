"""Handlers for catalog-style commands (help, mention hints)."""

from __future__ import annotations

from ..models import Embed
from .base import BaseCommandHandler
from .context import CommandContext
from .dispatcher import CommandDispatcher

MENTION_HINT = (
    "💡 Please use slash commands to interact with me:\n"
    "• `/ask-claude` - Ask Claude a question\n"
    "• `/feature-request` - Submit a feature request\n"
    "• `/readme` - Fetch a repository README\n"
    "• `/help` - See all available commands"
)


class CatalogCommandHandler(BaseCommandHandler):
    """Operations that describe what the bot can do."""

    def __init__(self, dispatcher: CommandDispatcher) -> None:
        super().__init__()
        self._dispatcher = dispatcher

    async def handle_help(self, context: CommandContext) -> None:
        embed = Embed(
            title="🤖 GuildBridge - Help",
            description="Here are the available commands and features:",
            color=0xFFD700,
        )
        embed.add_field("⚙️ Commands", "\n".join(self._dispatcher.build_help_lines()))
        if self._dispatcher.is_privileged(context.request.member):
            embed.add_field("🔧 Admin Commands", "\n".join(self._dispatcher.build_help_lines(admin_only=True)))
        embed.add_field(
            "🐛 Create GitHub Issues",
            "Tag the bot in `*-feature-requests` or `*-bug-reports` channels to create GitHub issues",
        )
        embed.add_field("📄 Fetch README", "Tag the bot with `@bot readme <repo-name>` to fetch a repository README")
        embed.footer = "GuildBridge Development Assistant"
        await self._reply(context, embed=embed)

    async def handle_mention_hint(self, context: CommandContext) -> None:
        await self._reply(context, MENTION_HINT)
