"""Handlers for repository, role and server-structure administration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import MutableMapping, Optional

from ..errors import RoutingError
from ..models import Embed
from ..structure import (
    StructureStore,
    add_repo_category,
    add_role,
    category_prefix,
    list_repositories,
    register_repo_env,
    remove_repo_category,
    unregister_repo_env,
)
from .base import BaseCommandHandler
from .context import CommandContext

LOGGER = logging.getLogger(__name__)


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


class AdminCommandHandler(BaseCommandHandler):
    """Implements /listrepos, /addrepo, /removerepo, /addrole and /setup."""

    def __init__(
        self,
        *,
        structure: StructureStore,
        env_path: Path,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> None:
        super().__init__()
        self._structure = structure
        self._env_path = Path(env_path)
        self._environ = os.environ if environ is None else environ

    async def handle_list_repos(self, context: CommandContext) -> None:
        repos = list_repositories(self._structure.load())
        if not repos:
            await self._reply(context, "No repositories configured.")
            return

        embed = Embed(
            title="📦 Configured Repositories",
            description="List of all configured repository categories",
        )
        for repo in repos:
            visibility = "🔒 Private" if repo.private else "🌐 Public"
            embed.add_field(
                repo.name,
                f"Type: {visibility}\nPrefix: `{repo.prefix}-`\nChannels: {repo.channel_count}",
                inline=True,
            )
        await self._reply(context, embed=embed)

    async def handle_add_repo(self, context: CommandContext) -> None:
        name = str(context.request.option("name", "")).strip()
        private = str(context.request.option("visibility", "public")).lower() == "private"

        category = await self._structure.mutate(lambda data: add_repo_category(data, name, private))
        key = register_repo_env(self._env_path, name, self._environ)
        channels = ", ".join(channel["name"] for channel in category["channels"])
        LOGGER.info("Added repository category %s (%s)", category["name"], key)
        await self._reply(
            context,
            f'✅ Repository "{name}" added to configuration!\n'
            f"**Type**: {'Private' if private else 'Public'}\n"
            f"**Channels**: {channels}\n"
            f"**Routing**: `{key}={name}`\n\n"
            "Run `/setup` to create the Discord channels.",
        )

    async def handle_remove_repo(self, context: CommandContext) -> None:
        prefix = str(context.request.option("prefix", "")).strip().lower()
        if not prefix:
            await self._reply(context, "❌ Please provide a repository prefix.")
            return
        removed = await self._structure.mutate(lambda data: remove_repo_category(data, prefix))
        key = unregister_repo_env(self._env_path, category_prefix(removed), self._environ)
        LOGGER.info("Removed repository category %s (%s)", removed.get("name"), key or "no routing entry")
        routing = f"**Routing**: `{key}` removed\n" if key else ""
        await self._reply(
            context,
            f"✅ Repository configuration removed: {removed.get('name')}\n"
            f"{routing}\n"
            "**Note**: This only removes it from the config. "
            "To delete Discord channels, use Discord's interface.",
        )

    async def handle_add_role(self, context: CommandContext) -> None:
        request = context.request
        name = str(request.option("name", "")).strip()
        color = str(request.option("color", "")).strip()
        mentionable = _as_bool(request.option("mentionable", False))
        hoisted = _as_bool(request.option("hoisted", False))
        if not name:
            await self._reply(context, "❌ Please provide a role name.")
            return

        role = await self._structure.mutate(lambda data: add_role(data, name, color, mentionable, hoisted))
        LOGGER.info("Added role %s to configuration", name)
        await self._reply(
            context,
            f'✅ Role "{name}" added to configuration!\n'
            f"**Color**: {role['color']}\n"
            f"**Mentionable**: {'Yes' if mentionable else 'No'}\n"
            f"**Hoisted**: {'Yes' if hoisted else 'No'}\n\n"
            "Run `/setup` to create the role in Discord.",
        )

    async def handle_setup(self, context: CommandContext) -> None:
        guild_id = context.request.guild_id
        if not guild_id:
            raise RoutingError("This command can only be used inside a server.")
        document = self._structure.load()
        await self._reply(context, "Starting Discord server setup...")

        report = await self._adapter.provision(guild_id, document)
        lines = [
            "✅ Discord server setup complete!",
            f"Roles created: {report.roles_created}",
            f"Categories created: {report.categories_created}",
            f"Channels created: {report.channels_created} (skipped {report.channels_skipped} existing)",
        ]
        if report.failures:
            lines.append("")
            lines.append("⚠️ Some items could not be created:")
            lines.extend(f"- {item}: {reason}" for item, reason in sorted(report.failures.items()))
        await self._follow_up(context, "\n".join(lines))
