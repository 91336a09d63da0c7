"""Discord adapter built on discord.py."""

from __future__ import annotations

import asyncio
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

import discord
from discord import app_commands

from .i_chat_adapter import IChatAdapter, IResponder
from ..core.commands.dispatcher import GENERIC_FAILURE_MESSAGE
from ..core.commands.registry import get_command_spec
from ..core.errors import DiscordError
from ..core.models import CommandRequest, Embed, ProvisionReport, PurgeTarget
from ..core.router import Router
from ..core.structure import StructureDocument

LOGGER = logging.getLogger(__name__)

PENDING_EMOJI = "⏳"
SUCCESS_EMOJI = "✅"
FAILURE_EMOJI = "❌"
PROVISION_PACE_SECONDS = 0.5
AUTOCOMPLETE_SCAN_LIMIT = 100

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def permission_attr(name: str) -> str:
    """Map a permission flag name ("ViewChannel") to its discord.py attribute ("view_channel")."""
    return _CAMEL_BOUNDARY.sub("_", name.strip()).lower()


def permission_flags(names: Iterable[str], value: bool = True) -> Dict[str, bool]:
    return {permission_attr(name): value for name in names}


def overwrite_flags(rule: Mapping[str, Any]) -> Dict[str, bool]:
    flags = permission_flags(rule.get("allow") or [], True)
    flags.update(permission_flags(rule.get("deny") or [], False))
    return flags


def to_discord_embed(embed: Embed) -> discord.Embed:
    result = discord.Embed(
        title=embed.title,
        description=embed.description or None,
        colour=discord.Colour(embed.color),
        timestamp=discord.utils.utcnow(),
    )
    for item in embed.fields:
        result.add_field(name=item.name, value=item.value, inline=item.inline)
    if embed.footer:
        result.set_footer(text=embed.footer)
    return result


def _describe(name: str) -> str:
    spec = get_command_spec(name)
    return spec.description if spec else name


class InteractionResponder(IResponder):
    """Replies to a slash command interaction."""

    def __init__(self, interaction: discord.Interaction) -> None:
        self._interaction = interaction
        self._deferred = False
        self._answered = False

    async def defer(self, *, ephemeral: bool = False) -> None:
        await self._interaction.response.defer(ephemeral=ephemeral, thinking=True)
        self._deferred = True

    async def reply(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional[Embed] = None,
        ephemeral: bool = False,
    ) -> Optional[str]:
        kwargs: Dict[str, Any] = {"content": content}
        if embed is not None:
            kwargs["embed"] = to_discord_embed(embed)
        try:
            if self._deferred and not self._answered:
                message = await self._interaction.edit_original_response(**kwargs)
            elif not self._interaction.response.is_done():
                await self._interaction.response.send_message(ephemeral=ephemeral, **kwargs)
                message = await self._interaction.original_response()
            else:
                message = await self._interaction.followup.send(wait=True, ephemeral=ephemeral, **kwargs)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to send Discord reply: {exc}") from exc
        self._answered = True
        return str(message.id)

    async def follow_up(self, content: str) -> None:
        try:
            await self._interaction.followup.send(content)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to send Discord follow-up: {exc}") from exc

    async def notify_channel(self, content: str) -> None:
        channel = self._interaction.channel
        if not isinstance(channel, discord.abc.Messageable):
            raise DiscordError("The originating channel is no longer available.")
        try:
            await channel.send(content)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to send Discord message: {exc}") from exc

    async def add_reaction(self, message_id: str, emoji: str) -> None:
        try:
            message = await self._interaction.original_response()
            if str(message.id) != message_id and self._interaction.channel is not None:
                message = await self._interaction.channel.fetch_message(int(message_id))
            await message.add_reaction(emoji)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to add reaction: {exc}") from exc


class MessageResponder(IResponder):
    """Replies to a message that mentioned the bot."""

    def __init__(self, message: discord.Message) -> None:
        self._message = message
        self._answered = False

    async def defer(self, *, ephemeral: bool = False) -> None:
        LOGGER.debug("Mentions are answered immediately; ignoring defer")

    async def reply(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional[Embed] = None,
        ephemeral: bool = False,
    ) -> Optional[str]:
        discord_embed = to_discord_embed(embed) if embed is not None else None
        try:
            if self._answered:
                sent = await self._message.channel.send(content, embed=discord_embed)
            else:
                sent = await self._message.reply(content, embed=discord_embed)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to send Discord reply: {exc}") from exc
        self._answered = True
        return str(sent.id)

    async def follow_up(self, content: str) -> None:
        try:
            await self._message.channel.send(content)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to send Discord message: {exc}") from exc

    async def notify_channel(self, content: str) -> None:
        await self.follow_up(content)

    async def add_reaction(self, message_id: str, emoji: str) -> None:
        try:
            message = await self._message.channel.fetch_message(int(message_id))
            await message.add_reaction(emoji)
        except discord.HTTPException as exc:
            raise DiscordError(f"Failed to add reaction: {exc}") from exc

    async def mark_pending(self) -> None:
        await self._react(PENDING_EMOJI)

    async def mark_done(self, success: bool) -> None:
        try:
            await self._message.clear_reactions()
        except discord.Forbidden:
            await self._remove_own(PENDING_EMOJI)
        except discord.HTTPException as exc:
            LOGGER.warning("Failed to clear reactions on %s: %s", self._message.id, exc)
        await self._react(SUCCESS_EMOJI if success else FAILURE_EMOJI)

    async def _remove_own(self, emoji: str) -> None:
        me = self._message.guild.me if self._message.guild else None
        if me is None:
            return
        try:
            await self._message.remove_reaction(emoji, me)
        except discord.HTTPException as exc:
            LOGGER.warning("Failed to remove %s from message %s: %s", emoji, self._message.id, exc)

    async def _react(self, emoji: str) -> None:
        try:
            await self._message.add_reaction(emoji)
        except discord.HTTPException as exc:
            LOGGER.warning("Failed to add %s to message %s: %s", emoji, self._message.id, exc)


class DiscordAdapter(IChatAdapter):
    def __init__(self, token: str, router: Router) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        self._token = token
        self._router = router
        self._client = discord.Client(intents=intents)
        self._tree = app_commands.CommandTree(self._client)
        self._register_events()
        self._register_commands()

    @property
    def bot_name(self) -> str:
        user = self._client.user
        return user.name if user else "bot"

    def latency_ms(self) -> int:
        latency = self._client.latency
        if latency is None or math.isnan(latency) or math.isinf(latency):
            return 0
        return round(latency * 1000)

    async def start(self) -> None:
        LOGGER.info("Connecting to Discord gateway")
        await self._client.start(self._token)

    async def stop(self) -> None:
        self._router.shutdown()
        if not self._client.is_closed():
            await self._client.close()

    async def purge_messages(
        self,
        channel_id: str,
        target: Optional[PurgeTarget],
        *,
        limit: Optional[int] = None,
        pace_seconds: float = 0.2,
    ) -> int:
        channel = await self._resolve_channel(channel_id)
        bot_id = str(self._client.user.id) if self._client.user else ""
        deleted = 0
        async for message in channel.history(limit=limit):
            if target is not None and not target.matches(str(message.author.id), message.author.name, bot_id):
                continue
            try:
                await message.delete()
            except discord.HTTPException as exc:
                LOGGER.warning("Failed to delete message %s: %s", message.id, exc)
                continue
            deleted += 1
            await asyncio.sleep(pace_seconds)
        return deleted

    async def provision(self, guild_id: str, document: StructureDocument) -> ProvisionReport:
        guild = self._client.get_guild(int(guild_id))
        if guild is None:
            raise DiscordError(f"Guild {guild_id} is not available to the bot.")

        report = ProvisionReport()
        roles: Dict[str, discord.Role] = {role.name: role for role in guild.roles}
        for spec in document.roles:
            name = str(spec.get("name") or "")
            if not name or name in roles:
                continue
            try:
                roles[name] = await guild.create_role(
                    name=name,
                    colour=discord.Colour.from_str(str(spec.get("color") or "#000000")),
                    permissions=discord.Permissions(**permission_flags(spec.get("permissions") or [])),
                    mentionable=bool(spec.get("mentionable", False)),
                    hoist=bool(spec.get("hoist", False)),
                    reason="guildbridge setup",
                )
            except (discord.HTTPException, TypeError, ValueError) as exc:
                LOGGER.warning("Failed to create role %s: %s", name, exc)
                report.failures[f"role {name}"] = str(exc)
                continue
            report.roles_created += 1
            LOGGER.info("Created role %s", name)
            await asyncio.sleep(PROVISION_PACE_SECONDS)

        for spec in document.categories:
            name = str(spec.get("name") or "")
            if not name:
                continue
            category = discord.utils.get(guild.categories, name=name)
            if category is None:
                try:
                    category = await guild.create_category(
                        name, reason="guildbridge setup", **self._overwrite_kwargs(guild, roles, spec)
                    )
                except (discord.HTTPException, TypeError) as exc:
                    LOGGER.warning("Failed to create category %s: %s", name, exc)
                    report.failures[f"category {name}"] = str(exc)
                    continue
                report.categories_created += 1
                LOGGER.info("Created category %s", name)
                await asyncio.sleep(PROVISION_PACE_SECONDS)

            for channel_spec in spec.get("channels") or []:
                await self._provision_channel(guild, category, roles, channel_spec, report)
        return report

    async def _provision_channel(
        self,
        guild: discord.Guild,
        category: discord.CategoryChannel,
        roles: Mapping[str, discord.Role],
        spec: Mapping[str, Any],
        report: ProvisionReport,
    ) -> None:
        name = str(spec.get("name") or "")
        if not name:
            return
        if discord.utils.get(category.channels, name=name):
            report.channels_skipped += 1
            return
        kwargs = self._overwrite_kwargs(guild, roles, spec)
        try:
            if spec.get("type") == "voice":
                await category.create_voice_channel(name, reason="guildbridge setup", **kwargs)
            else:
                await category.create_text_channel(
                    name, topic=spec.get("topic") or None, reason="guildbridge setup", **kwargs
                )
        except (discord.HTTPException, TypeError) as exc:
            LOGGER.warning("Failed to create channel %s: %s", name, exc)
            report.failures[f"channel {name}"] = str(exc)
            return
        report.channels_created += 1
        LOGGER.info("Created channel #%s in %s", name, category.name)
        await asyncio.sleep(PROVISION_PACE_SECONDS)

    def _overwrite_kwargs(
        self,
        guild: discord.Guild,
        roles: Mapping[str, discord.Role],
        spec: Mapping[str, Any],
    ) -> Dict[str, Any]:
        rules: List[Mapping[str, Any]] = spec.get("permissions") or []
        overwrites: Dict[Any, discord.PermissionOverwrite] = {}
        for rule in rules:
            role_name = rule.get("role")
            target = guild.default_role if role_name == "@everyone" else roles.get(str(role_name))
            if target is None:
                LOGGER.warning("Skipping permission rule for unknown role %s", role_name)
                continue
            overwrites[target] = discord.PermissionOverwrite(**overwrite_flags(rule))
        return {"overwrites": overwrites} if overwrites else {}

    async def _resolve_channel(self, channel_id: str) -> Any:
        channel = self._client.get_channel(int(channel_id))
        if channel is None:
            try:
                channel = await self._client.fetch_channel(int(channel_id))
            except discord.HTTPException as exc:
                raise DiscordError(f"Channel {channel_id} is not available: {exc}") from exc
        if not hasattr(channel, "history"):
            raise DiscordError(f"Channel {channel_id} does not hold messages.")
        return channel

    def _register_events(self) -> None:
        client = self._client

        @client.event
        async def on_ready() -> None:
            LOGGER.info("Logged in as %s, serving %d guild(s)", client.user, len(client.guilds))
            try:
                synced = await self._tree.sync()
            except discord.HTTPException:
                LOGGER.exception("Failed to register slash commands")
                return
            LOGGER.info("Registered %d slash command(s)", len(synced))

        @client.event
        async def on_message(message: discord.Message) -> None:
            if message.author.bot or client.user is None:
                return
            if client.user not in message.mentions:
                return
            request = CommandRequest(
                command_name="mention",
                invoker_id=str(message.author.id),
                channel_id=str(message.channel.id),
                channel_name=getattr(message.channel, "name", "") or "",
                category_name=_category_name(message.channel),
                guild_id=str(message.guild.id) if message.guild else None,
                invoker_tag=str(message.author),
                member=message.author,
            )
            try:
                await self._router.handle_mention(message.content, request, MessageResponder(message))
            except Exception:
                LOGGER.exception("Unhandled error while handling mention %s", message.id)

        @client.event
        async def on_raw_reaction_add(payload: discord.RawReactionActionEvent) -> None:
            if client.user is not None and payload.user_id == client.user.id:
                return
            if payload.member is None:
                LOGGER.debug("Ignoring reaction outside a guild on %s", payload.message_id)
                return
            self._router.handle_reaction(str(payload.message_id), str(payload.emoji.name), payload.member)

        @self._tree.error
        async def on_app_command_error(
            interaction: discord.Interaction, error: app_commands.AppCommandError
        ) -> None:
            LOGGER.error("Slash command failed: %s", error, exc_info=error)
            try:
                if interaction.response.is_done():
                    await interaction.followup.send(GENERIC_FAILURE_MESSAGE)
                else:
                    await interaction.response.send_message(GENERIC_FAILURE_MESSAGE)
            except discord.HTTPException:
                LOGGER.warning("Could not report slash command failure to the user")

    def _register_commands(self) -> None:
        tree = self._tree

        @tree.command(name="ask-claude", description=_describe("ask-claude"))
        @app_commands.describe(question="Your question for Claude")
        async def ask_claude(interaction: discord.Interaction, question: str) -> None:
            await self._dispatch(interaction, "ask-claude", {"question": question})

        @tree.command(name="readme", description=_describe("readme"))
        @app_commands.describe(repo="Repository name (defaults to this category's repository)")
        async def readme(interaction: discord.Interaction, repo: Optional[str] = None) -> None:
            await self._dispatch(interaction, "readme", {"repo": repo})

        @tree.command(name="feature-request", description=_describe("feature-request"))
        @app_commands.describe(
            title="Short summary of the feature",
            description="What should it do and why",
            priority="How urgent is it",
        )
        @app_commands.choices(
            priority=[
                app_commands.Choice(name="🔴 Critical (requires approval)", value="critical"),
                app_commands.Choice(name="🟠 Urgent (requires approval)", value="urgent"),
                app_commands.Choice(name="🟡 High", value="high"),
                app_commands.Choice(name="🟢 Medium", value="medium"),
                app_commands.Choice(name="🔵 Low", value="low"),
            ]
        )
        async def feature_request(
            interaction: discord.Interaction,
            title: str,
            description: str,
            priority: app_commands.Choice[str],
        ) -> None:
            await self._dispatch(
                interaction,
                "feature-request",
                {"title": title, "description": description, "priority": priority.value},
            )

        @tree.command(name="ping", description=_describe("ping"))
        async def ping(interaction: discord.Interaction) -> None:
            await self._dispatch(interaction, "ping", {})

        @tree.command(name="clear", description=_describe("clear"))
        async def clear(interaction: discord.Interaction) -> None:
            await self._dispatch(interaction, "clear", {})

        @tree.command(name="help", description=_describe("help"))
        async def help_command(interaction: discord.Interaction) -> None:
            await self._dispatch(interaction, "help", {})

        @tree.command(name="listrepos", description=_describe("listrepos"))
        async def listrepos(interaction: discord.Interaction) -> None:
            await self._dispatch(interaction, "listrepos", {})

        @tree.command(name="addrepo", description=_describe("addrepo"))
        @app_commands.describe(name="Repository name", visibility="Category visibility")
        @app_commands.choices(
            visibility=[
                app_commands.Choice(name="Public", value="public"),
                app_commands.Choice(name="Private", value="private"),
            ]
        )
        async def addrepo(
            interaction: discord.Interaction,
            name: str,
            visibility: Optional[app_commands.Choice[str]] = None,
        ) -> None:
            await self._dispatch(
                interaction,
                "addrepo",
                {"name": name, "visibility": visibility.value if visibility else "public"},
            )

        @tree.command(name="removerepo", description=_describe("removerepo"))
        @app_commands.describe(prefix="Channel prefix of the repository (e.g. neon)")
        async def removerepo(interaction: discord.Interaction, prefix: str) -> None:
            await self._dispatch(interaction, "removerepo", {"prefix": prefix})

        @tree.command(name="addrole", description=_describe("addrole"))
        @app_commands.describe(
            name="Role name",
            color="Hex color such as #FF0000",
            mentionable="Allow anyone to mention this role",
            hoisted="Show members separately in the member list",
        )
        async def addrole(
            interaction: discord.Interaction,
            name: str,
            color: str,
            mentionable: Optional[bool] = None,
            hoisted: Optional[bool] = None,
        ) -> None:
            await self._dispatch(
                interaction,
                "addrole",
                {"name": name, "color": color, "mentionable": mentionable, "hoisted": hoisted},
            )

        @tree.command(name="setup", description=_describe("setup"))
        async def setup(interaction: discord.Interaction) -> None:
            await self._dispatch(interaction, "setup", {})

        @tree.command(name="purge", description=_describe("purge"))
        @app_commands.describe(user="Delete messages from this user", webhook="Delete messages from this webhook or bot name")
        async def purge(
            interaction: discord.Interaction,
            user: Optional[discord.User] = None,
            webhook: Optional[str] = None,
        ) -> None:
            await self._dispatch(
                interaction,
                "purge",
                {"user": str(user.id) if user else None, "webhook": webhook},
            )

        @purge.autocomplete("webhook")
        async def purge_webhook_autocomplete(
            interaction: discord.Interaction, current: str
        ) -> List[app_commands.Choice[str]]:
            channel = interaction.channel
            if channel is None or not hasattr(channel, "history"):
                return []
            needle = current.lower()
            names = set()
            async for message in channel.history(limit=AUTOCOMPLETE_SCAN_LIMIT):
                if message.webhook_id or message.author.bot:
                    names.add(message.author.name)
            matches = sorted(name for name in names if needle in name.lower())
            return [app_commands.Choice(name=name, value=name) for name in matches[:25]]

        @tree.command(name="purge-all", description=_describe("purge-all"))
        @app_commands.describe(limit="Number of messages to delete (default 100, max 1000)")
        async def purge_all(
            interaction: discord.Interaction,
            limit: Optional[app_commands.Range[int, 1, 1000]] = None,
        ) -> None:
            await self._dispatch(interaction, "purge-all", {"limit": limit})

    async def _dispatch(self, interaction: discord.Interaction, name: str, options: Dict[str, Any]) -> None:
        channel = interaction.channel
        request = CommandRequest(
            command_name=name,
            invoker_id=str(interaction.user.id),
            channel_id=str(interaction.channel_id),
            channel_name=getattr(channel, "name", "") or "",
            options=options,
            category_name=_category_name(channel),
            guild_id=str(interaction.guild_id) if interaction.guild_id else None,
            invoker_tag=str(interaction.user),
            member=interaction.user,
        )
        responder = InteractionResponder(interaction)
        try:
            await self._router.handle_command(request, responder)
        except Exception:
            LOGGER.exception("Unhandled error in /%s", name)
            try:
                await responder.reply(GENERIC_FAILURE_MESSAGE)
            except DiscordError:
                LOGGER.warning("Could not report /%s failure to the user", name)


def _category_name(channel: Any) -> Optional[str]:
    category = getattr(channel, "category", None)
    return category.name if category is not None else None
