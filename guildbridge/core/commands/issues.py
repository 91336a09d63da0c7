"""Handlers for README fetches and GitHub issue submissions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Tuple

from ..approval import APPROVAL_EMOJI, ApprovalWorkflow
from ..delivery import ChunkedDelivery
from ..errors import DiscordError, GitHubError, RoutingError
from ..formatting import markdown_to_discord
from ..models import Embed, FeatureRequest, IssueCategory, Priority
from ..routing import ChannelRouter
from .base import BaseCommandHandler
from .context import CommandContext

if TYPE_CHECKING:
    from ...github import GitHubManager

LOGGER = logging.getLogger(__name__)

MIN_ISSUE_LENGTH = 10
MAX_TITLE_LENGTH = 100

MENTION_README_USAGE = (
    "Please specify a repository.\n"
    "Usage: `@bot readme <repo-name>`\n"
    "Example: `@bot readme NeonLadder`"
)
SLASH_README_USAGE = (
    "Could not detect repository from channel category. "
    "Please use this command in a project channel or specify the repo name manually."
)
ISSUE_TOO_SHORT = "Please provide more details for the issue. Format: @bot [issue title/description]"


def split_issue_text(content: str) -> Tuple[str, str]:
    """First line (capped) becomes the title; the remaining lines the body.

    Single-line submissions reuse the whole text as the body.
    """
    lines = content.split("\n")
    title = lines[0][:MAX_TITLE_LENGTH]
    body = "\n".join(lines[1:]) if len(lines) > 1 else content
    return title, body


def build_request_embed(request: FeatureRequest) -> Embed:
    gated = request.priority.requires_approval
    embed = Embed(
        title=f"{request.priority.emoji} Feature Request: {request.title}",
        description=request.description,
        color=0xFF6B6B if gated else 0x4ECDC4,
    )
    embed.add_field("Repository", request.repository, inline=True)
    embed.add_field("Priority", request.priority.value.upper(), inline=True)
    embed.add_field("Requested by", request.requester_tag, inline=True)
    if gated:
        embed.footer = f"⏳ Awaiting admin approval - React with {APPROVAL_EMOJI} to approve"
    return embed


class IssueCommandHandler(BaseCommandHandler):
    """README fetches, /feature-request and issue creation from mentions."""

    def __init__(
        self,
        *,
        github: "GitHubManager",
        channel_router: ChannelRouter,
        approvals: ApprovalWorkflow,
        delivery: ChunkedDelivery,
    ) -> None:
        super().__init__()
        self._github = github
        self._channel_router = channel_router
        self._approvals = approvals
        self._delivery = delivery

    async def handle_readme(self, context: CommandContext) -> None:
        repo = self._readme_target(context)
        if context.spec.mention:
            await context.responder.mark_pending()
        try:
            content = await self._github.get_readme(repo)
        except GitHubError as exc:
            raise GitHubError(f'Could not fetch README for "{repo}". {exc}', status=exc.status) from exc

        text = markdown_to_discord(content)
        if context.spec.mention:
            await context.responder.mark_done(True)
        await self._delivery.deliver(
            text,
            self._segment_sink(context),
            header=f"📄 **README for {repo}**",
            overflow_url=self._github.readme_url(repo),
        )
        LOGGER.info("Fetched README for %s in #%s", repo, context.request.channel_name)

    def _readme_target(self, context: CommandContext) -> str:
        explicit = str(context.request.option("repo", "")).strip()
        if explicit:
            return explicit
        if context.spec.mention:
            repo = context.channel.repository
            usage = MENTION_README_USAGE
        else:
            repo = self._channel_router.resolve_category_repository(context.request.category_name)
            usage = SLASH_README_USAGE
        if not repo:
            raise RoutingError(usage)
        return repo

    async def handle_feature_request(self, context: CommandContext) -> None:
        request = context.request
        if context.channel.issue_category is not IssueCategory.FEATURE:
            raise RoutingError("This command can only be used in `*-feature-requests` channels.")
        repo = self._channel_router.resolve_category_repository(request.category_name)
        if not repo:
            raise RoutingError("Could not detect repository from channel category.")

        priority = _parse_priority(request.option("priority", Priority.MEDIUM.value))
        if priority is None:
            await self._reply(
                context,
                "❌ Unknown priority. Choose one of: " + ", ".join(p.value for p in Priority),
            )
            return

        feature = FeatureRequest(
            title=str(request.option("title", "")).strip(),
            description=str(request.option("description", "")).strip(),
            priority=priority,
            repository=repo,
            requester_id=request.invoker_id,
            requester_tag=request.invoker_tag,
        )
        message_id = await self._reply(context, embed=build_request_embed(feature))

        if not priority.requires_approval:
            await self._approvals.create_feature_issue(feature, context.responder.follow_up)
            return

        async def notify(text: str) -> None:
            # Outcomes can arrive hours later, after the interaction token expired.
            await context.responder.notify_channel(f"<@{request.invoker_id}> {text}")

        if message_id is None:
            raise DiscordError("Could not read back the request message to collect approval.")
        ticket = self._approvals.open_ticket(feature, message_id)
        try:
            await context.responder.add_reaction(message_id, APPROVAL_EMOJI)
        except BaseException:
            self._approvals.discard(message_id)
            raise
        await self._approvals.run(ticket, notify)

    async def handle_mention_issue(self, context: CommandContext) -> None:
        repo = context.channel.repository
        category = context.channel.issue_category
        if not repo or category is None:
            raise RoutingError(
                "This channel is not linked to a repository. "
                "Use a `<prefix>-feature-requests` or `<prefix>-bug-reports` channel."
            )

        content = str(context.request.option("content", "")).strip()
        if len(content) < MIN_ISSUE_LENGTH:
            await self._reply(context, ISSUE_TOO_SHORT)
            return

        title, body = split_issue_text(content)
        await context.responder.mark_pending()
        try:
            issue = await self._github.create_issue(repo, title, body, [category.label])
        except GitHubError as exc:
            raise GitHubError(f"Error creating GitHub issue: {exc}", status=exc.status) from exc

        await context.responder.mark_done(True)
        await self._reply(
            context,
            f"✅ Created GitHub {category.value} issue: {issue.html_url}\n**#{issue.number}**: {issue.title}",
        )
        LOGGER.info(
            "Created issue #%s in %s for %s",
            issue.number,
            repo,
            context.request.invoker_tag or context.request.invoker_id,
        )


def _parse_priority(value: object) -> Optional[Priority]:
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        return None
