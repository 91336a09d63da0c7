"""Central registry of supported slash commands and mention intents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..models import RequestKind


@dataclass(frozen=True)
class CommandSpec:
    """Metadata describing a single supported command.

    `deferred` commands acknowledge first and edit the placeholder later;
    all others answer immediately. Mention intents are not registered as
    slash commands and are hidden from help output.
    """

    name: str
    handler_id: str
    kind: RequestKind
    usage: str
    description: str
    admin_only: bool = False
    deferred: bool = False
    ephemeral: bool = False
    mention: bool = False


MENTION_README = "mention:readme"
MENTION_ISSUE = "mention:issue"
MENTION_UNRECOGNIZED = "mention:unrecognized"


def _build_specs() -> Tuple[CommandSpec, ...]:
    return (
        CommandSpec(
            name="ask-claude",
            handler_id="ai.ask",
            kind=RequestKind.AI_QUERY,
            usage="/ask-claude <question>",
            description="Ask Claude AI about software development.",
            deferred=True,
        ),
        CommandSpec(
            name="readme",
            handler_id="issues.readme",
            kind=RequestKind.README_FETCH,
            usage="/readme [repo]",
            description="Fetch a repository README (defaults to this category's repository).",
            deferred=True,
        ),
        CommandSpec(
            name="feature-request",
            handler_id="issues.feature_request",
            kind=RequestKind.ISSUE_SUBMISSION,
            usage="/feature-request <title> <description> <priority>",
            description="Submit a feature request; critical and urgent requests need admin approval.",
        ),
        CommandSpec(
            name="ping",
            handler_id="maintenance.ping",
            kind=RequestKind.INFO,
            usage="/ping",
            description="Check bot latency.",
        ),
        CommandSpec(
            name="clear",
            handler_id="maintenance.clear",
            kind=RequestKind.INFO,
            usage="/clear",
            description="Clear conversation history for this channel.",
        ),
        CommandSpec(
            name="help",
            handler_id="catalog.help",
            kind=RequestKind.INFO,
            usage="/help",
            description="Show this command list.",
        ),
        CommandSpec(
            name="listrepos",
            handler_id="admin.list_repos",
            kind=RequestKind.INFO,
            usage="/listrepos",
            description="List configured repository categories.",
            deferred=True,
        ),
        CommandSpec(
            name="addrepo",
            handler_id="admin.add_repo",
            kind=RequestKind.ADMIN_MUTATION,
            usage="/addrepo <name> [public|private]",
            description="Add a repository category with its standard channels.",
            admin_only=True,
            deferred=True,
        ),
        CommandSpec(
            name="removerepo",
            handler_id="admin.remove_repo",
            kind=RequestKind.ADMIN_MUTATION,
            usage="/removerepo <prefix>",
            description="Remove a repository category from the configuration.",
            admin_only=True,
            deferred=True,
        ),
        CommandSpec(
            name="addrole",
            handler_id="admin.add_role",
            kind=RequestKind.ADMIN_MUTATION,
            usage="/addrole <name> <color> [mentionable] [hoisted]",
            description="Add a role to the configuration.",
            admin_only=True,
            deferred=True,
        ),
        CommandSpec(
            name="setup",
            handler_id="admin.setup",
            kind=RequestKind.ADMIN_MUTATION,
            usage="/setup",
            description="Create configured roles, categories and channels on this server.",
            admin_only=True,
            deferred=True,
        ),
        CommandSpec(
            name="purge",
            handler_id="maintenance.purge",
            kind=RequestKind.ADMIN_MUTATION,
            usage="/purge [user] [webhook]",
            description="Delete messages from a user, a webhook, or this bot.",
            admin_only=True,
            deferred=True,
            ephemeral=True,
        ),
        CommandSpec(
            name="purge-all",
            handler_id="maintenance.purge_all",
            kind=RequestKind.ADMIN_MUTATION,
            usage="/purge-all [limit]",
            description="Delete the most recent messages in this channel (default 100, max 1000).",
            admin_only=True,
            deferred=True,
        ),
        CommandSpec(
            name=MENTION_README,
            handler_id="issues.readme",
            kind=RequestKind.README_FETCH,
            usage="@bot readme <repo-name>",
            description="Fetch a repository README.",
            mention=True,
        ),
        CommandSpec(
            name=MENTION_ISSUE,
            handler_id="issues.mention_issue",
            kind=RequestKind.ISSUE_SUBMISSION,
            usage="@bot <title> (details on the following lines)",
            description="Create a GitHub issue from a feature-request or bug-report channel.",
            mention=True,
        ),
        CommandSpec(
            name=MENTION_UNRECOGNIZED,
            handler_id="catalog.mention_hint",
            kind=RequestKind.INFO,
            usage="@bot ...",
            description="Point the user at the slash commands.",
            mention=True,
        ),
    )


COMMAND_SPECS: Tuple[CommandSpec, ...] = _build_specs()
COMMAND_LOOKUP: Dict[str, CommandSpec] = {spec.name: spec for spec in COMMAND_SPECS}


def get_command_spec(name: str) -> Optional[CommandSpec]:
    """Return the command spec for a given name or mention intent."""
    return COMMAND_LOOKUP.get(name.lower())


def iter_command_specs() -> Sequence[CommandSpec]:
    """Return the immutable list of command specs in display order."""
    return COMMAND_SPECS


def iter_slash_specs() -> Sequence[CommandSpec]:
    return tuple(spec for spec in COMMAND_SPECS if not spec.mention)
