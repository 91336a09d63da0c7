"""Routes chat events to command handlers."""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from typing import TYPE_CHECKING, Any, Dict, MutableMapping, Optional, Tuple

from .approval import ApprovalWorkflow
from .commands.admin import AdminCommandHandler
from .commands.ai import AiCommandHandler
from .commands.catalog import CatalogCommandHandler
from .commands.dispatcher import CommandDispatcher
from .commands.issues import IssueCommandHandler
from .commands.maintenance import MaintenanceCommandHandler
from .commands.registry import MENTION_ISSUE, MENTION_README, MENTION_UNRECOGNIZED
from .config import Config
from .conversation import ConversationStore
from .delivery import ChunkedDelivery
from .models import CommandRequest
from .routing import ChannelRouter
from .structure import StructureStore

if TYPE_CHECKING:
    from ..agents.claude_cli import ClaudeCli
    from ..chat_adapters.i_chat_adapter import IChatAdapter, IResponder
    from ..github import GitHubManager

LOGGER = logging.getLogger(__name__)

_USER_MENTION = re.compile(r"<@[!&]?\d+>")
_README_TARGET = re.compile(r"readme\s+(\S+)", re.IGNORECASE)


class Router:
    """Central orchestrator translating chat events into handler calls."""

    def __init__(
        self,
        config: Config,
        *,
        github_manager: "GitHubManager",
        claude: "ClaudeCli",
        conversations: Optional[ConversationStore] = None,
        structure: Optional[StructureStore] = None,
        delivery: Optional[ChunkedDelivery] = None,
        approvals: Optional[ApprovalWorkflow] = None,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> None:
        self._config = config
        environ = os.environ if environ is None else environ
        self._channel_router = ChannelRouter(environ)
        self._conversations = conversations or ConversationStore(
            history_limit=config.history_limit, max_channels=config.max_channels
        )
        self._approvals = approvals or ApprovalWorkflow(
            github_manager,
            window=config.approval_window,
            privileged_roles=config.privileged_roles,
        )
        delivery = delivery or ChunkedDelivery()
        self._chat_adapter: Optional["IChatAdapter"] = None

        self._command_dispatcher = CommandDispatcher(
            self._channel_router, privileged_roles=config.privileged_roles
        )
        self._ai_commands = AiCommandHandler(
            claude=claude,
            conversations=self._conversations,
            delivery=delivery,
        )
        self._issue_commands = IssueCommandHandler(
            github=github_manager,
            channel_router=self._channel_router,
            approvals=self._approvals,
            delivery=delivery,
        )
        self._admin_commands = AdminCommandHandler(
            structure=structure or StructureStore(config.structure_path),
            env_path=config.env_path,
            environ=environ,
        )
        self._maintenance_commands = MaintenanceCommandHandler(conversations=self._conversations)
        self._catalog_commands = CatalogCommandHandler(self._command_dispatcher)
        self._command_dispatcher.register(
            {
                "ai.ask": self._ai_commands.handle_ask,
                "issues.readme": self._issue_commands.handle_readme,
                "issues.feature_request": self._issue_commands.handle_feature_request,
                "issues.mention_issue": self._issue_commands.handle_mention_issue,
                "admin.list_repos": self._admin_commands.handle_list_repos,
                "admin.add_repo": self._admin_commands.handle_add_repo,
                "admin.remove_repo": self._admin_commands.handle_remove_repo,
                "admin.add_role": self._admin_commands.handle_add_role,
                "admin.setup": self._admin_commands.handle_setup,
                "maintenance.ping": self._maintenance_commands.handle_ping,
                "maintenance.clear": self._maintenance_commands.handle_clear,
                "maintenance.purge": self._maintenance_commands.handle_purge,
                "maintenance.purge_all": self._maintenance_commands.handle_purge_all,
                "catalog.help": self._catalog_commands.handle_help,
                "catalog.mention_hint": self._catalog_commands.handle_mention_hint,
            }
        )

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._command_dispatcher

    @property
    def approvals(self) -> ApprovalWorkflow:
        return self._approvals

    @property
    def conversations(self) -> ConversationStore:
        return self._conversations

    def bind_adapter(self, adapter: "IChatAdapter") -> None:
        """Attach the chat adapter used by platform-level commands."""
        self._chat_adapter = adapter
        self._admin_commands.bind_adapter(adapter)
        self._maintenance_commands.bind_adapter(adapter)

    async def handle_command(self, request: CommandRequest, responder: "IResponder") -> None:
        await self._command_dispatcher.dispatch(request, responder)

    async def handle_mention(
        self, content: str, request: CommandRequest, responder: "IResponder"
    ) -> None:
        """Turn a mention's free text into an intent and dispatch it."""
        intent, options = self.classify_mention(content, request.channel_name)
        LOGGER.debug("Mention in #%s classified as %s", request.channel_name, intent)
        await self._command_dispatcher.dispatch(
            dataclasses.replace(request, command_name=intent, options=options),
            responder,
        )

    def classify_mention(self, content: str, channel_name: str) -> Tuple[str, Dict[str, Any]]:
        text = _USER_MENTION.sub("", content or "").strip()
        if "readme" in text.lower():
            match = _README_TARGET.search(text)
            return MENTION_README, {"repo": match.group(1)} if match else {}

        channel = self._channel_router.resolve(channel_name)
        if channel.repository and channel.issue_category:
            return MENTION_ISSUE, {"content": text}
        return MENTION_UNRECOGNIZED, {}

    def handle_reaction(self, message_id: str, emoji: str, member: Any) -> bool:
        return self._approvals.handle_reaction(message_id, emoji, member)

    def shutdown(self) -> None:
        cancelled = self._approvals.cancel_all()
        if cancelled:
            LOGGER.info("Cancelled %d pending approval(s)", cancelled)
