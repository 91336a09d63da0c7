"""Routes command requests to handlers behind a permission gate and an error boundary."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ..errors import (
    ApprovalError,
    ConfigError,
    DiscordError,
    GitHubError,
    PermissionDenied,
    ProcessError,
    RoutingError,
)
from ..models import CommandRequest
from ..permissions import DEFAULT_PRIVILEGED_ROLES, is_privileged
from ..routing import ChannelRouter
from .context import CommandContext
from .registry import CommandSpec, iter_command_specs

if TYPE_CHECKING:
    from ...chat_adapters.i_chat_adapter import IResponder

LOGGER = logging.getLogger(__name__)

CommandHandler = Callable[[CommandContext], Awaitable[None]]

PERMISSION_DENIED_TEXT = "You need Administrator permission to use this command."
PERMISSION_DENIED_MESSAGE = f"❌ {PERMISSION_DENIED_TEXT}"
UNKNOWN_COMMAND_MESSAGE = "❓ Unknown command!"
GENERIC_FAILURE_MESSAGE = "❌ An error occurred while executing the command."


def describe_error(exc: Exception) -> str:
    """Render a collaborator failure as the single reply the requester sees."""
    if isinstance(exc, ProcessError):
        return f"❌ Error calling Claude: {exc}\n\nMake sure Claude CLI is installed and configured."
    if isinstance(exc, (GitHubError, RoutingError, PermissionDenied, ConfigError, ApprovalError, DiscordError)):
        return f"❌ {exc}"
    return GENERIC_FAILURE_MESSAGE


class CommandDispatcher:
    """Maps command names to handlers keyed by `CommandSpec.handler_id`."""

    def __init__(
        self,
        channel_router: ChannelRouter,
        *,
        privileged_roles: Iterable[str] = DEFAULT_PRIVILEGED_ROLES,
        specs: Optional[Sequence[CommandSpec]] = None,
    ) -> None:
        self._channel_router = channel_router
        self._privileged_roles = tuple(privileged_roles)
        self._specs: Sequence[CommandSpec] = tuple(specs or iter_command_specs())
        self._lookup: Dict[str, CommandSpec] = {spec.name: spec for spec in self._specs}
        self._handlers: Dict[str, CommandHandler] = {}

    @property
    def specs(self) -> Sequence[CommandSpec]:
        return self._specs

    def get_spec(self, name: str) -> Optional[CommandSpec]:
        return self._lookup.get(name.lower())

    def register(self, handlers: Mapping[str, CommandHandler]) -> None:
        self._handlers.update(handlers)

    def is_privileged(self, member: object) -> bool:
        return is_privileged(member, self._privileged_roles)

    async def dispatch(self, request: CommandRequest, responder: "IResponder") -> None:
        spec = self.get_spec(request.command_name)
        handler = self._handlers.get(spec.handler_id) if spec else None
        if spec is None or handler is None:
            LOGGER.warning("No handler for command %s", request.command_name)
            await responder.reply(UNKNOWN_COMMAND_MESSAGE)
            return

        context = CommandContext(
            request=request,
            spec=spec,
            channel=self._channel_router.resolve(request.channel_name),
            responder=responder,
        )
        LOGGER.info(
            "Executing %s (%s) for %s in #%s",
            spec.name,
            spec.kind.value,
            request.invoker_tag or request.invoker_id,
            request.channel_name,
        )

        try:
            self._check_permission(spec, request)
        except PermissionDenied as exc:
            LOGGER.info("Denied %s for %s: %s", spec.name, request.invoker_id, exc)
            await responder.reply(describe_error(exc), ephemeral=True)
            return

        try:
            if spec.deferred:
                await responder.defer(ephemeral=spec.ephemeral)
            await handler(context)
        except Exception as exc:
            await self._report_failure(context, exc)

    def _check_permission(self, spec: CommandSpec, request: CommandRequest) -> None:
        if spec.admin_only and not self.is_privileged(request.member):
            raise PermissionDenied(PERMISSION_DENIED_TEXT)

    async def _report_failure(self, context: CommandContext, exc: Exception) -> None:
        message = describe_error(exc)
        if message == GENERIC_FAILURE_MESSAGE:
            LOGGER.exception("Unexpected failure in %s", context.spec.name)
        else:
            LOGGER.warning("%s failed: %s", context.spec.name, exc)
        try:
            if context.spec.mention:
                await context.responder.mark_done(False)
            await context.responder.reply(message, ephemeral=context.spec.ephemeral)
        except Exception:
            LOGGER.exception("Failed to deliver error reply for %s", context.spec.name)

    def build_help_lines(self, admin_only: bool = False) -> List[str]:
        """Render one line per slash command in the requested section."""
        lines = []
        for spec in self._specs:
            if spec.mention or spec.admin_only != admin_only:
                continue
            lines.append(f"`{spec.usage}` - {spec.description}")
        return lines
