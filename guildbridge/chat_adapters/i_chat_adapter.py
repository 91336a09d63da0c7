"""Chat adapter abstraction."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..core.models import Embed, ProvisionReport, PurgeTarget
    from ..core.structure import StructureDocument


class IResponder(abc.ABC):
    """Reply surface bound to one inbound command or mention."""

    @abc.abstractmethod
    async def defer(self, *, ephemeral: bool = False) -> None:
        """Acknowledge the request now; the next `reply` edits the placeholder."""

    @abc.abstractmethod
    async def reply(
        self,
        content: Optional[str] = None,
        *,
        embed: Optional["Embed"] = None,
        ephemeral: bool = False,
    ) -> Optional[str]:
        """Send (or edit) the primary response.

        Returns:
            The message ID of the response if available, None otherwise.
        """

    @abc.abstractmethod
    async def follow_up(self, content: str) -> None:
        """Send an additional message after the primary response."""

    @abc.abstractmethod
    async def notify_channel(self, content: str) -> None:
        """Post a standalone message to the originating channel.

        Usable long after the request was answered; slash command
        interaction tokens expire after 15 minutes.
        """

    @abc.abstractmethod
    async def add_reaction(self, message_id: str, emoji: str) -> None:
        """React to one of the messages this responder produced."""

    async def mark_pending(self) -> None:
        """Signal that slow work started (e.g. an hourglass reaction)."""

    async def mark_done(self, success: bool) -> None:
        """Replace the pending signal with a success or failure marker."""


class IChatAdapter(abc.ABC):
    """Abstraction for chat platform integrations."""

    @abc.abstractmethod
    async def start(self) -> None:
        """Begin listening for events."""

    @abc.abstractmethod
    async def stop(self) -> None:
        """Shutdown the adapter."""

    @property
    @abc.abstractmethod
    def bot_name(self) -> str:
        """Display name of the connected bot user."""

    @abc.abstractmethod
    def latency_ms(self) -> int:
        """Gateway heartbeat latency in milliseconds."""

    @abc.abstractmethod
    async def purge_messages(
        self,
        channel_id: str,
        target: Optional["PurgeTarget"],
        *,
        limit: Optional[int] = None,
        pace_seconds: float = 0.2,
    ) -> int:
        """Delete messages one by one; `target=None` deletes any author.

        Returns:
            The number of messages deleted.
        """

    @abc.abstractmethod
    async def provision(self, guild_id: str, document: "StructureDocument") -> "ProvisionReport":
        """Create roles, categories and channels missing from the guild."""
