"""Domain models for guildbridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import ApprovalError


class IssueCategory(str, Enum):
    FEATURE = "feature"
    BUG = "bug"

    @property
    def label(self) -> str:
        return "enhancement" if self is IssueCategory.FEATURE else "bug"


class Priority(str, Enum):
    CRITICAL = "critical"
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def requires_approval(self) -> bool:
        return self in (Priority.CRITICAL, Priority.URGENT)

    @property
    def emoji(self) -> str:
        return _PRIORITY_EMOJI[self]

    @property
    def label(self) -> str:
        return f"priority: {self.value}"


_PRIORITY_EMOJI = {
    Priority.CRITICAL: "🔴",
    Priority.URGENT: "🟠",
    Priority.HIGH: "🟡",
    Priority.MEDIUM: "🟢",
    Priority.LOW: "🔵",
}


class ApprovalState(str, Enum):
    PENDING = "pending_approval"
    APPROVED = "approved"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalState.PENDING


class RequestKind(str, Enum):
    AI_QUERY = "ai_query"
    README_FETCH = "readme_fetch"
    ISSUE_SUBMISSION = "issue_submission"
    ADMIN_MUTATION = "admin_mutation"
    INFO = "info"


@dataclass(frozen=True)
class ChannelContext:
    repository: Optional[str]
    issue_category: Optional[IssueCategory]


@dataclass(frozen=True)
class CommandRequest:
    """One inbound slash command or mention, discarded after handling."""

    command_name: str
    invoker_id: str
    channel_id: str
    channel_name: str
    options: Mapping[str, Any] = field(default_factory=dict)
    category_name: Optional[str] = None
    guild_id: Optional[str] = None
    invoker_tag: str = ""
    member: Any = None

    def option(self, name: str, default: Any = None) -> Any:
        value = self.options.get(name)
        return default if value is None else value


@dataclass
class FeatureRequest:
    title: str
    description: str
    priority: Priority
    repository: str
    requester_id: str
    requester_tag: str


@dataclass
class ApprovalTicket:
    request: FeatureRequest
    message_id: str
    created_at: datetime
    deadline: datetime
    state: ApprovalState = ApprovalState.PENDING
    approved_by: Optional[str] = None

    @classmethod
    def open(
        cls,
        request: FeatureRequest,
        message_id: str,
        window: timedelta,
        now: Optional[datetime] = None,
    ) -> "ApprovalTicket":
        created = now or datetime.now(timezone.utc)
        return cls(request=request, message_id=message_id, created_at=created, deadline=created + window)

    def transition(self, state: ApprovalState, approved_by: Optional[str] = None) -> None:
        if self.state.is_terminal:
            raise ApprovalError(
                f"Ticket {self.message_id} is already {self.state.value}; cannot move to {state.value}"
            )
        self.state = state
        if state is ApprovalState.APPROVED:
            self.approved_by = approved_by


@dataclass
class CreatedIssue:
    number: int
    html_url: str
    title: str


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class Embed:
    """Platform-neutral rich message payload."""

    title: str
    description: str = ""
    color: int = 0x0099FF
    fields: List[EmbedField] = field(default_factory=list)
    footer: Optional[str] = None

    def add_field(self, name: str, value: str, inline: bool = False) -> "Embed":
        self.fields.append(EmbedField(name=name, value=value, inline=inline))
        return self


@dataclass
class ConversationMessage:
    role: str
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ProvisionReport:
    roles_created: int = 0
    categories_created: int = 0
    channels_created: int = 0
    channels_skipped: int = 0
    failures: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PurgeTarget:
    """Selects whose messages a purge deletes; defaults to the bot itself."""

    user_id: Optional[str] = None
    name_contains: Optional[str] = None

    def describe(self, bot_name: str) -> str:
        if self.user_id:
            return f"<@{self.user_id}>"
        if self.name_contains:
            return self.name_contains
        return bot_name

    def matches(self, author_id: str, author_name: str, bot_id: str) -> bool:
        if self.user_id:
            return author_id == self.user_id
        if self.name_contains:
            return self.name_contains.lower() in (author_name or "").lower()
        return author_id == bot_id
