"""Reaction-gated approval of high-priority feature requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, Optional

from .errors import ApprovalError, ApprovalTimeout, GitHubError
from .models import ApprovalState, ApprovalTicket, CreatedIssue, FeatureRequest, IssueCategory
from .permissions import DEFAULT_PRIVILEGED_ROLES, is_privileged

if TYPE_CHECKING:
    from ..github import GitHubManager

LOGGER = logging.getLogger(__name__)

APPROVAL_EMOJI = "✅"
DEFAULT_APPROVAL_WINDOW = timedelta(hours=24)
MAX_PENDING_TICKETS = 500

Notify = Callable[[str], Awaitable[object]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_issue_body(request: FeatureRequest, approved_by: Optional[str] = None) -> str:
    lines = [
        request.description,
        "",
        "---",
        f"**Priority:** {request.priority.value.upper()}",
        f"**Requested by:** {request.requester_tag} via Discord",
    ]
    if approved_by:
        lines.append(f"**Approved by:** {approved_by} (Admin)")
    return "\n".join(lines)


@dataclass
class _PendingApproval:
    ticket: ApprovalTicket
    decision: "asyncio.Future[str]"


class ApprovalWorkflow:
    """Tracks tickets awaiting an admin reaction, keyed by submission message id.

    Each ticket waits on its own future bounded by the ticket deadline, so one
    ticket's wait never blocks another. Entries are evicted on approval,
    expiry or `cancel_all`.
    """

    def __init__(
        self,
        github: "GitHubManager",
        *,
        window: timedelta = DEFAULT_APPROVAL_WINDOW,
        privileged_roles: Iterable[str] = DEFAULT_PRIVILEGED_ROLES,
        max_pending: int = MAX_PENDING_TICKETS,
        clock: Clock = _utcnow,
    ) -> None:
        self._github = github
        self._window = window
        self._privileged_roles = tuple(privileged_roles)
        self._max_pending = max_pending
        self._clock = clock
        self._pending: Dict[str, _PendingApproval] = {}

    @property
    def window(self) -> timedelta:
        return self._window

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def open_ticket(self, request: FeatureRequest, message_id: str) -> ApprovalTicket:
        if len(self._pending) >= self._max_pending:
            raise ApprovalError("Too many feature requests are awaiting approval. Try again later.")
        if message_id in self._pending:
            raise ApprovalError(f"Message {message_id} already has a pending approval")
        ticket = ApprovalTicket.open(request, message_id, self._window, now=self._clock())
        decision: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._pending[message_id] = _PendingApproval(ticket=ticket, decision=decision)
        LOGGER.info(
            "Ticket %s awaiting approval for %s (%s) until %s",
            message_id,
            request.repository,
            request.priority.value,
            ticket.deadline.isoformat(),
        )
        return ticket

    def handle_reaction(self, message_id: str, emoji: str, member: Any) -> bool:
        """Resolve a pending ticket if this is the first qualifying reaction."""
        pending = self._pending.get(message_id)
        if pending is None or pending.decision.done():
            return False
        if emoji != APPROVAL_EMOJI:
            return False
        if not is_privileged(member, self._privileged_roles):
            LOGGER.debug("Ignoring approval reaction on %s from unprivileged member", message_id)
            return False
        if self._clock() > pending.ticket.deadline:
            LOGGER.debug("Ignoring approval reaction on %s after deadline", message_id)
            return False
        pending.decision.set_result(str(getattr(member, "display_name", None) or getattr(member, "name", "admin")))
        return True

    async def await_approval(self, ticket: ApprovalTicket) -> str:
        """Wait for the approver's name; raises ApprovalTimeout at the deadline."""
        pending = self._pending.get(ticket.message_id)
        if pending is None:
            raise ApprovalError(f"No pending approval for message {ticket.message_id}")
        remaining = max((ticket.deadline - self._clock()).total_seconds(), 0.0)
        try:
            return await asyncio.wait_for(pending.decision, timeout=remaining)
        except asyncio.TimeoutError as exc:
            raise ApprovalTimeout(f"No admin approval for {ticket.message_id} before deadline") from exc
        finally:
            self._pending.pop(ticket.message_id, None)

    async def run(self, ticket: ApprovalTicket, notify: Notify) -> ApprovalTicket:
        try:
            approver = await self.await_approval(ticket)
        except ApprovalTimeout:
            ticket.transition(ApprovalState.EXPIRED)
            LOGGER.info("Ticket %s expired without approval", ticket.message_id)
            await notify(
                f"⏱️ Request timed out after {_describe_window(self._window)} without admin approval."
            )
            return ticket

        ticket.transition(ApprovalState.APPROVED, approved_by=approver)
        LOGGER.info("Ticket %s approved by %s", ticket.message_id, approver)
        await self.create_feature_issue(ticket.request, notify, approved_by=approver)
        return ticket

    async def create_feature_issue(
        self,
        request: FeatureRequest,
        notify: Notify,
        approved_by: Optional[str] = None,
    ) -> Optional[CreatedIssue]:
        labels = [IssueCategory.FEATURE.label, request.priority.label]
        try:
            issue = await self._github.create_issue(
                request.repository,
                request.title,
                build_issue_body(request, approved_by),
                labels,
            )
        except GitHubError as exc:
            await notify(f"❌ Error creating GitHub issue: {exc}")
            return None
        prefix = "✅ **Approved!** Feature request created" if approved_by else "✅ Feature request created"
        await notify(f"{prefix}: {issue.html_url}")
        return issue

    def discard(self, message_id: str) -> bool:
        """Drop a ticket that never reached the requester."""
        pending = self._pending.pop(message_id, None)
        if pending is None:
            return False
        pending.decision.cancel()
        return True

    def cancel_all(self) -> int:
        pending = list(self._pending.values())
        self._pending.clear()
        for entry in pending:
            entry.decision.cancel()
        return len(pending)


def _describe_window(window: timedelta) -> str:
    hours = window.total_seconds() / 3600
    if hours >= 1:
        return f"{hours:g} hours"
    return f"{window.total_seconds():g} seconds"
