"""Privilege checks over chat-platform members."""

from __future__ import annotations

from typing import Any, Iterable

DEFAULT_PRIVILEGED_ROLES = ("Founder", "Administrator")


def is_privileged(member: Any, privileged_roles: Iterable[str] = DEFAULT_PRIVILEGED_ROLES) -> bool:
    """Administrator permission or membership in one of `privileged_roles`.

    `member` follows the discord.py Member shape: `guild_permissions.administrator`
    and `roles[*].name`.
    """
    if member is None or getattr(member, "bot", False):
        return False
    permissions = getattr(member, "guild_permissions", None)
    if permissions is not None and getattr(permissions, "administrator", False):
        return True
    allowed = set(privileged_roles)
    return any(getattr(role, "name", None) in allowed for role in getattr(member, "roles", ()) or ())
