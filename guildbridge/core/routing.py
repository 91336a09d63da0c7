"""Derive repository and issue category from channel naming conventions."""

from __future__ import annotations

import os
import re
from typing import Mapping, Optional

from .models import ChannelContext, IssueCategory

# Emoji and miscellaneous symbol blocks used as category decorations ("📦 QiFlow").
_CATEGORY_GLYPHS = re.compile("[\U0001F000-\U0001F9FF\u2600-\u26FF\uFE0F]")


class ChannelRouter:
    """Pure lookups over live channel names; results are never cached."""

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = env if env is not None else os.environ

    def resolve_repository(self, channel_name: str) -> Optional[str]:
        """Map `<prefix>-...` to the `<PREFIX>_REPO` entry, if any."""
        prefix = (channel_name or "").split("-", 1)[0].strip()
        if not prefix:
            return None
        return self._env.get(f"{prefix.upper()}_REPO") or None

    def resolve_category_repository(self, category_name: Optional[str]) -> Optional[str]:
        """Strip decoration glyphs from a parent category name ("📦 QiFlow" -> "QiFlow")."""
        if not category_name:
            return None
        repo = _CATEGORY_GLYPHS.sub("", category_name).strip()
        return repo or None

    def resolve_issue_category(self, channel_name: str) -> Optional[IssueCategory]:
        name = channel_name or ""
        if "feature-request" in name:
            return IssueCategory.FEATURE
        if "bug-report" in name:
            return IssueCategory.BUG
        return None

    def resolve(self, channel_name: str) -> ChannelContext:
        return ChannelContext(
            repository=self.resolve_repository(channel_name),
            issue_category=self.resolve_issue_category(channel_name),
        )
