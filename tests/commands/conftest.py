"""Shared fixtures for command handler tests."""

from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

from guildbridge.core.delivery import ChunkedDelivery
from guildbridge.core.models import CommandRequest
from guildbridge.core.router import Router

from fakes import FakeChatAdapter, FakeClaude, FakeGitHub, FakeResponder, make_member, no_sleep


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def claude():
    return FakeClaude()


@pytest.fixture
def chat_adapter():
    return FakeChatAdapter()


@pytest.fixture
def environ():
    return {"NEON_REPO": "NeonLadder"}


@pytest.fixture
def router(app_config, github, claude, chat_adapter, environ):
    """Real Router wired to in-memory collaborators."""
    router = Router(
        app_config,
        github_manager=github,
        claude=claude,
        delivery=ChunkedDelivery(sleep=no_sleep),
        environ=environ,
    )
    router.bind_adapter(chat_adapter)
    return router


@pytest.fixture
def responder():
    return FakeResponder()


@pytest.fixture
def make_request():
    """Factory for CommandRequest objects issued by a regular member by default."""

    def _make(
        command_name: str,
        *,
        channel_name: str = "neon-general",
        category_name: Optional[str] = "📦 NeonLadder",
        options: Optional[Dict[str, Any]] = None,
        member: Any = None,
        guild_id: Optional[str] = "G1",
    ) -> CommandRequest:
        member = member or make_member("bob")
        return CommandRequest(
            command_name=command_name,
            invoker_id="U42",
            channel_id="C100",
            channel_name=channel_name,
            options=options or {},
            category_name=category_name,
            guild_id=guild_id,
            invoker_tag=f"{member.name}#0001",
            member=member,
        )

    return _make
