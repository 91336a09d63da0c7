"""Shared fixtures for guildbridge tests."""

from __future__ import annotations

import pytest

from guildbridge.core.config import Config

from fakes import make_member


@pytest.fixture
def app_config(tmp_path):
    """Config rooted in a temporary directory."""
    return Config(discord_token="discord-token", config_dir=tmp_path)


@pytest.fixture
def admin_member():
    return make_member("alice", administrator=True)


@pytest.fixture
def founder_member():
    return make_member("fiona", roles=["Founder"])


@pytest.fixture
def regular_member():
    return make_member("bob", roles=["Contributor"])
