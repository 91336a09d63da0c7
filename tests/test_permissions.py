"""Tests for privilege checks."""

from guildbridge.core.permissions import is_privileged

from fakes import make_member


class TestIsPrivileged:
    def test_administrator_permission(self, admin_member):
        assert is_privileged(admin_member) is True

    def test_founder_role(self, founder_member):
        assert is_privileged(founder_member) is True

    def test_regular_member(self, regular_member):
        assert is_privileged(regular_member) is False

    def test_custom_roles(self, regular_member):
        assert is_privileged(regular_member, ["Contributor"]) is True

    def test_bots_are_never_privileged(self):
        assert is_privileged(make_member("bot", administrator=True, bot=True)) is False

    def test_missing_member(self):
        assert is_privileged(None) is False
