"""Tests for maintenance commands."""

import pytest

from guildbridge.core.commands.base import BaseCommandHandler
from guildbridge.core.models import PurgeTarget


class TestMaintenanceCommands:
    @pytest.mark.asyncio
    async def test_ping_reports_latency(self, router, make_request, responder):
        await router.handle_command(make_request("ping"), responder)
        assert responder.texts == ["Pong! 🏓 Latency: 42ms"]
        assert responder.deferred is False

    @pytest.mark.asyncio
    async def test_clear_evicts_history(self, router, make_request, responder):
        router.conversations.append_exchange("C100", "q", "a")
        await router.handle_command(make_request("clear"), responder)
        assert router.conversations.get_history("C100") == []
        assert responder.texts == ["✅ Conversation history cleared for this channel."]

    @pytest.mark.asyncio
    async def test_purge_defaults_to_bot_messages(self, router, make_request, responder, chat_adapter, admin_member):
        await router.handle_command(make_request("purge", member=admin_member), responder)

        purge = chat_adapter.purges[0]
        print(f"\n OUTPUT: {purge}")
        assert purge["target"] == PurgeTarget()
        assert purge["pace"] == 0.2
        assert responder.deferred_ephemeral is True
        assert responder.replies[0]["content"] == "🗑️ Deleted 3 message(s) from GuildBridge."
        assert responder.replies[0]["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_purge_by_webhook_name(self, router, make_request, responder, chat_adapter, admin_member):
        request = make_request("purge", member=admin_member, options={"webhook": "GitHub"})
        await router.handle_command(request, responder)
        assert chat_adapter.purges[0]["target"] == PurgeTarget(name_contains="GitHub")
        assert responder.texts == ["🗑️ Deleted 3 message(s) from GitHub."]

    @pytest.mark.asyncio
    async def test_purge_by_user(self, router, make_request, responder, chat_adapter, admin_member):
        request = make_request("purge", member=admin_member, options={"user": "777"})
        await router.handle_command(request, responder)
        assert chat_adapter.purges[0]["target"] == PurgeTarget(user_id="777")
        assert responder.texts == ["🗑️ Deleted 3 message(s) from <@777>."]

    @pytest.mark.asyncio
    async def test_purge_requires_admin(self, router, make_request, responder, chat_adapter):
        await router.handle_command(make_request("purge"), responder)
        assert chat_adapter.purges == []
        assert responder.texts == ["❌ You need Administrator permission to use this command."]

    @pytest.mark.asyncio
    async def test_purge_all_uses_limit(self, router, make_request, responder, chat_adapter, founder_member):
        chat_adapter.purge_result = 25
        request = make_request("purge-all", member=founder_member, options={"limit": 25})
        await router.handle_command(request, responder)

        assert chat_adapter.purges[0] == {"channel_id": "C100", "target": None, "limit": 25, "pace": 0.1}
        assert responder.texts == [
            "🗑️ Deleting up to **25** messages in this channel...",
            "✅ Deleted 25 message(s) from this channel.",
        ]

    @pytest.mark.asyncio
    async def test_purge_all_defaults_to_100(self, router, make_request, responder, chat_adapter, admin_member):
        await router.handle_command(make_request("purge-all", member=admin_member), responder)
        assert chat_adapter.purges[0]["limit"] == 100

    @pytest.mark.asyncio
    async def test_purge_all_rejects_out_of_range(self, router, make_request, responder, chat_adapter, admin_member):
        request = make_request("purge-all", member=admin_member, options={"limit": 5000})
        await router.handle_command(request, responder)
        assert chat_adapter.purges == []
        assert responder.texts == ["❌ Limit must be between 1 and 1000."]


class TestUnboundAdapter:
    def test_adapter_access_requires_binding(self):
        with pytest.raises(RuntimeError, match="chat adapter not bound"):
            BaseCommandHandler()._adapter
