"""Tests for mention classification and routing through the Router."""

import pytest

from guildbridge.core.commands.registry import MENTION_ISSUE, MENTION_README, MENTION_UNRECOGNIZED
from guildbridge.core.delivery import ChunkedDelivery
from guildbridge.core.models import CommandRequest, FeatureRequest, Priority
from guildbridge.core.router import Router

from fakes import FakeClaude, FakeGitHub, FakeResponder, make_member, no_sleep


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def router(app_config, github):
    return Router(
        app_config,
        github_manager=github,
        claude=FakeClaude(),
        delivery=ChunkedDelivery(sleep=no_sleep),
        environ={"NEON_REPO": "NeonLadder"},
    )


def mention_request(channel_name: str) -> CommandRequest:
    return CommandRequest(
        command_name="mention",
        invoker_id="U7",
        channel_id="C7",
        channel_name=channel_name,
        invoker_tag="dana#0001",
        member=make_member("dana"),
    )


class TestClassifyMention:
    @pytest.mark.parametrize(
        "content,channel,expected",
        [
            ("<@123> readme NeonLadder", "random", (MENTION_README, {"repo": "NeonLadder"})),
            ("<@!123> can I see the README?", "neon-bug-reports", (MENTION_README, {})),
            ("<@123> crash on load", "neon-bug-reports", (MENTION_ISSUE, {"content": "crash on load"})),
            ("<@123> crash on load", "neon-general", (MENTION_UNRECOGNIZED, {})),
            ("<@123> crash on load", "other-bug-reports", (MENTION_UNRECOGNIZED, {})),
        ],
    )
    def test_classification(self, router, content, channel, expected):
        print(f"\n INPUT: {content!r} in #{channel}")
        result = router.classify_mention(content, channel)
        print(f" OUTPUT: {result}")
        assert result == expected

    def test_readme_target_keeps_case(self, router):
        assert router.classify_mention("<@1> README QiFlow-Core", "x")[1] == {"repo": "QiFlow-Core"}


class TestMentionRouting:
    @pytest.mark.asyncio
    async def test_bug_report_scenario(self, router, github):
        responder = FakeResponder()
        await router.handle_mention(
            "<@999> crash on load\nrepro steps...", mention_request("neon-bug-reports"), responder
        )

        assert len(github.issues) == 1
        issue = github.issues[0]
        assert issue["repo"] == "NeonLadder"
        assert issue["title"] == "crash on load"
        assert issue["body"] == "repro steps..."
        assert issue["labels"] == ["bug"]

    @pytest.mark.asyncio
    async def test_reaction_on_unknown_message_is_ignored(self, router):
        assert router.handle_reaction("123", "✅", make_member("alice", administrator=True)) is False

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_approvals(self, router):
        router.approvals.open_ticket(
            FeatureRequest("t", "d", Priority.CRITICAL, "NeonLadder", "U7", "dana#0001"), "m1"
        )
        router.shutdown()
        assert router.approvals.pending_count == 0
