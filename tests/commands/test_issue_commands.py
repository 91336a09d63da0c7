"""Tests for README fetches, feature requests and mention-created issues."""

import asyncio
from datetime import timedelta

import pytest

from guildbridge.core.commands.issues import ISSUE_TOO_SHORT, split_issue_text
from guildbridge.core.delivery import ChunkedDelivery
from guildbridge.core.errors import DiscordError, GitHubError
from guildbridge.core.router import Router

from fakes import FakeGitHub, FakeResponder, no_sleep


class ExpiredTokenResponder(FakeResponder):
    """Interaction follow-ups fail once the 15 minute token has lapsed."""

    async def follow_up(self, content: str) -> None:
        raise DiscordError("401 Unauthorized (error code: 50027): Invalid Webhook Token")


async def wait_for_pending(router, count=1):
    for _ in range(50):
        if router.approvals.pending_count >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError("approval ticket was never opened")


def feature_options(priority="medium"):
    return {"title": "Dark mode", "description": "Add a dark theme to the launcher.", "priority": priority}


class TestSplitIssueText:
    def test_first_line_is_title(self):
        assert split_issue_text("crash on load\nrepro steps...") == ("crash on load", "repro steps...")

    def test_single_line_reuses_text_as_body(self):
        assert split_issue_text("the menu freezes") == ("the menu freezes", "the menu freezes")

    def test_title_is_capped(self):
        title, _ = split_issue_text("x" * 150 + "\nbody")
        assert len(title) == 100


class TestReadmeCommand:
    @pytest.mark.asyncio
    async def test_slash_readme_uses_category_repo(self, router, make_request, responder, github):
        await router.handle_command(make_request("readme"), responder)

        assert github.readme_requests == ["NeonLadder"]
        assert responder.deferred is True
        assert responder.texts == ["📄 **README for NeonLadder**\n\n**__Project__**\nHello"]

    @pytest.mark.asyncio
    async def test_explicit_repo_wins(self, router, make_request, responder, github):
        await router.handle_command(make_request("readme", options={"repo": "QiFlow"}), responder)
        assert github.readme_requests == ["QiFlow"]

    @pytest.mark.asyncio
    async def test_no_category_repo_reports_usage(self, router, make_request, responder, github):
        await router.handle_command(make_request("readme", category_name=None), responder)
        assert github.readme_requests == []
        assert responder.texts[0].startswith("❌ Could not detect repository from channel category.")

    @pytest.mark.asyncio
    async def test_long_readme_is_chunked_with_link(self, router, make_request, responder, github):
        github.readme = "word " * 3000
        await router.handle_command(make_request("readme"), responder)

        assert responder.replies[0]["content"].startswith("📄 **README for NeonLadder** (showing 5 of 8 parts)")
        assert len(responder.follow_ups) == 6
        assert responder.follow_ups[-1].endswith("https://github.com/acme/NeonLadder#readme")

    @pytest.mark.asyncio
    async def test_missing_readme_is_single_error(self, router, make_request, responder, github):
        github.error = GitHubError("Not Found", status=404)
        await router.handle_command(make_request("readme"), responder)
        assert responder.texts == ['❌ Could not fetch README for "NeonLadder". Not Found']


class TestFeatureRequestCommand:
    @pytest.mark.asyncio
    async def test_medium_priority_creates_issue_immediately(self, router, make_request, responder, github):
        request = make_request("feature-request", channel_name="neon-feature-requests", options=feature_options())
        await router.handle_command(request, responder)

        embed = responder.replies[0]["embed"]
        print(f"\n OUTPUT: {embed.title} / {github.issues}")
        assert responder.deferred is False
        assert embed.title == "🟢 Feature Request: Dark mode"
        assert embed.footer is None
        assert github.issues[0]["repo"] == "NeonLadder"
        assert github.issues[0]["labels"] == ["enhancement", "priority: medium"]
        assert "**Requested by:** bob#0001 via Discord" in github.issues[0]["body"]
        assert responder.follow_ups == ["✅ Feature request created: https://github.com/acme/NeonLadder/issues/1"]
        assert responder.reactions == []

    @pytest.mark.asyncio
    async def test_critical_request_waits_for_admin_reaction(
        self, router, make_request, responder, github, admin_member, regular_member
    ):
        request = make_request(
            "feature-request", channel_name="neon-feature-requests", options=feature_options("critical")
        )
        task = asyncio.create_task(router.handle_command(request, responder))
        await wait_for_pending(router)

        message_id = responder.replies[0]["id"]
        assert responder.reactions == [(message_id, "✅")]
        assert responder.replies[0]["embed"].footer.startswith("⏳ Awaiting admin approval")
        assert github.issues == []

        assert router.handle_reaction(message_id, "✅", regular_member) is False
        assert router.handle_reaction(message_id, "✅", admin_member) is True
        await asyncio.wait_for(task, timeout=5)

        assert len(github.issues) == 1
        assert "**Approved by:** alice (Admin)" in github.issues[0]["body"]
        assert responder.follow_ups == []
        assert responder.channel_messages == [
            "<@U42> ✅ **Approved!** Feature request created: https://github.com/acme/NeonLadder/issues/1"
        ]
        assert router.approvals.pending_count == 0

    @pytest.mark.asyncio
    async def test_approval_outcome_survives_expired_interaction(
        self, router, make_request, github, admin_member
    ):
        responder = ExpiredTokenResponder()
        request = make_request(
            "feature-request", channel_name="neon-feature-requests", options=feature_options("critical")
        )
        task = asyncio.create_task(router.handle_command(request, responder))
        await wait_for_pending(router)

        assert router.handle_reaction(responder.replies[0]["id"], "✅", admin_member) is True
        await asyncio.wait_for(task, timeout=5)

        print(f"\n OUTPUT: {responder.channel_messages}")
        assert len(github.issues) == 1
        assert responder.channel_messages == [
            "<@U42> ✅ **Approved!** Feature request created: https://github.com/acme/NeonLadder/issues/1"
        ]

    @pytest.mark.asyncio
    async def test_urgent_request_expires(self, app_config, make_request, environ):
        app_config.approval_window = timedelta(milliseconds=50)
        github = FakeGitHub()
        router = Router(
            app_config,
            github_manager=github,
            claude=None,
            delivery=ChunkedDelivery(sleep=no_sleep),
            environ=environ,
        )
        responder = FakeResponder()
        request = make_request(
            "feature-request", channel_name="neon-feature-requests", options=feature_options("urgent")
        )
        await asyncio.wait_for(router.handle_command(request, responder), timeout=5)

        assert github.issues == []
        assert responder.channel_messages == [
            "<@U42> ⏱️ Request timed out after 0.05 seconds without admin approval."
        ]
        assert router.approvals.pending_count == 0

    @pytest.mark.asyncio
    async def test_tracker_error_is_reported(self, router, make_request, responder, github):
        github.error = GitHubError("Validation Failed", status=422)
        request = make_request("feature-request", channel_name="neon-feature-requests", options=feature_options("low"))
        await router.handle_command(request, responder)
        assert responder.follow_ups == ["❌ Error creating GitHub issue: Validation Failed"]

    @pytest.mark.asyncio
    async def test_wrong_channel_is_rejected(self, router, make_request, responder, github):
        request = make_request("feature-request", channel_name="neon-general", options=feature_options())
        await router.handle_command(request, responder)
        assert github.issues == []
        assert responder.texts == ["❌ This command can only be used in `*-feature-requests` channels."]

    @pytest.mark.asyncio
    async def test_unknown_priority(self, router, make_request, responder, github):
        request = make_request(
            "feature-request", channel_name="neon-feature-requests", options=feature_options("whenever")
        )
        await router.handle_command(request, responder)
        assert github.issues == []
        assert responder.texts[0].startswith("❌ Unknown priority.")


class TestMentionIssue:
    @pytest.mark.asyncio
    async def test_bug_report_mention_creates_issue(self, router, make_request, responder, github):
        request = make_request("mention", channel_name="neon-bug-reports")
        await router.handle_mention("<@999> crash on load\nrepro steps...", request, responder)

        print(f"\n OUTPUT: {github.issues}")
        assert github.issues == [
            {"repo": "NeonLadder", "title": "crash on load", "body": "repro steps...", "labels": ["bug"]}
        ]
        assert responder.marks == ["pending", "success"]
        assert responder.texts == [
            "✅ Created GitHub bug issue: https://github.com/acme/NeonLadder/issues/1\n**#1**: crash on load"
        ]

    @pytest.mark.asyncio
    async def test_feature_mention_uses_enhancement_label(self, router, make_request, responder, github):
        request = make_request("mention", channel_name="neon-feature-requests")
        await router.handle_mention("<@999> add controller support please", request, responder)
        assert github.issues[0]["labels"] == ["enhancement"]
        assert github.issues[0]["body"] == "add controller support please"

    @pytest.mark.asyncio
    async def test_short_mention_is_rejected(self, router, make_request, responder, github):
        request = make_request("mention", channel_name="neon-bug-reports")
        await router.handle_mention("<@999> broken", request, responder)
        assert github.issues == []
        assert responder.texts == [ISSUE_TOO_SHORT]
        assert responder.marks == []

    @pytest.mark.asyncio
    async def test_tracker_failure_marks_message(self, router, make_request, responder, github):
        github.error = GitHubError("Bad credentials", status=401)
        request = make_request("mention", channel_name="neon-bug-reports")
        await router.handle_mention("<@999> crash on load\nrepro steps...", request, responder)
        assert responder.marks == ["pending", "failure"]
        assert responder.texts == ["❌ Error creating GitHub issue: Bad credentials"]

    @pytest.mark.asyncio
    async def test_mention_readme_uses_named_repo(self, router, make_request, responder, github):
        request = make_request("mention", channel_name="random-chat", category_name=None)
        await router.handle_mention("<@999> readme QiFlow", request, responder)
        assert github.readme_requests == ["QiFlow"]
        assert responder.marks == ["pending", "success"]

    @pytest.mark.asyncio
    async def test_mention_readme_without_repo_shows_usage(self, router, make_request, responder, github):
        request = make_request("mention", channel_name="random-chat", category_name=None)
        await router.handle_mention("<@999> show me the readme", request, responder)
        assert github.readme_requests == []
        assert responder.texts[0].startswith("❌ Please specify a repository.")
