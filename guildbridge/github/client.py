"""Lightweight GitHub client helpers."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from github import Github, GithubException

from ..core.errors import GitHubError
from ..core.models import CreatedIssue

LOGGER = logging.getLogger(__name__)


class GitHubManager:
    """Wrapper around PyGithub that exposes async helpers."""

    def __init__(self, token: Optional[str], owner: Optional[str]) -> None:
        self._owner = owner
        self._client = Github(token) if token else None

    def is_configured(self) -> bool:
        return self._client is not None and bool(self._owner)

    def readme_url(self, repo: str) -> str:
        return f"https://github.com/{self._owner}/{repo}#readme"

    async def create_issue(
        self,
        repo: str,
        title: str,
        body: str,
        labels: Sequence[str] = (),
    ) -> CreatedIssue:
        return await asyncio.to_thread(self._create_issue_sync, repo, title, body, list(labels))

    async def get_readme(self, repo: str) -> str:
        return await asyncio.to_thread(self._get_readme_sync, repo)

    def _create_issue_sync(self, repo: str, title: str, body: str, labels: list[str]) -> CreatedIssue:
        repository = self._get_repo(repo)
        try:
            issue = repository.create_issue(title=title, body=body, labels=labels)
        except GithubException as exc:
            raise self._translate(exc, f"create issue in {self._owner}/{repo}") from exc
        LOGGER.info("Created issue #%s in %s/%s", issue.number, self._owner, repo)
        return CreatedIssue(number=issue.number, html_url=issue.html_url, title=issue.title)

    def _get_readme_sync(self, repo: str) -> str:
        repository = self._get_repo(repo)
        try:
            readme = repository.get_readme()
        except GithubException as exc:
            raise self._translate(exc, f"fetch README for {self._owner}/{repo}") from exc
        content = readme.decoded_content.decode("utf-8", errors="replace")
        if not content.strip():
            raise GitHubError(f"README for {self._owner}/{repo} is empty")
        return content

    def _get_repo(self, repo: str):
        if not self._client:
            raise GitHubError("GitHub token is not configured.")
        if not self._owner:
            raise GitHubError("GITHUB_OWNER is not configured.")
        try:
            return self._client.get_repo(f"{self._owner}/{repo}")
        except GithubException as exc:
            raise self._translate(exc, f"load repository {self._owner}/{repo}") from exc

    def _translate(self, exc: GithubException, action: str) -> GitHubError:
        data = exc.data if isinstance(exc.data, dict) else {}
        message = data.get("message") or str(exc)
        LOGGER.warning("GitHub request failed to %s: %s %s", action, exc.status, message)
        return GitHubError(f"Failed to {action}: {exc.status} {message}", status=exc.status)
