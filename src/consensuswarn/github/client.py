"""Minimal GitHub API client built on the `gh` CLI.

Requires `gh` on PATH. Authentication comes from `gh auth` or the
GH_TOKEN environment variable, which is set from the configured token
when one is available.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import time
from collections.abc import Callable

from consensuswarn.exceptions import GitHubError

logger = logging.getLogger("consensuswarn.github")

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
JSON_MEDIA_TYPE = "application/vnd.github+json"


class GitHubClient:
    """Pull request operations for one repository."""

    def __init__(
        self,
        repository: str,
        token: str | None = None,
        hostname: str = "github.com",
        timeout: int = 30,
    ) -> None:
        if repository.count("/") != 1 or not all(repository.split("/")):
            raise GitHubError(f"invalid repository {repository!r}, expected owner/name")
        self.repository = repository
        self.token = token
        self.hostname = hostname
        self.timeout = timeout

    def _api(self, path: str, *args: str, input: str | None = None) -> str:
        cmd = ["gh", "api", path, "--hostname", self.hostname, *args]
        env = None
        if self.token:
            env = {**os.environ, "GH_TOKEN": self.token}
        logger.debug("gh api %s %s", path, " ".join(args))
        try:
            result = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise GitHubError(f"gh api {path} failed: {e}") from e
        if result.returncode != 0:
            message = result.stderr.strip() or result.stdout.strip() or "unknown error"
            raise GitHubError(f"gh api {path} failed: {message}")
        return result.stdout

    def _api_list(self, path: str) -> list[dict]:
        """All items of a paginated list endpoint."""
        out = self._api(path, "--paginate", "--jq", ".[] | @json")
        return [json.loads(line) for line in out.splitlines() if line.strip()]

    def get_pull_request(self, number: int) -> dict:
        out = self._api(f"repos/{self.repository}/pulls/{number}")
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise GitHubError(f"invalid pull request response: {e}") from e

    def get_diff(self, number: int) -> str:
        return self._api(
            f"repos/{self.repository}/pulls/{number}",
            "-H", f"Accept: {DIFF_MEDIA_TYPE}",
        )

    def list_issue_comments(self, number: int) -> list[dict]:
        return self._api_list(f"repos/{self.repository}/issues/{number}/comments")

    def list_review_comments(self, number: int) -> list[dict]:
        return self._api_list(f"repos/{self.repository}/pulls/{number}/comments")

    def post_review_comment(self, number: int, comment: dict) -> None:
        self._api(
            f"repos/{self.repository}/pulls/{number}/comments",
            "--method", "POST",
            "-H", f"Accept: {JSON_MEDIA_TYPE}",
            "--input", "-",
            input=json.dumps(comment),
        )


def wait_for_mergeable(
    client: GitHubClient,
    number: int,
    retries: int = 6,
    delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """Fetch the PR once GitHub has computed its `mergeable` field.

    Polls with a doubling delay; raises GitHubError after `retries` waits.
    """
    attempts = 0
    while True:
        pr = client.get_pull_request(number)
        if pr.get("mergeable") is not None:
            return pr
        if attempts >= retries:
            raise GitHubError(f"gave up waiting for mergeable PR; tried {attempts + 1} times")
        attempts += 1
        logger.info("Mergeable state of PR #%d not known yet, retrying in %.0fs", number, delay)
        sleep(delay)
        delay *= 2
