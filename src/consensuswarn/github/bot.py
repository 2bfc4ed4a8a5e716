"""PR review bot: comment on hunks that reach a root function.

This is the entry point for the GitHub Action. It:
1. Waits until GitHub knows whether the PR is mergeable, then fetches its diff
2. Skips PRs that were already flagged or cannot be merged
3. Runs the check against the checked-out base directory
4. Posts one review comment per touched hunk, skipping hunks already commented

Usage:
    consensuswarn pr --repository owner/name --pr 123 --roots pkg/mod.Func
"""

from __future__ import annotations

import logging

from consensuswarn.analysis.check import run_check
from consensuswarn.config import ProjectConfig
from consensuswarn.exceptions import ConfigError
from consensuswarn.github.client import GitHubClient, wait_for_mergeable
from consensuswarn.github.renderer import render_hunk_comment

logger = logging.getLogger("consensuswarn.github")


def run_pr_check(
    client: GitHubClient,
    number: int,
    config: ProjectConfig,
    dry_run: bool = False,
) -> dict:
    """Run the full PR review pipeline.

    Returns:
        Dict with 'status' ('skipped' or 'checked'), 'reason' when
        skipped, and 'hunks', 'posted' and 'comments' when checked.
    """
    if number <= 0:
        raise ConfigError(f"invalid PR number: {number}")

    title = config.comment_title
    pr = wait_for_mergeable(client, number, retries=config.github.mergeable_retries)
    diff_text = client.get_diff(number)

    for comment in client.list_issue_comments(number):
        if title in (comment.get("body") or ""):
            logger.info("Ignoring PR #%d because it was already commented", number)
            return {"status": "skipped", "reason": "already commented"}
    if not pr.get("mergeable"):
        logger.info("Ignoring non-mergeable PR #%d", number)
        return {"status": "skipped", "reason": "not mergeable"}

    hunks = run_check(config.base_dir, diff_text, config.roots, strip_prefix=config.strip_prefix)

    existing = {
        (c.get("path"), c.get("line"))
        for c in client.list_review_comments(number)
        if title in (c.get("body") or "")
    }

    comments = []
    posted = 0
    for hunk in hunks:
        line = hunk.end_line
        if (hunk.rel_file, line) in existing:
            continue
        comment = {
            "commit_id": pr.get("head", {}).get("sha", ""),
            "line": line,
            "path": hunk.rel_file,
            "body": render_hunk_comment(hunk, config.base_dir, title),
        }
        if hunk.start_line < line:
            comment["start_line"] = hunk.start_line
        comments.append(comment)
        if not dry_run:
            client.post_review_comment(number, comment)
            posted += 1

    return {
        "status": "checked",
        "hunks": len(hunks),
        "posted": posted,
        "comments": comments,
    }
