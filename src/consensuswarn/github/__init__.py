"""GitHub review workflow: posts call sequences on PR hunks that reach a root.

Runs as a GitHub Action or from the CLI:
  - Waits for GitHub to compute the PR's mergeable state
  - Fetches the PR diff and runs the check
  - Posts one review comment per touched hunk (once)
"""
