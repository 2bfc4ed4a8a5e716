"""Command-line interface for ConsensusWarn."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from consensuswarn import __version__
from consensuswarn.config import (
    ProjectConfig,
    find_project_root,
    get_config_value,
    load_config,
    parse_root_list,
    resolve_base_dir,
    save_config,
    set_config_value,
)
from consensuswarn.exceptions import ConsensusWarnError
from consensuswarn.ui.console import Console

console = Console()
err_console = Console(stderr=True)

# The check found at least one hunk reachable from a root.
EXIT_TOUCHED = 128
EXIT_ERROR = 2


def _load_project_config(path: str | None) -> ProjectConfig:
    """Load the config for `path` (or the discovered project), or defaults."""
    start = Path(path).resolve() if path else None
    if start is not None and not start.exists():
        err_console.error(f"Path does not exist: {path}")
        sys.exit(EXIT_ERROR)
    root = find_project_root(start)
    config = load_config(root)
    config.base_dir = str(start) if path else resolve_base_dir(config, root)
    return config


def _merge_roots(config: ProjectConfig, roots: tuple[str, ...]) -> None:
    if roots:
        config.roots = [name for value in roots for name in parse_root_list(value)]
    if not config.roots:
        err_console.error("No roots given. Use --roots or set 'roots' in the config.")
        sys.exit(EXIT_ERROR)


@click.group()
@click.version_option(version=__version__, prog_name="consensuswarn")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """ConsensusWarn - flag changes that can alter sensitive functions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option(
    "--roots", "-r", multiple=True,
    help="Comma-separated root functions, e.g. pkg/mod.Type.Method (repeatable).",
)
@click.option("--dir", "-d", "base_dir", default=None, help="Base directory for the patch.")
@click.option(
    "--patch", "patch_file", type=click.File("r"), default="-",
    help="Unified diff to check (default: stdin).",
)
@click.option("--strip-prefix", default=None, help="Prefix removed from diff paths (default: a/).")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "markdown", "json"]),
    default="text",
    help="Output format.",
)
def check(
    roots: tuple[str, ...],
    base_dir: str | None,
    patch_file,
    strip_prefix: str | None,
    output_format: str,
):
    """Report diff hunks that touch code reachable from the roots.

    Exits 0 when nothing is touched, 128 when at least one hunk is
    reachable from a root, and 2 on errors.

        git diff main | consensuswarn check --roots pkg/state.apply
    """
    from consensuswarn.analysis.check import run_check
    from consensuswarn.github.renderer import render_summary

    try:
        config = _load_project_config(base_dir)
        _merge_roots(config, roots)
        if strip_prefix is not None:
            config.strip_prefix = strip_prefix
        hunks = run_check(
            config.base_dir, patch_file.read(), config.roots, strip_prefix=config.strip_prefix
        )
    except ConsensusWarnError as e:
        err_console.error(str(e))
        sys.exit(EXIT_ERROR)

    if output_format == "json":
        click.echo(json.dumps(
            [
                {
                    "file": h.rel_file,
                    "start_line": h.start_line,
                    "end_line": h.end_line,
                    "stack": [
                        {"function": f.function.full_name, "file": f.file, "line": f.line}
                        for f in h.stack
                    ],
                }
                for h in hunks
            ],
            indent=2,
        ))
    elif output_format == "markdown":
        click.echo(render_summary(hunks, config.base_dir, config.comment_title))
    elif hunks:
        console.warning(f"{len(hunks)} hunk(s) potentially affect state")
        console.show_hunks(hunks, config.base_dir)
    else:
        console.success("No changes reachable from the roots")

    if hunks:
        sys.exit(EXIT_TOUCHED)


@main.command()
@click.option(
    "--roots", "-r", multiple=True,
    help="Comma-separated root functions (repeatable).",
)
@click.option("--dir", "-d", "base_dir", default=None, help="Base directory for the patch.")
def stats(roots: tuple[str, ...], base_dir: str | None):
    """Show the program model loaded for the roots."""
    from consensuswarn.analysis.roots import RootResolver
    from consensuswarn.model.python_frontend import PythonFrontend

    try:
        config = _load_project_config(base_dir)
        _merge_roots(config, roots)
        resolver = RootResolver(config.roots)
        model = PythonFrontend(config.base_dir).load(resolver.packages)
        resolver.resolve(model)
    except ConsensusWarnError as e:
        err_console.error(str(e))
        sys.exit(EXIT_ERROR)

    console.show_stats(model.get_stats())


@main.command()
@click.option("--repository", default=None, help="The GitHub owner/repository.")
@click.option("--pr", "pr_number", type=int, required=True, help="The pull request number.")
@click.option("--roots", "-r", multiple=True, help="Comma-separated root functions (repeatable).")
@click.option("--dir", "-d", "base_dir", default=None, help="Base directory for the patch.")
@click.option("--api-url", default=None, help="GitHub API URL.")
@click.option("--dry-run", is_flag=True, help="Print comments instead of posting them.")
def pr(
    repository: str | None,
    pr_number: int,
    roots: tuple[str, ...],
    base_dir: str | None,
    api_url: str | None,
    dry_run: bool,
):
    """Comment on a GitHub pull request's hunks that reach a root.

    Usage in CI:

        consensuswarn pr --repository "$GITHUB_REPOSITORY" --pr 42 --roots pkg/state.apply
    """
    from consensuswarn.github.bot import run_pr_check
    from consensuswarn.github.client import GitHubClient

    try:
        config = _load_project_config(base_dir)
        _merge_roots(config, roots)
        if repository:
            config.github.repository = repository
        if api_url:
            config.github.api_url = api_url
        client = GitHubClient(
            config.github.repository,
            token=config.github.token,
            hostname=config.github.hostname,
        )
        result = run_pr_check(client, pr_number, config, dry_run=dry_run)
    except ConsensusWarnError as e:
        err_console.error(str(e))
        sys.exit(EXIT_ERROR)

    if result["status"] == "skipped":
        err_console.info(f"Ignoring PR #{pr_number}: {result['reason']}")
        return

    if dry_run:
        for comment in result["comments"]:
            click.echo(f"{comment['path']}:{comment['line']}")
            click.echo(comment["body"])
    console.success(
        f"{result['hunks']} hunk(s) touched, {result['posted']} comment(s) posted"
    )


@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Show or edit .consensuswarn/config.json.

        consensuswarn config set roots pkg/state.apply,pkg/state.T.Commit
    """
    root = Path(path).resolve() if path else (find_project_root() or Path.cwd())
    if (action != "show" and not key) or (action == "set" and value is None):
        err_console.error(f"Usage: consensuswarn config {action} <key> [value]")
        sys.exit(EXIT_ERROR)

    try:
        config = load_config(root)
        if action == "show":
            console.console.print_json(config.model_dump_json())
        elif action == "get":
            console.console.print(f"{key} = {get_config_value(config, key)}")
        else:
            config = set_config_value(config, key, _parse_value(value))
            save_config(root, config)
            console.success(f"Set {key}")
    except KeyError:
        err_console.error(f"Unknown config key: {key}")
        sys.exit(EXIT_ERROR)
    except ConsensusWarnError as e:
        err_console.error(str(e))
        sys.exit(EXIT_ERROR)


def _parse_value(value: str):
    """Numbers, booleans and lists arrive as JSON; anything else is a string."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


if __name__ == "__main__":
    main()
