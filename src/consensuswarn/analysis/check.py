"""Check orchestration: roots + program model + diff -> marked hunks."""

from __future__ import annotations

import logging
import os

from consensuswarn.analysis.patch import Hunk, Patch, PatchIndex, parse_patch
from consensuswarn.analysis.roots import RootResolver
from consensuswarn.analysis.walker import ReachabilityWalker
from consensuswarn.model.models import FunctionId, ModelProvider, ProgramModel
from consensuswarn.model.python_frontend import PythonFrontend

logger = logging.getLogger("consensuswarn.check")


def run_check(
    base_dir: str,
    diff_text: str,
    roots: list[str],
    provider: ModelProvider | None = None,
    strip_prefix: str = "a/",
) -> list[Hunk]:
    """Report the hunks of `diff_text` touching any function reachable from `roots`.

    Every failure (malformed root, model load, missing roots, diff
    parse) raises before any hunk is marked.

    Args:
        base_dir: Directory the diff paths and module names are relative to.
        diff_text: Unified diff payload.
        roots: Root specs, walked in this order.
        provider: Program model frontend; defaults to PythonFrontend(base_dir).
        strip_prefix: Prefix removed from original-side diff paths.

    Returns:
        Marked hunks in patch order, each carrying its call stack
        (root first).
    """
    base_dir = os.path.abspath(base_dir)
    resolver = RootResolver(roots)
    if provider is None:
        provider = PythonFrontend(base_dir)

    logger.info("Loading %s", ", ".join(resolver.packages))
    model = provider.load(resolver.packages)
    root_ids = resolver.resolve(model)
    patch = parse_patch(diff_text, base_dir, strip_prefix)
    return check_patch(model, root_ids, patch)


def check_patch(model: ProgramModel, roots: list[FunctionId], patch: Patch) -> list[Hunk]:
    """Walk `roots` in order over `model` and return the marked hunks of `patch`."""
    index = PatchIndex(patch)
    walker = ReachabilityWalker(model, index)
    for root in roots:
        walker.walk(root)
    marked = index.marked()
    logger.info(
        "%d of %d hunk(s) reachable from %d root(s); visited %d of %d function(s)",
        len(marked), len(patch), len(roots), len(model) - len(walker.unvisited), len(model),
    )
    return marked
