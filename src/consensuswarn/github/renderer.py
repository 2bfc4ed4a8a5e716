"""Markdown rendering of touched hunks for review comments."""

from __future__ import annotations

import os

from consensuswarn.analysis.patch import Hunk
from consensuswarn.config import COMMENT_TITLE
from consensuswarn.model.models import StackFrame


def render_frame(frame: StackFrame, base_dir: str) -> str:
    """`qualified.name (relative/file.py:line)` for one stack frame."""
    file = frame.file
    if base_dir and os.path.isabs(file):
        rel = os.path.relpath(file, base_dir)
        if not rel.startswith(".."):
            file = rel
    return f"{frame.function.full_name} ({file}:{frame.line})"


def render_call_sequence(hunk: Hunk, base_dir: str) -> list[str]:
    """Frames of the hunk's stack, touched function first, root last."""
    return [render_frame(frame, base_dir) for frame in reversed(hunk.stack)]


def render_hunk_comment(hunk: Hunk, base_dir: str, title: str = COMMENT_TITLE) -> str:
    """Render the review comment body for one touched hunk."""
    lines = [title, "", "Call sequence:", "```"]
    lines.extend(render_call_sequence(hunk, base_dir))
    lines.append("```")
    return "\n".join(lines) + "\n"


def render_summary(hunks: list[Hunk], base_dir: str, title: str = COMMENT_TITLE) -> str:
    """Render every touched hunk as one markdown document."""
    sections = [f"## {title}", ""]
    if not hunks:
        sections.append("> No changed lines are reachable from the configured roots.")
        return "\n".join(sections) + "\n"

    for hunk in hunks:
        sections.append(f"### `{hunk.rel_file}` lines {hunk.start_line}-{hunk.end_line}")
        sections.append("")
        sections.append("```")
        sections.extend(render_call_sequence(hunk, base_dir))
        sections.append("```")
        sections.append("")
    return "\n".join(sections)
