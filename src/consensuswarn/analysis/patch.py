"""Unified diff parsing and the hunk interval index.

A Patch is the list of original-side hunks of a diff, sorted by
(file, start line). PatchIndex marks the hunks overlapping a function
body with the call stack that reached that function.
"""

from __future__ import annotations

import bisect
import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from consensuswarn.exceptions import PatchParseError
from consensuswarn.model.models import StackFrame

logger = logging.getLogger("consensuswarn.patch")

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")

DEV_NULL = "/dev/null"


@dataclass
class DiffHunk:
    """A single hunk from a unified diff, as it appeared in the payload."""
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""
    lines: list[str] = field(default_factory=list)


@dataclass
class Hunk:
    """A changed line range on the original side of one file."""
    file: str  # absolute path, comparable with model spans
    rel_file: str  # path as named by the diff
    start_line: int
    end_line: int
    diff: DiffHunk
    stack: tuple[StackFrame, ...] = ()


class Patch:
    """Hunks sorted by (file, start line); each file's hunks are contiguous."""

    def __init__(self, hunks: list[Hunk] | None = None) -> None:
        self.hunks = sorted(hunks or [], key=lambda h: (h.file, h.start_line))

    def __len__(self) -> int:
        return len(self.hunks)

    def __iter__(self) -> Iterator[Hunk]:
        return iter(self.hunks)

    def __getitem__(self, i: int) -> Hunk:
        return self.hunks[i]


class PatchIndex:
    """Overlap queries over a Patch with shortest-stack-wins updates."""

    def __init__(self, patch: Patch) -> None:
        self.patch = patch

    def mark(self, stack: tuple[StackFrame, ...], file: str, start_line: int, end_line: int) -> int:
        """Record `stack` on every hunk overlapping [start_line, end_line] in `file`.

        A hunk keeps its current stack unless it has none or the current
        one is strictly longer. Returns the number of overlapping hunks.
        """
        hunks = self.patch.hunks
        i = bisect.bisect_left(hunks, (file, start_line), key=lambda h: (h.file, h.end_line))
        overlapping = 0
        while i < len(hunks):
            hunk = hunks[i]
            if hunk.file != file or hunk.start_line > end_line:
                break
            overlapping += 1
            if not hunk.stack or len(hunk.stack) > len(stack):
                hunk.stack = stack
            i += 1
        if overlapping:
            logger.debug("%s:%d-%d overlaps %d hunk(s)", file, start_line, end_line, overlapping)
        return overlapping

    def marked(self) -> list[Hunk]:
        """Hunks with a recorded stack, in patch order."""
        return [h for h in self.patch.hunks if h.stack]


def parse_patch(diff_text: str, base_dir: str = ".", strip_prefix: str = "a/") -> Patch:
    """Parse unified diff text into a Patch of original-side hunks.

    Paths have `strip_prefix` removed and are joined to `base_dir`.
    Files that only exist on the new side (added files) have no
    original lines and produce no hunks.
    """
    base_dir = os.path.abspath(base_dir)
    hunks: list[Hunk] = []
    orig_path: str | None = None
    current: DiffHunk | None = None
    old_left = new_left = 0

    for lineno, line in enumerate(diff_text.splitlines(), start=1):
        if current is not None and (old_left > 0 or new_left > 0):
            tag = line[:1]
            if tag in (" ", ""):
                old_left -= 1
                new_left -= 1
            elif tag == "-":
                old_left -= 1
            elif tag == "+":
                new_left -= 1
            elif tag == "\\":
                continue
            else:
                raise PatchParseError(f"line {lineno}: unexpected line in hunk: {line!r}")
            if old_left < 0 or new_left < 0:
                raise PatchParseError(f"line {lineno}: hunk longer than its header declares")
            current.lines.append(line)
            continue

        if line.startswith("\\"):
            continue
        if line.startswith("diff --git "):
            orig_path = _git_header_path(line, strip_prefix)
            current = None
        elif line.startswith("--- "):
            orig_path = _strip_path(line[4:], strip_prefix)
            current = None
        elif line.startswith("@@"):
            match = _HUNK_HEADER.match(line)
            if match is None:
                raise PatchParseError(f"line {lineno}: malformed hunk header: {line!r}")
            if orig_path is None:
                raise PatchParseError(f"line {lineno}: hunk before any file header")
            current = DiffHunk(
                old_start=int(match.group(1)),
                old_count=int(match.group(2) or "1"),
                new_start=int(match.group(3)),
                new_count=int(match.group(4) or "1"),
                section=match.group(5).strip(),
            )
            old_left, new_left = current.old_count, current.new_count
            if orig_path != DEV_NULL:
                hunks.append(
                    Hunk(
                        file=os.path.normpath(os.path.join(base_dir, orig_path)),
                        rel_file=orig_path,
                        start_line=current.old_start,
                        end_line=current.old_start + current.old_count,
                        diff=current,
                    )
                )

    if current is not None and (old_left > 0 or new_left > 0):
        raise PatchParseError("unexpected end of diff inside a hunk")

    return Patch(hunks)


def _strip_path(raw: str, strip_prefix: str) -> str:
    path = raw.split("\t", 1)[0].strip()
    if path.startswith('"') and path.endswith('"') and len(path) > 1:
        path = path[1:-1]
    if path == DEV_NULL:
        return path
    if strip_prefix and path.startswith(strip_prefix):
        path = path[len(strip_prefix):]
    return path


def _git_header_path(line: str, strip_prefix: str) -> str | None:
    """Original-side path from a `diff --git a/x b/x` line, if unambiguous."""
    rest = line[len("diff --git "):]
    parts = rest.split(" b/")
    if len(parts) != 2:
        return None
    return _strip_path(parts[0], strip_prefix)
