#!/usr/bin/env python3
"""Demo: Using ConsensusWarn as a Python library.

Checks the working-tree diff of the current repository against a root
function, without going through the CLI.

    python examples/demo.py pkg/state.apply
"""

import subprocess
import sys
from pathlib import Path

from consensuswarn.analysis.check import check_patch
from consensuswarn.analysis.patch import parse_patch
from consensuswarn.analysis.roots import RootResolver
from consensuswarn.github.renderer import render_call_sequence
from consensuswarn.model.python_frontend import PythonFrontend


def main():
    project_root = str(Path(".").resolve())
    source_root = str(Path("src").resolve()) if Path("src").is_dir() else project_root
    roots = sys.argv[1:] or ["consensuswarn/analysis/check.run_check"]

    # 1. Resolve the roots against the program model
    resolver = RootResolver(roots)
    model = PythonFrontend(source_root).load(resolver.packages)
    root_ids = resolver.resolve(model)

    stats = model.get_stats()
    print(f"Loaded {stats['functions']} functions and {stats['methods']} methods "
          f"from {stats['files']} files ({stats['call_edges']} call edges)")

    # 2. Parse the diff
    diff_text = subprocess.run(
        ["git", "diff"], cwd=project_root, capture_output=True, text=True
    ).stdout
    patch = parse_patch(diff_text, project_root)
    print(f"Diff has {len(patch)} hunk(s)")

    # 3. Walk the roots and report touched hunks
    for hunk in check_patch(model, root_ids, patch):
        print(f"\n{hunk.rel_file}:{hunk.start_line}-{hunk.end_line}")
        for line in render_call_sequence(hunk, project_root):
            print(f"  {line}")


if __name__ == "__main__":
    main()
