"""End-to-end tests for the check pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from consensuswarn.analysis.check import check_patch, run_check
from consensuswarn.analysis.patch import parse_patch
from consensuswarn.exceptions import MissingRoots, ModelLoadError, PatchParseError
from consensuswarn.model.models import ProgramModel

from conftest import PROPERTY_SOURCE, STATE_PATCH, STATE_ROOTS, fid, make_node


class TestRunCheck:
    def test_state_patch(self, state_project: Path):
        hunks = run_check(str(state_project), STATE_PATCH, STATE_ROOTS)
        assert len(hunks) == 2

        func, method = hunks
        assert func.start_line == 16
        assert [f.function.full_name for f in func.stack] == [
            "testdata/state.RootFunc1",
            "testdata/state.StateFunc1",
        ]
        assert method.start_line == 41
        assert [f.function.full_name for f in method.stack] == [
            "testdata/state.T.RootMethod1",
            "testdata/state.T.StateMethod1",
        ]
        assert method.stack[0].line == 37

    def test_single_root(self, state_project: Path):
        hunks = run_check(str(state_project), STATE_PATCH, ["testdata/state.T.RootMethod1"])
        assert [h.start_line for h in hunks] == [41]

    def test_invalid_roots(self, state_project: Path):
        roots = ["testdata/state.MissingFunc", "testdata/state.T.MissingMethod"]
        with pytest.raises(MissingRoots) as excinfo:
            run_check(str(state_project), STATE_PATCH, roots)
        assert excinfo.value.missing == sorted(roots)

    def test_each_invalid_root_is_rejected(self, state_project: Path):
        for root in ["testdata/state.MissingFunc", "testdata/state.T.MissingMethod"]:
            with pytest.raises(MissingRoots):
                run_check(str(state_project), "", [root])

    def test_root_in_unknown_module(self, state_project: Path):
        with pytest.raises(ModelLoadError):
            run_check(str(state_project), STATE_PATCH, ["testdata/nothere.Func"])

    def test_malformed_patch(self, state_project: Path):
        with pytest.raises(PatchParseError):
            run_check(str(state_project), "--- a/x.py\n@@ -1,2 +1,2 @@\n x\n", STATE_ROOTS)

    def test_patch_outside_model(self, state_project: Path):
        diff = "--- a/elsewhere.py\n+++ b/elsewhere.py\n@@ -16 +16 @@\n-a\n+b\n"
        assert run_check(str(state_project), diff, STATE_ROOTS) == []

    def test_deterministic(self, state_project: Path):
        def snapshot():
            return [
                (h.file, h.start_line, tuple(str(f) for f in h.stack))
                for h in run_check(str(state_project), STATE_PATCH, STATE_ROOTS)
            ]

        assert snapshot() == snapshot()

    def test_app_reachability(self, app_project: Path):
        diff = (
            "--- a/app/util.py\n+++ b/app/util.py\n"
            "@@ -11,1 +11,1 @@\n-    return hash(value)\n+    return hash(str(value))\n"
            "--- a/app/store.py\n+++ b/app/store.py\n"
            "@@ -9,1 +9,1 @@\n-        self.items.append(item)\n+        self.items.insert(0, item)\n"
        )
        hunks = run_check(str(app_project), diff, ["app/ledger.Ledger.apply"])
        assert len(hunks) == 1
        assert [f.function.full_name for f in hunks[0].stack] == [
            "app/ledger.Ledger.apply",
            "app/ledger.Base.commit",
            "app/util.checksum",
        ]


    def test_property_getter_and_setter(self, tmp_path: Path):
        (tmp_path / "mod.py").write_text(PROPERTY_SOURCE)
        diff = (
            "--- a/mod.py\n+++ b/mod.py\n"
            "@@ -2 +2 @@\n-    return 1\n+    return 2\n"
            "@@ -7 +7 @@\n-        return helper()\n+        return helper() + 1\n"
            "@@ -11 +11 @@\n-        self._v = clamp(v)\n+        self._v = v\n"
        )
        hunks = run_check(str(tmp_path), diff, ["mod.T.value"])

        assert [h.start_line for h in hunks] == [2, 7, 11]
        assert [f.function.full_name for f in hunks[0].stack] == ["mod.T.value", "mod.helper"]
        assert [len(h.stack) for h in hunks[1:]] == [1, 1]
        assert hunks[1].stack[0].line == 6


class TestCheckPatch:
    def test_asymmetric_tie_break(self):
        # Function claiming follows root order; hunk stacks prefer the shortest.
        model = ProgramModel([
            make_node("pkg/mod", "R1", 1, 2, calls=[("pkg/mod", "A")]),
            make_node("pkg/mod", "A", 4, 5, calls=[("pkg/mod", "Shared")]),
            make_node("pkg/mod", "Shared", 10, 20),
            make_node("pkg/mod", "R2", 30, 31, calls=[("pkg/mod", "Shared"), ("pkg/mod", "Inner")]),
            make_node("pkg/mod", "Inner", 14, 16),
        ])
        diff = "--- a/pkg/mod.py\n+++ b/pkg/mod.py\n@@ -15,1 +15,1 @@\n-a\n+b\n"
        patch = parse_patch(diff, "/src")
        hunks = check_patch(model, [fid("pkg/mod.R1"), fid("pkg/mod.R2")], patch)

        [hunk] = hunks
        assert [f.function.name for f in hunk.stack] == ["R2", "Inner"]

    def test_no_roots(self):
        model = ProgramModel([make_node("pkg/mod", "F", 1, 2)])
        patch = parse_patch("--- a/pkg/mod.py\n+++ b/pkg/mod.py\n@@ -1 +1 @@\n-a\n+b\n", "/src")
        assert check_patch(model, [], patch) == []

    def test_pure_insertion_at_body_edge(self):
        model = ProgramModel([
            make_node("pkg/mod", "Root", 1, 5, calls=[("pkg/mod", "Leaf")]),
            make_node("pkg/mod", "Leaf", 10, 12),
        ])
        inside = "--- a/pkg/mod.py\n+++ b/pkg/mod.py\n@@ -5,0 +6,1 @@\n+    x = 1\n"
        outside = "--- a/pkg/mod.py\n+++ b/pkg/mod.py\n@@ -6,0 +7,1 @@\n+x = 1\n"

        [hunk] = check_patch(model, [fid("pkg/mod.Root")], parse_patch(inside, "/src"))
        assert (hunk.start_line, hunk.end_line) == (5, 5)
        assert check_patch(model, [fid("pkg/mod.Root")], parse_patch(outside, "/src")) == []
