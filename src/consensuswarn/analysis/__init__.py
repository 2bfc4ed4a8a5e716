"""Reachability-and-overlap analysis of a diff against root functions."""

from consensuswarn.analysis.check import check_patch, run_check
from consensuswarn.analysis.patch import Hunk, Patch, PatchIndex, parse_patch
from consensuswarn.analysis.roots import RootResolver, parse_root_spec
from consensuswarn.analysis.walker import ReachabilityWalker

__all__ = [
    "Hunk",
    "Patch",
    "PatchIndex",
    "ReachabilityWalker",
    "RootResolver",
    "check_patch",
    "parse_patch",
    "parse_root_spec",
    "run_check",
]
