"""Depth-first reachability walk from root functions."""

from __future__ import annotations

import logging

from consensuswarn.analysis.patch import PatchIndex
from consensuswarn.model.models import FunctionId, ProgramModel, StackFrame

logger = logging.getLogger("consensuswarn.walker")


class ReachabilityWalker:
    """Visits every function reachable from the roots it is given, once.

    The unvisited set is shared by all walks of one instance: the first
    root to reach a function claims it, even if a later root reaches it
    through a shorter chain. Create one walker per run.
    """

    def __init__(self, model: ProgramModel, index: PatchIndex) -> None:
        self.model = model
        self.index = index
        self.unvisited: set[FunctionId] = set(model.function_ids())

    def walk(self, fid: FunctionId, path: tuple[StackFrame, ...] = ()) -> None:
        """Walk the call graph from `fid`, marking hunks along the way.

        Uses an explicit stack of callee iterators so deep call chains
        do not hit the interpreter's recursion limit; the visit order is
        the same pre-order a recursive walk would produce.
        """
        path = self._visit(fid, path)
        if path is None:
            return
        stack = [(iter(self.model.callees(fid)), path)]
        while stack:
            callees, path = stack[-1]
            for callee in callees:
                callee_path = self._visit(callee, path)
                if callee_path is not None:
                    stack.append((iter(self.model.callees(callee)), callee_path))
                    break
            else:
                stack.pop()

    def _visit(self, fid: FunctionId, path: tuple[StackFrame, ...]) -> tuple[StackFrame, ...] | None:
        """Claim `fid` and mark its bodies; None if it was already claimed."""
        if fid not in self.unvisited:
            return None
        self.unvisited.remove(fid)

        node = self.model.get(fid)
        path = path + (StackFrame(function=fid, file=node.span.file, line=node.decl_line),)
        logger.debug("Visiting %s (depth %d)", fid, len(path))
        for span in node.spans:
            self.index.mark(path, span.file, span.start_line, span.end_line)
        return path
