"""Data models for the analyzed program: functions, spans and call edges."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

import networkx as nx
from pydantic import BaseModel, ConfigDict, Field

from consensuswarn.exceptions import ModelLoadError


class FunctionId(BaseModel):
    """Identity of a function or method.

    `qualifier` is the enclosing type's qualified name for methods
    (e.g. "pkg/mod.T") and the module path for free functions
    (e.g. "pkg/mod").
    """

    model_config = ConfigDict(frozen=True)

    qualifier: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.qualifier}.{self.name}"

    def __str__(self) -> str:
        return self.full_name


class SourceSpan(BaseModel):
    """A line range in one source file (both ends inclusive)."""

    model_config = ConfigDict(frozen=True)

    file: str
    start_line: int
    end_line: int


class FunctionNode(BaseModel):
    """A function definition with its body span and resolved call targets.

    A name defined more than once in the same scope (a property getter
    and its setter, or a function redefined further down) is one node:
    `span` and `decl_line` are the first definition, `extra_spans` the
    later ones, and `calls` runs through all of them in source order.
    """

    id: FunctionId
    span: SourceSpan
    decl_line: int
    calls: list[FunctionId] = Field(default_factory=list)  # body order
    extra_spans: list[SourceSpan] = Field(default_factory=list)

    @property
    def spans(self) -> list[SourceSpan]:
        return [self.span, *self.extra_spans]


class StackFrame(BaseModel):
    """One link of a reported call chain."""

    model_config = ConfigDict(frozen=True)

    function: FunctionId
    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.function.full_name} ({self.file}:{self.line})"


class ProgramModel:
    """Read-only call graph over FunctionNodes.

    Nodes are FunctionIds carrying their FunctionNode under the `node`
    attribute. Edges point from caller to callee and are inserted in
    body order, so `callees()` preserves call-site order. Call targets
    without a definition in the model are dropped and only counted.
    """

    def __init__(self, functions: Iterable[FunctionNode] = ()) -> None:
        self.graph = nx.DiGraph()
        self._unresolved = 0

        functions = list(functions)
        for fn in functions:
            if self.graph.has_node(fn.id):
                raise ModelLoadError(f"duplicate definition: {fn.id.full_name}")
            self.graph.add_node(fn.id, node=fn)

        for fn in functions:
            for target in fn.calls:
                if not self.graph.has_node(target):
                    self._unresolved += 1
                elif not self.graph.has_edge(fn.id, target):
                    self.graph.add_edge(fn.id, target, kind="calls")

    def __contains__(self, fid: object) -> bool:
        return isinstance(fid, FunctionId) and self.graph.has_node(fid)

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def function_ids(self) -> list[FunctionId]:
        """All function ids, in ingestion order."""
        return list(self.graph.nodes)

    def get(self, fid: FunctionId) -> FunctionNode | None:
        if not self.graph.has_node(fid):
            return None
        return self.graph.nodes[fid]["node"]

    def callees(self, fid: FunctionId) -> list[FunctionId]:
        """Statically resolved call targets of `fid`, in body order."""
        return list(self.graph.successors(fid))

    def get_stats(self) -> dict:
        """Get model statistics."""
        methods = sum(1 for fid in self.graph.nodes if "." in fid.qualifier.rsplit("/", 1)[-1])
        return {
            "functions": self.graph.number_of_nodes() - methods,
            "methods": methods,
            "call_edges": self.graph.number_of_edges(),
            "files": len({data["node"].span.file for _, data in self.graph.nodes(data=True)}),
            "unresolved_refs": self._unresolved,
        }


class ModelProvider(ABC):
    """Abstract base for program model frontends."""

    @abstractmethod
    def load(self, packages: list[str]) -> ProgramModel:
        """Load `packages` and everything they import into a ProgramModel.

        Must raise ModelLoadError rather than return a partial model.
        """
        ...
