"""Root specification parsing and matching.

A root names a method as

    pkg/path/mod.Type.Method

or a free function as

    pkg/path/mod.Function
"""

from __future__ import annotations

import logging

from consensuswarn.exceptions import MalformedRootSpec, MissingRoots
from consensuswarn.model.models import FunctionId, ProgramModel

logger = logging.getLogger("consensuswarn.roots")


def parse_root_spec(spec: str) -> tuple[FunctionId, str]:
    """Split a root spec into its candidate FunctionId and owning module.

    Raises MalformedRootSpec when no name follows the last path separator.
    """
    last_slash = spec.rfind("/")
    idx = spec.rfind(".")
    if idx <= last_slash or idx == len(spec) - 1:
        raise MalformedRootSpec(spec)

    qualifier = spec[:idx]
    module = qualifier
    type_sep = qualifier.find(".", last_slash + 1)
    if type_sep != -1:
        module = qualifier[:type_sep]
    if not module or module.endswith("/"):
        raise MalformedRootSpec(spec)
    return FunctionId(qualifier=qualifier, name=spec[idx + 1 :]), module


class RootResolver:
    """Resolves root specs against a program model.

    All specs are parsed up front, so a malformed spec fails before any
    package is loaded. `packages` lists the distinct modules to load.
    """

    def __init__(self, specs: list[str]) -> None:
        self.specs = list(specs)
        self.candidates: dict[FunctionId, str] = {}
        self.packages: list[str] = []
        for spec in self.specs:
            fid, module = parse_root_spec(spec)
            self.candidates.setdefault(fid, spec)
            if module not in self.packages:
                self.packages.append(module)

    def resolve(self, model: ProgramModel) -> list[FunctionId]:
        """Match every candidate to a definition, in declared root order.

        Raises MissingRoots listing every candidate without a definition.
        """
        pending = dict(self.candidates)
        matched: set[FunctionId] = set()
        for fid in model.function_ids():
            if fid in pending:
                del pending[fid]
                matched.add(fid)
                if not pending:
                    break

        if pending:
            raise MissingRoots([fid.full_name for fid in pending])

        roots = [fid for fid in self.candidates if fid in matched]
        logger.debug("Resolved roots: %s", ", ".join(str(r) for r in roots))
        return roots
