"""Python program model frontend using the built-in ast module.

Modules are addressed with path-style names: `pkg/sub/mod` is
`<base>/pkg/sub/mod.py` or `<base>/pkg/sub/mod/__init__.py`. Only
imports that resolve to files under the base directory are followed.
"""

from __future__ import annotations

import ast
import logging
import os
from collections import deque
from dataclasses import dataclass, field

from consensuswarn.exceptions import ModelLoadError
from consensuswarn.model.models import (
    FunctionId,
    FunctionNode,
    ModelProvider,
    ProgramModel,
    SourceSpan,
)

logger = logging.getLogger("consensuswarn.model")

_FunctionDef = (ast.FunctionDef, ast.AsyncFunctionDef)


@dataclass
class _ClassInfo:
    qualifier: str  # e.g. "pkg/mod.Outer.Inner"
    module: str
    node: ast.ClassDef
    # every def of a name, in source order
    methods: dict[str, list[ast.FunctionDef | ast.AsyncFunctionDef]] = field(default_factory=dict)
    classes: dict[str, _ClassInfo] = field(default_factory=dict)


@dataclass
class _ModuleInfo:
    name: str  # path-style module name
    file: str
    is_package: bool
    tree: ast.Module
    functions: dict[str, list[ast.FunctionDef | ast.AsyncFunctionDef]] = field(default_factory=dict)
    classes: dict[str, _ClassInfo] = field(default_factory=dict)
    # name -> ("module", modname) or ("from", modname, attr)
    bindings: dict[str, tuple] = field(default_factory=dict)


class PythonFrontend(ModelProvider):
    """Builds a ProgramModel from Python sources under `base_dir`."""

    def __init__(self, base_dir: str) -> None:
        self.base_dir = os.path.abspath(base_dir)
        self._modules: dict[str, _ModuleInfo] = {}

    def load(self, packages: list[str]) -> ProgramModel:
        self._modules = {}
        queue: deque[str] = deque()
        for name in packages:
            if self._locate(name) is None:
                raise ModelLoadError(f"cannot find module {name} under {self.base_dir}")
            queue.append(name)

        while queue:
            name = queue.popleft()
            if name in self._modules:
                continue
            info = self._parse_module(name)
            self._modules[name] = info
            for dep in self._imported_modules(info):
                if dep not in self._modules:
                    queue.append(dep)

        functions: list[FunctionNode] = []
        for info in self._modules.values():
            functions.extend(self._module_functions(info))

        model = ProgramModel(functions)
        logger.debug("Loaded %d modules, %s", len(self._modules), model.get_stats())
        return model

    # -- loading --------------------------------------------------------

    def _locate(self, name: str) -> tuple[str, bool] | None:
        """Return (file, is_package) for a module name, or None."""
        base = os.path.join(self.base_dir, *name.split("/"))
        init = os.path.join(base, "__init__.py")
        if os.path.isfile(init):
            return init, True
        if os.path.isfile(base + ".py"):
            return base + ".py", False
        return None

    def _parse_module(self, name: str) -> _ModuleInfo:
        file, is_package = self._locate(name)
        try:
            with open(file, encoding="utf-8") as f:
                source = f.read()
            tree = ast.parse(source, filename=file)
        except (OSError, SyntaxError, ValueError) as e:
            raise ModelLoadError(str(e)) from e

        info = _ModuleInfo(name=name, file=file, is_package=is_package, tree=tree)
        for node in tree.body:
            if isinstance(node, _FunctionDef):
                info.functions.setdefault(node.name, []).append(node)
            elif isinstance(node, ast.ClassDef):
                info.classes[node.name] = _class_info(node, f"{name}.{node.name}", name)
            elif isinstance(node, ast.Import):
                for alias in node.names:
                    target = alias.name.replace(".", "/")
                    if alias.asname:
                        info.bindings[alias.asname] = ("module", target)
                    else:
                        head = target.split("/", 1)[0]
                        info.bindings[head] = ("module", head)
            elif isinstance(node, ast.ImportFrom):
                source_mod = self._from_module(info, node)
                if source_mod is None:
                    continue
                for alias in node.names:
                    if alias.name == "*":
                        continue
                    info.bindings[alias.asname or alias.name] = ("from", source_mod, alias.name)
        return info

    def _from_module(self, info: _ModuleInfo, node: ast.ImportFrom) -> str | None:
        """Path-style name of the module a `from ... import` reads from."""
        if not node.level:
            return (node.module or "").replace(".", "/") or None
        parts = info.name.split("/")
        if not info.is_package:
            parts = parts[:-1]
        if node.level > 1:
            if node.level - 1 > len(parts):
                return None
            parts = parts[: len(parts) - (node.level - 1)]
        if node.module:
            parts = parts + node.module.split(".")
        return "/".join(parts) or None

    def _imported_modules(self, info: _ModuleInfo) -> list[str]:
        """Modules under the base directory imported by `info`."""
        candidates: list[str] = []
        for node in info.tree.body:
            if isinstance(node, ast.Import):
                for alias in node.names:
                    parts = alias.name.split(".")
                    candidates.extend("/".join(parts[: i + 1]) for i in range(len(parts)))
            elif isinstance(node, ast.ImportFrom):
                source_mod = self._from_module(info, node)
                if source_mod is None:
                    continue
                candidates.append(source_mod)
                candidates.extend(f"{source_mod}/{a.name}" for a in node.names if a.name != "*")
        return [c for c in candidates if self._locate(c) is not None]

    # -- function extraction --------------------------------------------

    def _module_functions(self, info: _ModuleInfo) -> list[FunctionNode]:
        nodes = []
        for name, defs in info.functions.items():
            nodes.append(self._function_node(info, FunctionId(qualifier=info.name, name=name), defs, None))
        for cls in _walk_classes(info.classes.values()):
            for name, defs in cls.methods.items():
                nodes.append(
                    self._function_node(info, FunctionId(qualifier=cls.qualifier, name=name), defs, cls)
                )
        return nodes

    def _function_node(
        self,
        info: _ModuleInfo,
        fid: FunctionId,
        defs: list[ast.FunctionDef | ast.AsyncFunctionDef],
        cls: _ClassInfo | None,
    ) -> FunctionNode:
        spans = []
        calls = []
        for fn in defs:
            start = min([fn.lineno] + [d.lineno for d in fn.decorator_list])
            spans.append(SourceSpan(file=info.file, start_line=start, end_line=fn.end_lineno or fn.lineno))
            calls.extend(self._function_calls(info, fn, cls))

        return FunctionNode(
            id=fid,
            span=spans[0],
            decl_line=defs[0].lineno,
            calls=calls,
            extra_spans=spans[1:],
        )

    def _function_calls(
        self,
        info: _ModuleInfo,
        fn: ast.FunctionDef | ast.AsyncFunctionDef,
        cls: _ClassInfo | None,
    ) -> list[FunctionId]:
        receiver = _receiver_name(fn) if cls is not None else None
        args = fn.args
        params = {
            a.arg for a in args.posonlyargs + args.args + args.kwonlyargs + [args.vararg, args.kwarg] if a
        }
        params.discard(receiver)

        calls = []
        for call in _iter_calls(fn.body):
            target = self._resolve_call(info, cls, receiver, params, call.func)
            if target is not None:
                calls.append(target)
        return calls

    # -- call resolution ------------------------------------------------

    def _resolve_call(
        self,
        info: _ModuleInfo,
        cls: _ClassInfo | None,
        receiver: str | None,
        params: set[str],
        func: ast.expr,
    ) -> FunctionId | None:
        parts = _dotted_parts(func)
        if not parts or parts[0] in params:
            return None

        if receiver is not None and parts[0] == receiver:
            if len(parts) != 2:
                return None
            return self._lookup_method(cls, parts[1])

        symbol = self._resolve_name(info, parts[0])
        for attr in parts[1:]:
            symbol = self._resolve_attr(symbol, attr)
            if symbol is None:
                return None
        return self._callable(symbol)

    def _resolve_name(self, info: _ModuleInfo, name: str, seen: frozenset = frozenset()):
        """Resolve a module-level name to ("function"|"class"|"module", ...)."""
        if name in info.functions:
            return ("function", FunctionId(qualifier=info.name, name=name))
        if name in info.classes:
            return ("class", info.classes[name])
        binding = info.bindings.get(name)
        if binding is None:
            return None
        if binding[0] == "module":
            return ("module", binding[1])
        _, source_mod, attr = binding
        submodule = f"{source_mod}/{attr}"
        if submodule in self._modules:
            return ("module", submodule)
        target = self._modules.get(source_mod)
        key = (source_mod, attr)
        if target is None or key in seen:
            return None
        return self._resolve_name(target, attr, seen | {key})

    def _resolve_attr(self, symbol, attr: str):
        if symbol is None:
            return None
        kind = symbol[0]
        if kind == "module":
            submodule = f"{symbol[1]}/{attr}"
            if submodule in self._modules:
                return ("module", submodule)
            if symbol[1] not in self._modules:
                return None
            return self._resolve_name(self._modules[symbol[1]], attr)
        if kind == "class":
            cls = symbol[1]
            if attr in cls.classes:
                return ("class", cls.classes[attr])
            method = self._lookup_method(cls, attr)
            if method is not None:
                return ("function", method)
        return None

    def _callable(self, symbol) -> FunctionId | None:
        if symbol is None:
            return None
        if symbol[0] == "function":
            return symbol[1]
        if symbol[0] == "class":
            # Calling a class runs its constructor.
            return self._lookup_method(symbol[1], "__init__")
        return None

    def _lookup_method(self, cls: _ClassInfo, name: str) -> FunctionId | None:
        """Find `name` on `cls` or its statically known bases, in MRO-like order."""
        stack = [cls]
        seen: set[str] = set()
        while stack:
            current = stack.pop()
            if current.qualifier in seen:
                continue
            seen.add(current.qualifier)
            if name in current.methods:
                return FunctionId(qualifier=current.qualifier, name=name)
            bases = []
            module = self._modules[current.module]
            for base in current.node.bases:
                symbol = None
                parts = _dotted_parts(base)
                if parts:
                    symbol = self._resolve_name(module, parts[0])
                    for attr in parts[1:]:
                        symbol = self._resolve_attr(symbol, attr)
                if symbol is not None and symbol[0] == "class":
                    bases.append(symbol[1])
            stack.extend(reversed(bases))
        return None


def _class_info(node: ast.ClassDef, qualifier: str, module: str) -> _ClassInfo:
    cls = _ClassInfo(qualifier=qualifier, module=module, node=node)
    for child in node.body:
        if isinstance(child, _FunctionDef):
            cls.methods.setdefault(child.name, []).append(child)
        elif isinstance(child, ast.ClassDef):
            cls.classes[child.name] = _class_info(child, f"{qualifier}.{child.name}", module)
    return cls


def _walk_classes(classes):
    for cls in classes:
        yield cls
        yield from _walk_classes(cls.classes.values())


def _receiver_name(fn: ast.FunctionDef | ast.AsyncFunctionDef) -> str | None:
    """Name of the self/cls parameter, None for static methods."""
    for dec in fn.decorator_list:
        if isinstance(dec, ast.Name) and dec.id == "staticmethod":
            return None
    params = fn.args.posonlyargs + fn.args.args
    return params[0].arg if params else None


def _iter_calls(body: list[ast.stmt]):
    """Yield Call nodes in source pre-order."""
    stack: list[ast.AST] = list(reversed(body))
    while stack:
        node = stack.pop()
        if isinstance(node, ast.Call):
            yield node
        stack.extend(reversed(list(ast.iter_child_nodes(node))))


def _dotted_parts(node: ast.expr) -> list[str]:
    """Convert `a.b.c` into ["a", "b", "c"]; [] for anything else."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return []
    parts.append(node.id)
    return parts[::-1]
