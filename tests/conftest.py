"""Shared test fixtures for ConsensusWarn."""

from __future__ import annotations

from pathlib import Path

import pytest

from consensuswarn.model.models import FunctionId, FunctionNode, SourceSpan

# Line numbers below are relied on by STATE_PATCH and the tests:
#   RootFunc1 4-5, StateFunc1 15-16, NonStateFunc1 26-27,
#   T.RootMethod1 37-38, T.StateMethod1 40-41, T.NonStateMethod1 49-50
STATE_SOURCE = '''"""State-changing test fixtures."""


def RootFunc1():
    StateFunc1()


# Space to separate hunks.
#
#
#
#


def StateFunc1():
    print("state change!")


# Space to separate hunks.
#
#
#
#


def NonStateFunc1():
    pass


# More space.
#
#
#


class T:
    def RootMethod1(self):
        self.StateMethod1()

    def StateMethod1(self):
        pass

    # More space.
    #
    #
    #
    #

    def NonStateMethod1(self):
        pass
'''

STATE_PATCH = """\
diff --git a/testdata/state.py b/testdata/state.py
index 1111111..2222222 100644
--- a/testdata/state.py
+++ b/testdata/state.py
@@ -16,1 +16,1 @@ def StateFunc1():
-    print("state change!")
+    print("state change!2")
@@ -27,1 +27,1 @@ def NonStateFunc1():
-    pass
+    return None
@@ -41,1 +41,1 @@ class T:
-        pass
+        return None
"""

STATE_ROOTS = ["testdata/state.RootFunc1", "testdata/state.T.RootMethod1"]

PROPERTY_SOURCE = """\
def helper():
    return 1

class T:
    @property
    def value(self):
        return helper()

    @value.setter
    def value(self, v):
        self._v = clamp(v)

def clamp(v):
    return v
"""


@pytest.fixture
def state_project(tmp_path: Path) -> Path:
    """A project with a `testdata/state` module of root and state functions."""
    pkg = tmp_path / "testdata"
    pkg.mkdir()
    (pkg / "__init__.py").write_text('"""Test data package."""\n')
    (pkg / "state.py").write_text(STATE_SOURCE)
    return tmp_path


@pytest.fixture
def app_project(tmp_path: Path) -> Path:
    """A small package exercising the import and method-call forms the frontend resolves."""
    app = tmp_path / "app"
    app.mkdir()
    (app / "__init__.py").write_text('"""App package."""\n')

    (app / "ledger.py").write_text('''"""Ledger."""

import app.util
from app import util as u
from app.util import checksum as cs
from .store import Store


class Base:
    def commit(self):
        return cs(self)


class Ledger(Base):
    def __init__(self):
        self.store = Store()

    def apply(self, tx):
        self.validate(tx)
        app.util.log(tx)
        u.log(tx)
        self.commit()
        self.store.put(tx)
        Ledger.audit(tx)
        return len(tx)

    def validate(self, tx):
        return helper(tx)

    @staticmethod
    def audit(tx):
        return tx


def helper(tx):
    return tx


def unrelated():
    return Store().put(1)
''')

    (app / "util.py").write_text('''"""Utilities."""

import json


def log(value):
    return json.dumps(value)


def checksum(value):
    return hash(value)
''')

    (app / "store.py").write_text('''"""Storage."""


class Store:
    def __init__(self):
        self.items = []

    def put(self, item):
        self.items.append(item)
''')
    return tmp_path


def make_node(
    qualifier: str,
    name: str,
    start: int,
    end: int,
    calls: list[tuple[str, str]] | None = None,
    file: str = "/src/pkg/mod.py",
) -> FunctionNode:
    """Build a synthetic FunctionNode for graph tests."""
    return FunctionNode(
        id=FunctionId(qualifier=qualifier, name=name),
        span=SourceSpan(file=file, start_line=start, end_line=end),
        decl_line=start,
        calls=[FunctionId(qualifier=q, name=n) for q, n in (calls or [])],
    )


def fid(spec: str) -> FunctionId:
    """FunctionId from `qualifier.name`."""
    qualifier, name = spec.rsplit(".", 1)
    return FunctionId(qualifier=qualifier, name=name)
