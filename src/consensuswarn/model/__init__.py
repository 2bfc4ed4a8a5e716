"""Program model: functions, body spans and statically resolved calls."""

from consensuswarn.model.models import (
    FunctionId,
    FunctionNode,
    ModelProvider,
    ProgramModel,
    SourceSpan,
    StackFrame,
)
from consensuswarn.model.python_frontend import PythonFrontend

__all__ = [
    "FunctionId",
    "FunctionNode",
    "ModelProvider",
    "ProgramModel",
    "PythonFrontend",
    "SourceSpan",
    "StackFrame",
]
