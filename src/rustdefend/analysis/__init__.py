"""Syntax helpers and interprocedural check propagation."""

from .call_graph import (
    CallGraph,
    FunctionInfo,
    ProjectCallGraph,
    build_call_graph,
    build_project_call_graph,
    caller_has_check,
    detect_checks,
)
from .syntax import FunctionItem, Parameter, iter_functions

__all__ = [
    "CallGraph",
    "FunctionInfo",
    "FunctionItem",
    "Parameter",
    "ProjectCallGraph",
    "build_call_graph",
    "build_project_call_graph",
    "caller_has_check",
    "detect_checks",
    "iter_functions",
]
