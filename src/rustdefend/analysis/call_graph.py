"""Per-file and whole-project call graphs with caller check propagation.

A function "exhibits" a check when its own body text contains the markers
for that check. ``caller_has_check`` walks the reverse call edges to find
whether some (transitive) caller already performs the check.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from rustdefend.analysis.syntax import called_names, iter_functions
from rustdefend.constants.analysis import CHECK_MARKERS, MAX_CALLER_DEPTH
from rustdefend.model import ParsedUnit
from rustdefend.types.common import CheckKind


@dataclass(frozen=True)
class FunctionInfo:
    """Outgoing calls and locally exhibited checks of one function."""

    calls: tuple[str, ...]
    checks: frozenset[CheckKind]


@dataclass(frozen=True)
class CallGraph:
    """Read-only function name to ``FunctionInfo`` mapping with a reverse caller index."""

    functions: Mapping[str, FunctionInfo]
    callers: Mapping[str, frozenset[str]] = field(repr=False)

    def __contains__(self, name: object) -> bool:
        return name in self.functions

    def __len__(self) -> int:
        return len(self.functions)

    def callers_of(self, name: str) -> frozenset[str]:
        return self.callers.get(name, frozenset())

    def has_check(self, name: str, check: CheckKind) -> bool:
        info = self.functions.get(name)
        return info is not None and check in info.checks


@dataclass(frozen=True)
class ProjectCallGraph:
    """Whole-project call graph composed by function name across files.

    Same-named functions in different files are merged into one node.
    """

    graph: CallGraph
    files: tuple[str, ...]
    digest: str

    def caller_has_check(self, target: str, check: CheckKind) -> bool:
        return caller_has_check(self.graph, target, check)


def detect_checks(text: str) -> frozenset[CheckKind]:
    """Return the check kinds whose markers appear in ``text``."""
    found: set[CheckKind] = set()
    for kind, (all_of, any_of) in CHECK_MARKERS.items():
        if all(token in text for token in all_of) and (not any_of or any(token in text for token in any_of)):
            found.add(kind)
    return frozenset(found)


def build_call_graph(unit: ParsedUnit) -> CallGraph:
    """Build the call graph of one parsed file.

    Same-named functions (e.g. methods on different impls) merge: calls are
    unioned and checks OR-ed.
    """
    calls: dict[str, dict[str, None]] = {}
    checks: dict[str, set[CheckKind]] = {}
    for function in iter_functions(unit):
        body = function.body
        if body is None:
            continue
        function_calls = calls.setdefault(function.name, {})
        for name in called_names(body):
            function_calls.setdefault(name, None)
        checks.setdefault(function.name, set()).update(detect_checks(function.body_text))

    return _freeze(
        {name: FunctionInfo(calls=tuple(calls[name]), checks=frozenset(checks[name])) for name in calls}
    )


def build_project_call_graph(graphs: Iterable[tuple[str, CallGraph]]) -> ProjectCallGraph:
    """Compose per-file graphs (keyed by file path) into one project graph."""
    calls: dict[str, dict[str, None]] = {}
    checks: dict[str, set[CheckKind]] = {}
    files: list[str] = []
    for path, graph in graphs:
        files.append(path)
        for name, info in graph.functions.items():
            merged_calls = calls.setdefault(name, {})
            for callee in info.calls:
                merged_calls.setdefault(callee, None)
            checks.setdefault(name, set()).update(info.checks)

    merged = _freeze({name: FunctionInfo(calls=tuple(calls[name]), checks=frozenset(checks[name])) for name in calls})
    return ProjectCallGraph(graph=merged, files=tuple(sorted(files)), digest=_graph_digest(merged))


def caller_has_check(
    graph: CallGraph,
    target: str,
    check: CheckKind,
    *,
    max_depth: int = MAX_CALLER_DEPTH,
    visited: set[str] | None = None,
) -> bool:
    """Return whether any transitive caller of ``target`` within ``max_depth`` hops exhibits ``check``.

    ``visited`` is shared across the whole search so cycles, including mutual
    recursion, terminate. Callers are examined in sorted order.
    """
    seen = visited if visited is not None else set()
    seen.add(target)
    return _search_callers(graph, target, check, depth=0, max_depth=max_depth, visited=seen)


def _search_callers(
    graph: CallGraph,
    name: str,
    check: CheckKind,
    *,
    depth: int,
    max_depth: int,
    visited: set[str],
) -> bool:
    if depth >= max_depth:
        return False
    for caller in sorted(graph.callers_of(name)):
        if caller == name or caller in visited:
            continue
        visited.add(caller)
        if graph.has_check(caller, check):
            return True
        if _search_callers(graph, caller, check, depth=depth + 1, max_depth=max_depth, visited=visited):
            return True
    return False


def _freeze(functions: dict[str, FunctionInfo]) -> CallGraph:
    callers: dict[str, set[str]] = {}
    for name, info in functions.items():
        for callee in info.calls:
            callers.setdefault(callee, set()).add(name)
    return CallGraph(
        functions=MappingProxyType(dict(sorted(functions.items()))),
        callers=MappingProxyType({callee: frozenset(names) for callee, names in callers.items()}),
    )


def _graph_digest(graph: CallGraph) -> str:
    payload = {
        name: {"calls": sorted(info.calls), "checks": sorted(info.checks)} for name, info in graph.functions.items()
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()
