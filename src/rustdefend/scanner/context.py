"""Per-file, per-ecosystem view handed to detectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from tree_sitter import Tree

from rustdefend.analysis.call_graph import CallGraph, ProjectCallGraph, caller_has_check
from rustdefend.analysis.syntax import FunctionItem
from rustdefend.constants.suppression import SUPPRESSION_MARKER, SUPPRESSION_PATTERN
from rustdefend.model import ParsedUnit
from rustdefend.types.common import CheckKind, Ecosystem


def line_suppresses(text: str, detector_id: str) -> bool:
    """Return whether a single line carries a marker that suppresses ``detector_id``.

    ``rustdefend-ignore`` alone is blanket; ``rustdefend-ignore[ID, ...]`` only
    suppresses the listed ids.
    """
    if SUPPRESSION_MARKER not in text:
        return False
    wanted = detector_id.upper()
    for match in SUPPRESSION_PATTERN.finditer(text):
        ids = match.group("ids")
        if ids is None:
            return True
        if wanted in {item.strip().upper() for item in ids.split(",")}:
            return True
    return False


@dataclass(frozen=True)
class ScanContext:
    """Read-only inputs for running detectors over one file in one ecosystem."""

    unit: ParsedUnit
    ecosystem: Ecosystem
    call_graph: CallGraph
    functions: tuple[FunctionItem, ...] = field(repr=False)
    project_graph: ProjectCallGraph | None = None

    @property
    def path(self) -> Path:
        return self.unit.path

    @property
    def file(self) -> str:
        return self.unit.path.as_posix()

    @property
    def source(self) -> str:
        return self.unit.source

    @property
    def tree(self) -> Tree:
        return self.unit.tree

    def line_text(self, line: int) -> str:
        return self.unit.line_text(line)

    def is_suppressed(self, line: int, detector_id: str) -> bool:
        """Return whether line ``line`` or the line above it suppresses ``detector_id``."""
        return line_suppresses(self.line_text(line), detector_id) or (
            line > 1 and line_suppresses(self.line_text(line - 1), detector_id)
        )

    def caller_has_check(self, function: str, check: CheckKind) -> bool:
        """Return whether some caller performs ``check``, per file first, then project-wide."""
        if caller_has_check(self.call_graph, function, check):
            return True
        return self.project_graph is not None and self.project_graph.caller_has_check(function, check)
