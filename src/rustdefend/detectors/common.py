"""Shared helpers for detector implementations."""

from __future__ import annotations

from collections.abc import Iterable

from tree_sitter import Node

from rustdefend.analysis.syntax import FunctionItem, iter_descendants, node_text, snippet_at_line
from rustdefend.detectors.base import BaseDetector
from rustdefend.model import Finding
from rustdefend.scanner.context import ScanContext

_ASSIGNMENT_TYPES: frozenset[str] = frozenset({"assignment_expression", "compound_assignment_expr"})


def contains_any(text: str, markers: Iterable[str]) -> bool:
    return any(marker in text for marker in markers)


def is_comment_line(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(("//", "*", "/*"))


def self_field_writes(node: Node) -> tuple[str, ...]:
    """Return names of ``self`` fields assigned (``=`` or ``op=``) inside ``node``, in first-seen order."""
    seen: dict[str, None] = {}
    for descendant in iter_descendants(node, skip_types=frozenset({"function_item"})):
        if descendant.type not in _ASSIGNMENT_TYPES:
            continue
        left = descendant.child_by_field_name("left")
        if left is None:
            continue
        target = node_text(left).replace(" ", "")
        if not target.startswith("self."):
            continue
        field = target[len("self.") :]
        for separator in (".", "[", "("):
            field = field.split(separator, 1)[0]
        if field:
            seen.setdefault(field, None)
    return tuple(seen)


def function_finding(
    detector: BaseDetector,
    ctx: ScanContext,
    function: FunctionItem,
    *,
    message: str,
    recommendation: str,
    line: int | None = None,
) -> Finding:
    """Build a finding anchored at a function name (or at ``line`` inside it)."""
    anchor_line = line if line is not None else function.line
    return detector.make_finding(
        file=ctx.file,
        line=anchor_line,
        column=function.column if line is None else 1,
        message=message,
        snippet=snippet_at_line(ctx.unit, anchor_line),
        recommendation=recommendation,
        ecosystem=detector.ecosystem or ctx.ecosystem,
    )
