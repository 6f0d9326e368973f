"""Immutable value types shared by parsers, detectors, and the scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rustdefend.constants.ranking import SEVERITY_RANK
from rustdefend.types.common import Confidence, Ecosystem, JsonObject, Severity

if TYPE_CHECKING:
    from tree_sitter import Tree


@dataclass(frozen=True)
class ParsedUnit:
    """One Rust source file: its text, split lines, and syntax tree.

    ``source``, ``lines`` and ``tree`` always derive from the same read of the file.
    """

    path: Path
    source: str
    lines: tuple[str, ...]
    tree: Tree = field(repr=False, compare=False)

    def line_text(self, line: int) -> str:
        """Return the 1-based source line, or an empty string when out of range."""
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1]
        return ""


@dataclass(frozen=True)
class Finding:
    """Security finding emitted by a detector."""

    detector_id: str
    name: str
    severity: Severity
    confidence: Confidence
    message: str
    file: str
    line: int
    column: int
    snippet: str
    recommendation: str
    ecosystem: Ecosystem | None = None

    def sort_key(self) -> tuple[str, int, int, str, str]:
        """Return the deterministic ordering key used for final output."""
        return (self.file, self.line, self.column, self.detector_id, self.message)

    def to_dict(self) -> JsonObject:
        """Convert finding to a JSON-serializable dictionary."""
        return {
            "detector_id": self.detector_id,
            "name": self.name,
            "severity": self.severity,
            "confidence": self.confidence,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "snippet": self.snippet,
            "recommendation": self.recommendation,
            "ecosystem": self.ecosystem,
        }


@dataclass(frozen=True)
class DetectorInfo:
    """Listing metadata for one registered detector."""

    detector_id: str
    name: str
    description: str
    severity: Severity
    confidence: Confidence
    ecosystem: Ecosystem | None


@dataclass(frozen=True)
class ScanResult:
    """Aggregate result of one workspace scan."""

    findings: tuple[Finding, ...]
    scanned_files: int
    scanned_manifests: int
    ecosystems: tuple[Ecosystem, ...]
    cache_hits: int = 0
    cache_misses: int = 0
    baseline_suppressed: int = 0
    duration_seconds: float = 0.0
    warnings: tuple[str, ...] = ()

    @property
    def severity_counts(self) -> dict[Severity, int]:
        """Return finding counts per severity, highest severity first."""
        counts: dict[Severity, int] = {
            severity: 0 for severity in sorted(SEVERITY_RANK, key=SEVERITY_RANK.__getitem__, reverse=True)
        }
        for finding in self.findings:
            counts[finding.severity] += 1
        return counts
