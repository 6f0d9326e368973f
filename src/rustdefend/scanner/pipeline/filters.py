"""Post-dispatch finding filters."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from rustdefend.constants.ranking import CONFIDENCE_RANK, SEVERITY_RANK
from rustdefend.model import Finding
from rustdefend.types import Confidence, Severity


@dataclass(frozen=True)
class FindingFilters:
    """Filters applied after dispatch; confidence is always the last stage."""

    ignored_ids: frozenset[str] = frozenset()
    min_severity: Severity | None = None
    min_confidence: Confidence | None = None

    def active(self) -> bool:
        """Whether any filter is enabled."""
        return bool(self.ignored_ids) or self.min_severity is not None or self.min_confidence is not None


def finding_passes_filters(finding: Finding, filters: FindingFilters) -> bool:
    """Return whether a finding survives every configured filter."""
    if finding.detector_id.upper() in filters.ignored_ids:
        return False
    if filters.min_severity is not None and SEVERITY_RANK[finding.severity] < SEVERITY_RANK[filters.min_severity]:
        return False
    return filters.min_confidence is None or CONFIDENCE_RANK[finding.confidence] >= CONFIDENCE_RANK[
        filters.min_confidence
    ]


def filter_findings(findings: Sequence[Finding], filters: FindingFilters) -> list[Finding]:
    """Return findings that pass all configured filters."""
    return [finding for finding in findings if finding_passes_filters(finding, filters)]


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    """Return findings in deterministic output order (file, line, column, detector, message)."""
    return sorted(findings, key=Finding.sort_key)

