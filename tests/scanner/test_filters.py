"""Tests for post-dispatch finding filters and cached finding conversion."""

from __future__ import annotations

from dataclasses import replace

import pytest

from rustdefend.model import Finding
from rustdefend.scanner.pipeline.conversion import deserialize_findings
from rustdefend.scanner.pipeline.filters import FindingFilters, filter_findings, sort_findings


def _finding(**overrides: object) -> Finding:
    base = Finding(
        detector_id="NEAR-002",
        name="self-callback-unchecked",
        severity="high",
        confidence="medium",
        message="Callback 'on_done' lacks #[private]",
        file="/workspace/src/lib.rs",
        line=10,
        column=12,
        snippet="pub fn on_done(&mut self) {",
        recommendation="Mark the callback with #[private]",
        ecosystem="near",
    )
    return replace(base, **overrides)  # type: ignore[arg-type]


def test_default_filters_keep_everything() -> None:
    findings = [_finding(), _finding(severity="low", confidence="low")]

    assert not FindingFilters().active()
    assert filter_findings(findings, FindingFilters()) == findings


@pytest.mark.parametrize(
    ("filters", "expected_ids"),
    [
        (FindingFilters(ignored_ids=frozenset({"NEAR-002"})), ["DEP-001"]),
        (FindingFilters(min_severity="critical"), ["DEP-001"]),
        (FindingFilters(min_confidence="high"), ["DEP-001"]),
        (FindingFilters(min_confidence="medium"), ["NEAR-002", "DEP-001"]),
    ],
)
def test_filters_apply_ids_and_thresholds(filters: FindingFilters, expected_ids: list[str]) -> None:
    findings = [
        _finding(),
        _finding(detector_id="DEP-001", severity="critical", confidence="high", ecosystem=None),
    ]

    assert filters.active()
    assert [finding.detector_id for finding in filter_findings(findings, filters)] == expected_ids


def test_ignored_ids_match_regardless_of_case() -> None:
    filters = FindingFilters(ignored_ids=frozenset({"CUSTOM-001"}))

    assert filter_findings([_finding(detector_id="custom-001")], filters) == []


def test_sort_order_is_file_line_column_detector() -> None:
    findings = [
        _finding(file="/b.rs", line=1),
        _finding(line=10, column=2, detector_id="NEAR-006"),
        _finding(line=10, column=2, detector_id="NEAR-002"),
        _finding(line=3),
    ]

    ordered = sort_findings(findings)

    assert [(finding.file, finding.line, finding.detector_id) for finding in ordered] == [
        ("/b.rs", 1, "NEAR-002"),
        ("/workspace/src/lib.rs", 3, "NEAR-002"),
        ("/workspace/src/lib.rs", 10, "NEAR-002"),
        ("/workspace/src/lib.rs", 10, "NEAR-006"),
    ]


def test_deserialize_findings_coerces_bad_fields() -> None:
    payload = [
        _finding().to_dict(),
        "garbage",
        {"detector_id": "SOL-001", "severity": "urgent", "line": True, "ecosystem": "evm"},
    ]

    findings = deserialize_findings(payload)

    assert findings[0] == _finding()
    assert len(findings) == 2
    assert findings[1].severity == "low"
    assert findings[1].line == 1
    assert findings[1].ecosystem is None
    assert deserialize_findings({"not": "a list"}) == []
