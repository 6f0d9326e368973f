"""Baseline fingerprints: accept known findings and report only new ones.

A fingerprint omits line and column so that findings survive unrelated edits
that shift code up or down.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from rustdefend.constants.baseline import (
    BASELINE_TEMP_PREFIX,
    BASELINE_TEMP_SUFFIX,
    BASELINE_VERSION,
    SNIPPET_PREFIX_LENGTH,
)
from rustdefend.io import load_versioned_json, write_json_atomic
from rustdefend.model import Finding
from rustdefend.types import BaselineFingerprintPayload, BaselinePayload

logger = logging.getLogger(__name__)

_CONTEXT_NAME_PATTERN: re.Pattern[str] = re.compile(r"'([^']*)'")


@dataclass(frozen=True)
class Fingerprint:
    """Line-independent identity of a finding."""

    detector_id: str
    relative_file: str
    context_name: str
    snippet_prefix: str

    @classmethod
    def from_finding(cls, finding: Finding, scan_root: Path) -> Fingerprint:
        return cls(
            detector_id=finding.detector_id,
            relative_file=relative_finding_path(finding.file, scan_root),
            context_name=extract_context_name(finding.message),
            snippet_prefix=finding.snippet[:SNIPPET_PREFIX_LENGTH].lower(),
        )

    def to_dict(self) -> BaselineFingerprintPayload:
        return {
            "detector_id": self.detector_id,
            "relative_file": self.relative_file,
            "context_name": self.context_name,
            "snippet_prefix": self.snippet_prefix,
        }


@dataclass(frozen=True)
class BaselineDiff:
    """Partition of findings into new ones and ones already in the baseline."""

    new_findings: tuple[Finding, ...]
    suppressed_findings: tuple[Finding, ...]

    @property
    def suppressed_count(self) -> int:
        return len(self.suppressed_findings)


def extract_context_name(message: str) -> str:
    """Return the first single-quoted token of a message, or ``""``."""
    match = _CONTEXT_NAME_PATTERN.search(message)
    return match.group(1) if match else ""


def relative_finding_path(file: str, scan_root: Path) -> str:
    """Return ``file`` as a POSIX path relative to the scan root when it lies beneath it."""
    root = scan_root.resolve()
    if root.is_file():
        root = root.parent
    try:
        return PurePosixPath(file).relative_to(PurePosixPath(root.as_posix())).as_posix()
    except ValueError:
        return PurePosixPath(file).as_posix()


def fingerprint_finding(finding: Finding, scan_root: Path) -> Fingerprint:
    return Fingerprint.from_finding(finding, scan_root)


def diff_against_baseline(
    findings: Sequence[Finding],
    baseline: Iterable[Fingerprint],
    scan_root: Path,
) -> BaselineDiff:
    """Split ``findings`` into new and baseline-suppressed, preserving order."""
    known = frozenset(baseline)
    new_findings: list[Finding] = []
    suppressed: list[Finding] = []
    for finding in findings:
        if fingerprint_finding(finding, scan_root) in known:
            suppressed.append(finding)
        else:
            new_findings.append(finding)
    return BaselineDiff(new_findings=tuple(new_findings), suppressed_findings=tuple(suppressed))


def build_baseline_payload(findings: Iterable[Finding], scan_root: Path) -> BaselinePayload:
    """Return the persisted form of ``findings``' fingerprints, deduplicated and sorted."""
    fingerprints = sorted(
        {fingerprint_finding(finding, scan_root) for finding in findings},
        key=lambda fp: (fp.relative_file, fp.detector_id, fp.context_name, fp.snippet_prefix),
    )
    return {
        "version": BASELINE_VERSION,
        "fingerprints": [fingerprint.to_dict() for fingerprint in fingerprints],
    }


def save_baseline(findings: Iterable[Finding], scan_root: Path, path: Path) -> int:
    """Write the baseline for ``findings`` atomically; return the number of fingerprints."""
    payload = build_baseline_payload(findings, scan_root)
    write_json_atomic(
        path=path,
        payload=payload,
        temp_prefix=BASELINE_TEMP_PREFIX,
        temp_suffix=BASELINE_TEMP_SUFFIX,
    )
    logger.info("Saved baseline with %d fingerprint(s) to %s", len(payload["fingerprints"]), path)
    return len(payload["fingerprints"])


def load_baseline(path: Path) -> frozenset[Fingerprint]:
    """Load baseline fingerprints; a missing, unreadable or malformed file yields an empty baseline."""
    if not path.is_file():
        logger.warning("Baseline file not found: %s", path)
        return frozenset()

    payload = load_versioned_json(path, version=BASELINE_VERSION, label="baseline")
    if payload is None:
        return frozenset()

    raw_fingerprints = payload.get("fingerprints")
    if not isinstance(raw_fingerprints, list):
        logger.warning("Ignoring baseline file %s without a fingerprints list", path)
        return frozenset()

    fingerprints: set[Fingerprint] = set()
    for raw in raw_fingerprints:
        fingerprint = _parse_fingerprint(raw)
        if fingerprint is not None:
            fingerprints.add(fingerprint)
    return frozenset(fingerprints)


def _parse_fingerprint(raw: object) -> Fingerprint | None:
    if not isinstance(raw, dict):
        return None
    detector_id = raw.get("detector_id")
    relative_file = raw.get("relative_file")
    context_name = raw.get("context_name")
    snippet_prefix = raw.get("snippet_prefix")
    if not (
        isinstance(detector_id, str)
        and isinstance(relative_file, str)
        and isinstance(context_name, str)
        and isinstance(snippet_prefix, str)
    ):
        return None
    return Fingerprint(
        detector_id=detector_id,
        relative_file=relative_file,
        context_name=context_name,
        snippet_prefix=snippet_prefix,
    )
