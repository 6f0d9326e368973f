"""Finding conversion helpers for the scanner pipeline."""

from __future__ import annotations

import logging
from typing import cast

from rustdefend.constants.ecosystems import ALL_ECOSYSTEMS
from rustdefend.constants.ranking import CONFIDENCE_RANK, SEVERITY_RANK
from rustdefend.model import Finding
from rustdefend.types import Confidence, Ecosystem, Severity

logger = logging.getLogger(__name__)


def deserialize_findings(payload: object) -> list[Finding]:
    """Deserialize cached finding payload dictionaries into Finding models."""
    if not isinstance(payload, list):
        logger.debug("Cache entry findings is not a list, skipping")
        return []

    findings: list[Finding] = []
    for item in payload:
        if not isinstance(item, dict):
            logger.debug("Skipping malformed cache finding entry: %s", type(item).__name__)
            continue

        findings.append(
            Finding(
                detector_id=str(item.get("detector_id", "")),
                name=str(item.get("name", "")),
                severity=as_severity(item.get("severity")),
                confidence=as_confidence(item.get("confidence")),
                message=str(item.get("message", "")),
                file=str(item.get("file", "")),
                line=_as_int(item.get("line"), default=1),
                column=_as_int(item.get("column"), default=1),
                snippet=str(item.get("snippet", "")),
                recommendation=str(item.get("recommendation", "")),
                ecosystem=as_ecosystem(item.get("ecosystem")),
            )
        )

    return findings


def as_severity(value: object) -> Severity:
    """Coerce an arbitrary value into a valid severity."""
    if isinstance(value, str) and value in SEVERITY_RANK:
        return cast(Severity, value)
    return "low"


def as_confidence(value: object) -> Confidence:
    """Coerce an arbitrary value into a valid confidence."""
    if isinstance(value, str) and value in CONFIDENCE_RANK:
        return cast(Confidence, value)
    return "low"


def as_ecosystem(value: object) -> Ecosystem | None:
    if isinstance(value, str) and value in ALL_ECOSYSTEMS:
        return cast(Ecosystem, value)
    return None


def _as_int(value: object, *, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value
