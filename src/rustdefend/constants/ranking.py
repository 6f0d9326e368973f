"""Ordering tables for severity and confidence levels."""

from __future__ import annotations

from rustdefend.types.common import Confidence, Severity

SEVERITY_RANK: dict[Severity, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}

CONFIDENCE_RANK: dict[Confidence, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
}

SEVERITY_ALIASES: dict[str, Severity] = {
    "critical": "critical",
    "crit": "critical",
    "high": "high",
    "h": "high",
    "medium": "medium",
    "med": "medium",
    "m": "medium",
    "low": "low",
    "l": "low",
}

CONFIDENCE_ALIASES: dict[str, Confidence] = {
    "high": "high",
    "h": "high",
    "medium": "medium",
    "med": "medium",
    "m": "medium",
    "low": "low",
    "l": "low",
}
