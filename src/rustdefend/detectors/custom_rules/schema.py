"""Schema validation for user-defined rules.

Each rule is validated independently; violations raise ConfigError so the
loader can skip that rule and keep the rest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rustdefend.constants.ecosystems import ECOSYSTEM_ALIASES
from rustdefend.constants.ranking import CONFIDENCE_ALIASES, SEVERITY_ALIASES
from rustdefend.detectors.base import DETECTOR_ID_PATTERN
from rustdefend.exceptions import ConfigError
from rustdefend.types.common import Confidence, Ecosystem, Severity

REQUIRED_KEYS: frozenset[str] = frozenset(
    {
        "id",
        "name",
        "severity",
        "confidence",
        "pattern",
        "message",
        "recommendation",
    }
)

ALLOWED_KEYS: frozenset[str] = REQUIRED_KEYS | {"ecosystem", "chain", "exclude_tests"}


@dataclass(frozen=True)
class CustomRule:
    """A validated user rule: report functions whose source contains ``pattern``."""

    id: str
    name: str
    severity: Severity
    confidence: Confidence
    pattern: str
    message: str
    recommendation: str
    ecosystem: Ecosystem | None = None
    exclude_tests: bool = True


def validate_custom_rule(data: Any, source: str) -> CustomRule:
    """Validate one raw rule mapping and return the normalized rule."""
    if not isinstance(data, dict):
        raise ConfigError(f"Rule in {source} must be a mapping, got {type(data).__name__}")

    unknown = set(data) - ALLOWED_KEYS
    if unknown:
        raise ConfigError(f"Rule in {source} has unknown keys: {sorted(unknown)}")

    for key in sorted(REQUIRED_KEYS):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"Rule in {source}: '{key}' must be a non-empty string")

    rule_id = data["id"].strip().upper()
    if not DETECTOR_ID_PATTERN.match(rule_id):
        raise ConfigError(f"Rule in {source}: 'id' must look like 'CUSTOM-001' (got {data['id']!r})")

    severity = SEVERITY_ALIASES.get(data["severity"].strip().lower())
    if severity is None:
        raise ConfigError(f"Rule {rule_id} in {source}: unknown severity {data['severity']!r}")
    confidence = CONFIDENCE_ALIASES.get(data["confidence"].strip().lower())
    if confidence is None:
        raise ConfigError(f"Rule {rule_id} in {source}: unknown confidence {data['confidence']!r}")

    exclude_tests = data.get("exclude_tests", True)
    if not isinstance(exclude_tests, bool):
        raise ConfigError(f"Rule {rule_id} in {source}: 'exclude_tests' must be a boolean")

    return CustomRule(
        id=rule_id,
        name=data["name"].strip(),
        severity=severity,
        confidence=confidence,
        pattern=data["pattern"],
        message=data["message"].strip(),
        recommendation=data["recommendation"].strip(),
        ecosystem=_validate_ecosystem(data, rule_id, source),
        exclude_tests=exclude_tests,
    )


def _validate_ecosystem(data: dict[str, Any], rule_id: str, source: str) -> Ecosystem | None:
    raw = data.get("ecosystem", data.get("chain"))
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ConfigError(f"Rule {rule_id} in {source}: 'ecosystem' must be a string")
    ecosystem = ECOSYSTEM_ALIASES.get(raw.strip().lower())
    if ecosystem is None:
        raise ConfigError(f"Rule {rule_id} in {source}: unknown ecosystem {raw!r}")
    return ecosystem
