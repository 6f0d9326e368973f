"""Config and filter resolution helpers for the scanner pipeline."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from pathlib import Path

from rustdefend.config import RustDefendConfig, load_config
from rustdefend.config.loader import parse_confidence, parse_severity
from rustdefend.constants.ecosystems import ALL_ECOSYSTEMS, ECOSYSTEM_ALIASES
from rustdefend.detectors.custom_rules import CustomRule, load_custom_rules
from rustdefend.exceptions import ConfigError
from rustdefend.types.common import Confidence, Ecosystem, Severity

logger = logging.getLogger(__name__)


def _warn(warnings: list[str], warning: str) -> None:
    warnings.append(warning)
    logger.warning(warning)


def resolve_ecosystem_name(name: str) -> Ecosystem | None:
    """Resolve an ecosystem name or loose alias (``sol``, ``cw``, ``ink!``...); unknown names give ``None``."""
    return ECOSYSTEM_ALIASES.get(name.strip().lower())


def resolve_ecosystem_filter(
    names: Iterable[str] | None,
    *,
    warnings: list[str],
) -> tuple[Ecosystem, ...] | None:
    """Resolve an explicit ecosystem override.

    ``None`` means no override. Unknown names are dropped with a warning; when
    nothing valid remains the override is rejected.
    """
    if names is None:
        return None

    resolved: set[Ecosystem] = set()
    requested = [name for name in names if name.strip()]
    for name in requested:
        ecosystem = resolve_ecosystem_name(name)
        if ecosystem is None:
            _warn(warnings, f"Unknown ecosystem '{name}' ignored")
            continue
        resolved.add(ecosystem)

    if not resolved:
        valid = ", ".join(ALL_ECOSYSTEMS)
        raise ConfigError(f"No valid ecosystem in {requested!r}. Valid ecosystems: {valid}")
    return tuple(ecosystem for ecosystem in ALL_ECOSYSTEMS if ecosystem in resolved)


def resolve_severities(values: Iterable[str] | None) -> frozenset[Severity] | None:
    """Resolve a severity selection; invalid names raise ConfigError."""
    if values is None:
        return None
    resolved: set[Severity] = set()
    for value in values:
        severity = parse_severity(value, "severities")
        if severity is not None:
            resolved.add(severity)
    return frozenset(resolved)


def resolve_min_severity(value: str | None, config: RustDefendConfig) -> Severity | None:
    """Return the explicit minimum severity when given, else the configured one."""
    if value is not None:
        return parse_severity(value, "min_severity")
    return config.min_severity


def resolve_min_confidence(value: str | None, config: RustDefendConfig) -> Confidence | None:
    """Return the explicit minimum confidence when given, else the configured one."""
    if value is not None:
        return parse_confidence(value, "min_confidence")
    return config.min_confidence


def load_config_or_default(root: Path, config_path: Path | None, *, warnings: list[str]) -> RustDefendConfig:
    """Load project config, falling back to defaults with a warning when it is invalid."""
    try:
        return load_config(root, config_path)
    except ConfigError as exc:
        _warn(warnings, f"Using default config: {exc}")
        return RustDefendConfig()


def load_rules_or_default(
    rules_path: Path | None,
    *,
    reserved_ids: Collection[str],
    warnings: list[str],
) -> tuple[CustomRule, ...]:
    """Load custom rules from ``rules_path``.

    A file that cannot be loaded yields no rules and a warning. Rules reusing a
    built-in detector id are skipped.
    """
    if rules_path is None:
        return ()

    try:
        loaded = load_custom_rules(rules_path.resolve())
    except ConfigError as exc:
        _warn(warnings, f"Ignoring custom rules: {exc}")
        return ()

    warnings.extend(loaded.warnings)
    reserved = {detector_id.upper() for detector_id in reserved_ids}
    rules: list[CustomRule] = []
    for rule in loaded.rules:
        if rule.id in reserved:
            _warn(warnings, f"Skipping custom rule '{rule.id}': id is used by a built-in detector")
            continue
        rules.append(rule)

    logger.info("Loaded %d custom rule(s) from %s", len(rules), rules_path)
    return tuple(rules)
