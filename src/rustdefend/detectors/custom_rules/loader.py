"""Loader for user-defined rule files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from rustdefend.constants.config import RULE_FILE_ALLOWED_KEYS
from rustdefend.detectors.custom_rules.schema import CustomRule, validate_custom_rule
from rustdefend.exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedRules:
    """Valid rules from one file plus warnings for the rules that were skipped."""

    rules: tuple[CustomRule, ...]
    warnings: tuple[str, ...] = ()


def load_custom_rules(path: Path) -> LoadedRules:
    """Load a YAML rule file with a top-level ``rules`` list.

    File-level problems (unreadable, invalid YAML, wrong shape) raise ConfigError.
    Individually invalid or duplicate rules are skipped with a warning.
    """
    data = _load_yaml_file(path)
    unknown = sorted(set(data) - RULE_FILE_ALLOWED_KEYS)
    if unknown:
        raise ConfigError(f"Rule file {path} has unknown top-level keys: {unknown}")
    raw_rules = data.get("rules")
    if not isinstance(raw_rules, list):
        raise ConfigError(f"Rule file {path} must contain a 'rules' list")

    rules: list[CustomRule] = []
    warnings: list[str] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_rules, start=1):
        try:
            rule = validate_custom_rule(raw, f"{path} (rule #{index})")
        except ConfigError as exc:
            warning = f"Skipping invalid custom rule: {exc}"
            warnings.append(warning)
            logger.warning(warning)
            continue
        if rule.id in seen:
            warning = f"Skipping duplicate custom rule id '{rule.id}' in {path}"
            warnings.append(warning)
            logger.warning(warning)
            continue
        seen.add(rule.id)
        rules.append(rule)
        logger.debug("Loaded custom rule: %s (%s)", rule.id, rule.name)

    return LoadedRules(rules=tuple(rules), warnings=tuple(warnings))


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load and parse a single YAML file with safe_load only."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read rule file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Rule file {path} must contain a mapping")

    return raw
