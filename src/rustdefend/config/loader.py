"""Config loading and normalization for RustDefend scans."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from rustdefend.config.model import RustDefendConfig
from rustdefend.constants.config import CONFIG_ALLOWED_KEYS, CONFIG_FILENAME
from rustdefend.constants.ranking import CONFIDENCE_ALIASES, SEVERITY_ALIASES
from rustdefend.exceptions import ConfigError
from rustdefend.types.common import Confidence, Severity

logger = logging.getLogger(__name__)


def load_config(root: Path, config_path: Path | None = None) -> RustDefendConfig:
    """Load and validate project config from ``.rustdefend.yaml`` or an explicit path.

    A missing default config yields defaults; a missing explicit config or any
    invalid content raises ConfigError.
    """
    base = root if root.is_dir() else root.parent
    path = config_path.resolve() if config_path else (base / CONFIG_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return RustDefendConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Unable to read config file at {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")

    unknown = sorted(set(raw) - CONFIG_ALLOWED_KEYS)
    if unknown:
        raise ConfigError(f"Config file at {path} has unknown keys: {unknown}")

    config = RustDefendConfig(
        ignore=tuple(
            detector_id.strip().upper()
            for detector_id in _ensure_string_list(raw.get("ignore", []), "ignore")
            if detector_id.strip()
        ),
        ignore_files=tuple(
            pattern.strip() for pattern in _ensure_string_list(raw.get("ignore_files", []), "ignore_files") if pattern
        ),
        min_severity=parse_severity(raw.get("min_severity"), "min_severity"),
        min_confidence=parse_confidence(raw.get("min_confidence"), "min_confidence"),
    )
    logger.debug("Loaded config from %s: %s", path, config)
    return config


def parse_severity(value: Any, field: str) -> Severity | None:
    """Resolve a severity name or alias (``crit``, ``h``, ``med``...); ``None`` passes through."""
    if value is None:
        return None
    if not isinstance(value, str) or value.strip().lower() not in SEVERITY_ALIASES:
        raise ConfigError(f"{field} must be one of critical, high, medium, low (got {value!r})")
    return SEVERITY_ALIASES[value.strip().lower()]


def parse_confidence(value: Any, field: str) -> Confidence | None:
    """Resolve a confidence name or alias; ``None`` passes through."""
    if value is None:
        return None
    if not isinstance(value, str) or value.strip().lower() not in CONFIDENCE_ALIASES:
        raise ConfigError(f"{field} must be one of high, medium, low (got {value!r})")
    return CONFIDENCE_ALIASES[value.strip().lower()]


def _ensure_string_list(value: Any, field: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{field} must be a list of strings")
    return value
