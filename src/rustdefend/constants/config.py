"""Configuration defaults and filenames."""

from __future__ import annotations

CONFIG_FILENAME: str = ".rustdefend.yaml"

CONFIG_ALLOWED_KEYS: frozenset[str] = frozenset({"ignore", "ignore_files", "min_severity", "min_confidence"})
RULE_FILE_ALLOWED_KEYS: frozenset[str] = frozenset({"rules"})
