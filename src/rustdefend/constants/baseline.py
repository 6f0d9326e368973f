"""Constants used by baseline fingerprinting and persistence."""

from __future__ import annotations

BASELINE_VERSION: int = 1
BASELINE_TEMP_PREFIX: str = ".baseline-"
BASELINE_TEMP_SUFFIX: str = ".tmp"
SNIPPET_PREFIX_LENGTH: int = 60
