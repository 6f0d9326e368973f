"""Constants used by the incremental scan cache."""

from __future__ import annotations

CACHE_VERSION: int = 1
CACHE_FILENAME: str = ".rustdefend-cache.json"
CACHE_TEMP_PREFIX: str = ".cache-"
CACHE_TEMP_SUFFIX: str = ".tmp"
