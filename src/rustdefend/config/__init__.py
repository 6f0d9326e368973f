"""Project configuration loading and normalization for RustDefend scans."""

from __future__ import annotations

from rustdefend.config.fingerprint import config_fingerprint
from rustdefend.config.loader import load_config
from rustdefend.config.model import RustDefendConfig

__all__ = [
    "RustDefendConfig",
    "config_fingerprint",
    "load_config",
]
