"""Shared exception hierarchy for RustDefend."""

from __future__ import annotations

from .base import RustDefendError
from .config import ConfigError
from .parsing import ManifestParseError, SourceParseError
from .scanner import NoSourceFilesError, ScanTargetError

__all__ = [
    "ConfigError",
    "ManifestParseError",
    "NoSourceFilesError",
    "RustDefendError",
    "ScanTargetError",
    "SourceParseError",
]
