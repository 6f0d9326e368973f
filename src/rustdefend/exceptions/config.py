"""Configuration-related exceptions."""

from __future__ import annotations

from rustdefend.exceptions.base import RustDefendError


class ConfigError(RustDefendError, ValueError):
    """Raised when scanner configuration, rule files, or filter input is invalid."""
