"""Parsing-related exceptions."""

from __future__ import annotations

from rustdefend.exceptions.base import RustDefendError


class SourceParseError(RustDefendError, ValueError):
    """Raised when a Rust source file cannot be read or parsed."""


class ManifestParseError(RustDefendError, ValueError):
    """Raised when a Cargo.toml manifest cannot be read or parsed."""
