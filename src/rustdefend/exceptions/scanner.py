"""Scan-target exceptions."""

from __future__ import annotations

from rustdefend.exceptions.base import RustDefendError


class ScanTargetError(RustDefendError, ValueError):
    """Raised when the scan root does not exist."""


class NoSourceFilesError(ScanTargetError):
    """Raised when the scan root contains no eligible Rust source files."""
