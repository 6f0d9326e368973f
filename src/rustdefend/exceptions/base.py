"""Root exception type."""

from __future__ import annotations


class RustDefendError(Exception):
    """Base class for all errors raised by RustDefend."""
