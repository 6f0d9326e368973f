"""Workspace scanning: discovery, dispatch, caching, and baselines."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["diff_against_baseline", "load_baseline", "save_baseline", "scan_workspace"]

_LAZY_EXPORTS: dict[str, str] = {
    "scan_workspace": ".orchestrator",
    "diff_against_baseline": ".baseline",
    "load_baseline": ".baseline",
    "save_baseline": ".baseline",
}


def __getattr__(name: str) -> Any:
    """Resolve public scanner APIs on first access; detectors import ``scanner.context`` eagerly."""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(module_name, __name__), name)
