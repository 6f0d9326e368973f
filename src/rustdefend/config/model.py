"""Config data model for RustDefend scans."""

from __future__ import annotations

from dataclasses import dataclass

from rustdefend.types.common import Confidence, Severity


@dataclass(frozen=True)
class RustDefendConfig:
    """Resolved project config.

    ``ignore`` holds upper-cased detector ids dropped from results;
    ``ignore_files`` holds path globs excluded from discovery.
    """

    ignore: tuple[str, ...] = ()
    ignore_files: tuple[str, ...] = ()
    min_severity: Severity | None = None
    min_confidence: Confidence | None = None
