"""Inline suppression marker grammar."""

from __future__ import annotations

import re

SUPPRESSION_MARKER: str = "rustdefend-ignore"
SUPPRESSION_PATTERN: re.Pattern[str] = re.compile(r"rustdefend-ignore(?:\[(?P<ids>[^\]]*)\])?")
