"""JSON persistence for the scan cache and baseline files.

Both files are versioned JSON objects written atomically next to their final
path; reads degrade to ``None`` so callers can fall back to an empty structure.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def load_json_file(path: Path) -> object:
    """Load and parse JSON from disk."""
    return json.loads(path.read_text(encoding="utf-8"))


def load_versioned_json(path: Path, *, version: int, label: str) -> dict[str, Any] | None:
    """Return the JSON object at ``path`` when it carries ``version``.

    Unreadable files, invalid JSON, non-object payloads and other versions are
    logged as ``label`` files and yield ``None``.
    """
    try:
        payload = load_json_file(path)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable %s file %s: %s", label, path, exc)
        return None

    if not isinstance(payload, dict) or payload.get("version") != version:
        logger.warning("Ignoring %s file %s with unsupported layout", label, path)
        return None
    return payload


def write_json_atomic(
    *,
    path: Path,
    payload: object,
    temp_prefix: str,
    temp_suffix: str,
) -> None:
    """Write ``payload`` to a sibling temp file, then rename it over ``path``.

    Readers never observe a partially written cache or baseline; the temp file
    is removed when serialization fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=temp_prefix,
            suffix=temp_suffix,
            delete=False,
        ) as handle:
            temp_name = handle.name
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.write("\n")
        os.replace(temp_name, path)
    except Exception:
        if temp_name:
            with suppress(FileNotFoundError):
                Path(temp_name).unlink()
        raise
