"""Rust source and Cargo manifest discovery."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable
from pathlib import Path

from rustdefend.constants.discovery import (
    EXCLUDED_MANIFEST_DIRS,
    EXCLUDED_SOURCE_DIRS,
    EXCLUDED_SOURCE_NAMES,
    EXCLUDED_SOURCE_SUFFIXES,
    MANIFEST_FILENAME,
    RUST_SOURCE_SUFFIX,
)

logger = logging.getLogger(__name__)


def discover_source_files(root: Path, ignore_globs: Iterable[str] = ()) -> list[Path]:
    """Discover scannable ``.rs`` files under ``root`` in stable order.

    Build output, test, fuzz and vendored directories, hidden directories, test
    files, and paths matching ``ignore_globs`` are skipped. A single-file root
    is returned as-is.
    """
    resolved_root = root.resolve()
    if resolved_root.is_file():
        return [resolved_root] if resolved_root.suffix == RUST_SOURCE_SUFFIX else []

    patterns = tuple(ignore_globs)
    discovered: list[Path] = []
    for path in resolved_root.rglob(f"*{RUST_SOURCE_SUFFIX}"):
        if not path.is_file():
            continue
        relative = path.relative_to(resolved_root)
        if _excluded(relative, EXCLUDED_SOURCE_DIRS):
            continue
        if path.name in EXCLUDED_SOURCE_NAMES or path.name.endswith(EXCLUDED_SOURCE_SUFFIXES):
            continue
        if any(matches_ignore_glob(relative.as_posix(), pattern) for pattern in patterns):
            logger.debug("Ignoring %s (matched ignore_files)", relative.as_posix())
            continue
        discovered.append(path)

    return sorted(discovered, key=lambda path: _stable_path_key(path, resolved_root))


def discover_manifests(root: Path) -> list[Path]:
    """Discover every ``Cargo.toml`` under ``root`` outside build output."""
    resolved_root = root.resolve()
    if resolved_root.is_file():
        return []

    discovered = [
        path
        for path in resolved_root.rglob(MANIFEST_FILENAME)
        if path.is_file() and not _excluded(path.relative_to(resolved_root), EXCLUDED_MANIFEST_DIRS)
    ]
    return sorted(discovered, key=lambda path: _stable_path_key(path, resolved_root))


def matches_ignore_glob(relative_path: str, pattern: str) -> bool:
    """Return whether a root-relative POSIX path matches an ``ignore_files`` pattern.

    ``dir/**`` matches everything under ``dir``; a pattern without ``/`` is
    matched against the file name; anything else is an ``fnmatch`` pattern over
    the whole relative path.
    """
    pattern = pattern.strip().removeprefix("./")
    if not pattern:
        return False
    if pattern.endswith("/**"):
        prefix = pattern[: -len("/**")]
        if "*" not in prefix:
            return relative_path == prefix or relative_path.startswith(f"{prefix}/")
    if "/" not in pattern:
        return fnmatch.fnmatchcase(relative_path.rsplit("/", 1)[-1], pattern)
    return fnmatch.fnmatchcase(relative_path, pattern)


def _excluded(relative: Path, excluded_dirs: frozenset[str]) -> bool:
    return any(part in excluded_dirs or part.startswith(".") for part in relative.parts[:-1])


def _stable_path_key(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
