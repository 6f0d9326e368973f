"""Typed cache payload structures."""

from __future__ import annotations

from typing import TypedDict

from rustdefend.types.common import JsonObject


class CacheFileEntry(TypedDict):
    """Cached findings for a single scanned file."""

    mtime_ns: int
    findings: list[JsonObject]


class CacheNamespace(TypedDict):
    """Detector-selection scoped namespace inside the cache payload."""

    scan_fingerprint: str
    files: dict[str, CacheFileEntry]


class CachePayload(TypedDict):
    """Top-level cache payload persisted to disk."""

    version: int
    namespaces: dict[str, CacheNamespace]
