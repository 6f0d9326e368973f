"""Typed baseline payload structures."""

from __future__ import annotations

from typing import TypedDict


class BaselineFingerprintPayload(TypedDict):
    """Serialized form of one finding fingerprint."""

    detector_id: str
    relative_file: str
    context_name: str
    snippet_prefix: str


class BaselinePayload(TypedDict):
    """Top-level baseline payload persisted to disk."""

    version: int
    fingerprints: list[BaselineFingerprintPayload]
