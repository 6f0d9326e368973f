"""Typed aliases and payload structures shared across modules."""

from .baseline import BaselineFingerprintPayload, BaselinePayload
from .cache import CacheFileEntry, CacheNamespace, CachePayload
from .common import CheckKind, Confidence, Ecosystem, JsonObject, JsonScalar, JsonValue, Severity

__all__ = [
    "BaselineFingerprintPayload",
    "BaselinePayload",
    "CacheFileEntry",
    "CacheNamespace",
    "CachePayload",
    "CheckKind",
    "Confidence",
    "Ecosystem",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "Severity",
]
