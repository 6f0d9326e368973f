"""Core data models for RustDefend."""

from .entities import DetectorInfo, Finding, ParsedUnit, ScanResult

__all__ = [
    "DetectorInfo",
    "Finding",
    "ParsedUnit",
    "ScanResult",
]
