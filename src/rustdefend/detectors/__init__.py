"""Detector package for RustDefend."""

from .base import Detector, ManifestDetector
from .registry import DetectorRegistry

__all__ = ["Detector", "DetectorRegistry", "ManifestDetector"]
