"""Detector interfaces for source and manifest rules."""

from __future__ import annotations

import inspect
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from rustdefend.constants.ranking import CONFIDENCE_RANK, SEVERITY_RANK
from rustdefend.model import DetectorInfo, Finding
from rustdefend.types.common import Confidence, Ecosystem, Severity

if TYPE_CHECKING:
    from rustdefend.parsers.manifest import CargoManifest
    from rustdefend.scanner.context import ScanContext

DETECTOR_ID_PATTERN: re.Pattern[str] = re.compile(r"^[A-Z][A-Z0-9]*-[A-Z0-9_-]+$")


def validate_detector_metadata(owner: str, *, detector_id: object, severity: object, confidence: object) -> None:
    """Raise ``TypeError`` when detector metadata is malformed."""
    if not isinstance(detector_id, str) or not DETECTOR_ID_PATTERN.match(detector_id):
        raise TypeError(f"{owner}.detector_id must look like 'SOL-001' (got {detector_id!r})")
    if severity not in SEVERITY_RANK:
        raise TypeError(f"{owner}.severity must be one of {sorted(SEVERITY_RANK)} (got {severity!r})")
    if confidence not in CONFIDENCE_RANK:
        raise TypeError(f"{owner}.confidence must be one of {sorted(CONFIDENCE_RANK)} (got {confidence!r})")


class BaseDetector(ABC):
    """Metadata shared by every detector kind.

    Concrete subclasses declare metadata as class attributes. Subclasses whose
    ``detector_id`` starts with ``_`` are templates that set metadata per
    instance instead.
    """

    detector_id: str
    name: str
    description: str = ""
    severity: Severity
    confidence: Confidence
    ecosystem: Ecosystem | None = None

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        if inspect.isabstract(cls):
            return

        detector_id = getattr(cls, "detector_id", None)
        if isinstance(detector_id, str) and detector_id.startswith("_"):
            return
        validate_detector_metadata(
            cls.__name__,
            detector_id=detector_id,
            severity=getattr(cls, "severity", None),
            confidence=getattr(cls, "confidence", None),
        )

    def info(self) -> DetectorInfo:
        return DetectorInfo(
            detector_id=self.detector_id,
            name=self.name,
            description=self.description,
            severity=self.severity,
            confidence=self.confidence,
            ecosystem=self.ecosystem,
        )

    def make_finding(
        self,
        *,
        file: str,
        line: int,
        column: int,
        message: str,
        snippet: str,
        recommendation: str,
        ecosystem: Ecosystem | None,
    ) -> Finding:
        """Build a finding stamped with this detector's id, name, severity, and confidence."""
        return Finding(
            detector_id=self.detector_id,
            name=self.name,
            severity=self.severity,
            confidence=self.confidence,
            message=message,
            file=file,
            line=line,
            column=column,
            snippet=snippet,
            recommendation=recommendation,
            ecosystem=ecosystem,
        )


class Detector(BaseDetector):
    """Detector run once per (source file, ecosystem) context.

    ``detect`` must not mutate the context or touch the filesystem. Suppression
    markers are applied by the dispatcher, not by detectors.
    """

    @abstractmethod
    def detect(self, ctx: ScanContext) -> list[Finding]:
        """Return findings for one parsed file."""


class ManifestDetector(BaseDetector):
    """Detector run once per ``Cargo.toml`` manifest."""

    @abstractmethod
    def detect_manifest(self, manifest: CargoManifest) -> list[Finding]:
        """Return findings for one parsed manifest."""
