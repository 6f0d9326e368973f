"""Detector registry: the fixed built-in catalogue plus user rules."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from rustdefend.detectors.base import BaseDetector, Detector, ManifestDetector
from rustdefend.detectors.cosmwasm import COSMWASM_DETECTORS
from rustdefend.detectors.custom_rules import CustomRule, CustomRuleDetector
from rustdefend.detectors.dependencies import MANIFEST_DETECTORS
from rustdefend.detectors.ink import INK_DETECTORS
from rustdefend.detectors.near import NEAR_DETECTORS
from rustdefend.detectors.solana import SOLANA_DETECTORS
from rustdefend.model import DetectorInfo
from rustdefend.types.common import Ecosystem, Severity

BUILTIN_SOURCE_DETECTORS: tuple[type[Detector], ...] = (
    *SOLANA_DETECTORS,
    *COSMWASM_DETECTORS,
    *NEAR_DETECTORS,
    *INK_DETECTORS,
)


class DetectorRegistry:
    """Immutable detector catalogue built once per scan.

    Selection methods return the intersection of the requested filters and
    never mutate the registry.
    """

    def __init__(self, custom_rules: Iterable[CustomRule] = ()) -> None:
        builtin: list[Detector] = [detector_cls() for detector_cls in BUILTIN_SOURCE_DETECTORS]
        custom: list[Detector] = [CustomRuleDetector(rule) for rule in custom_rules]
        self._source: tuple[Detector, ...] = (*builtin, *custom)
        self._manifest: tuple[ManifestDetector, ...] = tuple(detector_cls() for detector_cls in MANIFEST_DETECTORS)

    @property
    def source_detectors(self) -> tuple[Detector, ...]:
        return self._source

    @property
    def manifest_detectors(self) -> tuple[ManifestDetector, ...]:
        return self._manifest

    @property
    def detector_ids(self) -> frozenset[str]:
        return frozenset(detector.detector_id for detector in (*self._source, *self._manifest))

    def get_detectors(
        self,
        ecosystems: Collection[Ecosystem],
        severities: Collection[Severity] | None = None,
        detector_ids: Collection[str] | None = None,
    ) -> tuple[Detector, ...]:
        """Return source detectors matching every given filter.

        Detectors without an ecosystem match any ecosystem set.
        """
        wanted_ids = _normalize_ids(detector_ids)
        return tuple(
            detector
            for detector in self._source
            if (detector.ecosystem is None or detector.ecosystem in ecosystems)
            and _matches(detector, severities, wanted_ids)
        )

    def get_manifest_detectors(
        self,
        severities: Collection[Severity] | None = None,
        detector_ids: Collection[str] | None = None,
    ) -> tuple[ManifestDetector, ...]:
        wanted_ids = _normalize_ids(detector_ids)
        return tuple(detector for detector in self._manifest if _matches(detector, severities, wanted_ids))

    def list_detectors(self, ecosystems: Collection[Ecosystem] | None = None) -> list[DetectorInfo]:
        """Return listing metadata for every registered detector in registration order."""
        detectors: tuple[BaseDetector, ...] = (*self._source, *self._manifest)
        return [
            detector.info()
            for detector in detectors
            if ecosystems is None or detector.ecosystem is None or detector.ecosystem in ecosystems
        ]


def _normalize_ids(detector_ids: Collection[str] | None) -> frozenset[str] | None:
    if detector_ids is None:
        return None
    return frozenset(detector_id.strip().upper() for detector_id in detector_ids)


def _matches(
    detector: BaseDetector,
    severities: Collection[Severity] | None,
    detector_ids: frozenset[str] | None,
) -> bool:
    if severities is not None and detector.severity not in severities:
        return False
    return detector_ids is None or detector.detector_id.upper() in detector_ids
