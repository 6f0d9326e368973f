"""Manifest-scoped detectors for vulnerable and risky dependencies."""

from __future__ import annotations

from rustdefend.constants.advisories import (
    CRATE_ADVISORIES,
    KNOWN_MALICIOUS_CRATES,
    VERSION_REQUIREMENT_OPERATORS,
    WILDCARD_VERSION_PREFIXES,
    WILDCARD_VERSION_SUFFIX,
    WILDCARD_VERSIONS,
    Advisory,
    VersionTuple,
)
from rustdefend.detectors.base import ManifestDetector
from rustdefend.model import Finding
from rustdefend.parsers.manifest import CargoManifest, DependencyEntry

_ADVISORIES_BY_CRATE: dict[str, Advisory] = {advisory.crate_name: advisory for advisory in CRATE_ADVISORIES}


def parse_version(raw: str) -> VersionTuple | None:
    """Parse a Cargo version requirement into ``(major, minor, patch)``.

    Leading ``^``, ``~`` and ``=`` operators are ignored; missing or non-numeric
    minor/patch parts default to 0. Returns ``None`` when the major part is not numeric.
    """
    parts = raw.strip().lstrip(VERSION_REQUIREMENT_OPERATORS).strip().split(".")
    try:
        major = int(parts[0])
    except ValueError:
        return None
    return (major, _version_part(parts, 1), _version_part(parts, 2))


def _version_part(parts: list[str], index: int) -> int:
    try:
        return int(parts[index])
    except (IndexError, ValueError):
        return 0


def is_vulnerable(advisory: Advisory, version: str) -> bool:
    parsed = parse_version(version)
    if parsed is None:
        return False
    return any(
        (window.introduced is None or parsed >= window.introduced) and parsed < window.fixed
        for window in advisory.ranges
    )


def is_wildcard_version(version: str) -> bool:
    return (
        version in WILDCARD_VERSIONS
        or version.endswith(WILDCARD_VERSION_SUFFIX)
        or version.startswith(WILDCARD_VERSION_PREFIXES)
    )


class OutdatedDependenciesDetector(ManifestDetector):
    """Flag dependency declarations pinned inside a published vulnerable range.

    Every dependency table is checked independently, so a crate declared twice
    is reported only for the occurrence that is actually vulnerable.
    """

    detector_id = "DEP-001"
    name = "outdated-dependencies"
    description = "Detects known-vulnerable dependency versions in Cargo.toml"
    severity = "high"
    confidence = "high"

    def detect_manifest(self, manifest: CargoManifest) -> list[Finding]:
        findings: list[Finding] = []
        for entry in manifest.dependencies:
            advisory = _ADVISORIES_BY_CRATE.get(entry.name)
            if advisory is None or entry.git is not None or entry.path is not None:
                continue
            version = entry.version.strip()
            if not version or version == "*":
                continue
            if not is_vulnerable(advisory, version):
                continue
            findings.append(
                self.make_finding(
                    file=manifest.path.as_posix(),
                    line=entry.line,
                    column=1,
                    message=f'Vulnerable dependency: {entry.name} = "{version}" ({advisory.description})',
                    snippet=f'{entry.name} = "{version}"',
                    recommendation=f"Update {entry.name} to a patched version. Advisory: {advisory.advisory}",
                    ecosystem=advisory.ecosystem,
                )
            )
        return findings


class SupplyChainRiskDetector(ManifestDetector):
    """Flag known-malicious crates, unpinned git sources, and wildcard version requirements.

    Wildcards are tolerated in dev-dependencies.
    """

    detector_id = "DEP-002"
    name = "supply-chain-risk"
    description = "Detects malicious crates, unpinned git dependencies, and wildcard versions"
    severity = "high"
    confidence = "high"

    def detect_manifest(self, manifest: CargoManifest) -> list[Finding]:
        findings: list[Finding] = []
        lines = manifest.text.splitlines()
        for entry in manifest.dependencies:
            finding = self._check_entry(manifest, entry, lines)
            if finding is not None:
                findings.append(finding)
        return findings

    def _check_entry(self, manifest: CargoManifest, entry: DependencyEntry, lines: list[str]) -> Finding | None:
        snippet = lines[entry.line - 1].strip() if 0 < entry.line <= len(lines) else ""
        if entry.key in KNOWN_MALICIOUS_CRATES or entry.name in KNOWN_MALICIOUS_CRATES:
            return self._finding(
                manifest,
                entry,
                snippet=f"{entry.key} = ...",
                message=f"Known malicious crate detected: '{entry.name}' (typosquatting/supply chain attack)",
                recommendation=(
                    f"Remove '{entry.name}' immediately. This is a known malicious crate used in supply chain attacks"
                ),
            )
        if entry.path is not None or entry.workspace:
            return None
        if entry.git is not None:
            if entry.rev is not None or entry.tag is not None:
                return None
            return self._finding(
                manifest,
                entry,
                snippet=snippet,
                message=f"Unpinned git dependency: '{entry.name}' has no rev or tag (mutable reference)",
                recommendation=(
                    f'Pin \'{entry.name}\' with rev = "<commit-hash>" or tag = "<version>" '
                    "to prevent supply chain attacks via branch mutation"
                ),
            )
        if entry.is_dev or not is_wildcard_version(entry.version):
            return None
        return self._finding(
            manifest,
            entry,
            snippet=snippet,
            message=(
                f"Wildcard version for '{entry.name}': \"{entry.version}\" allows any version "
                "including malicious releases"
            ),
            recommendation=f'Pin \'{entry.name}\' to a specific version range (e.g., "1.0" or "^1.2.3")',
        )

    def _finding(
        self,
        manifest: CargoManifest,
        entry: DependencyEntry,
        *,
        snippet: str,
        message: str,
        recommendation: str,
    ) -> Finding:
        return self.make_finding(
            file=manifest.path.as_posix(),
            line=entry.line,
            column=1,
            message=message,
            snippet=snippet,
            recommendation=recommendation,
            ecosystem=None,
        )


MANIFEST_DETECTORS: tuple[type[ManifestDetector], ...] = (
    OutdatedDependenciesDetector,
    SupplyChainRiskDetector,
)
