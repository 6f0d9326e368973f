"""Cargo workspace resolution and per-file ecosystem assignment."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from rustdefend.constants.discovery import MANIFEST_FILENAME
from rustdefend.constants.ecosystems import ALL_ECOSYSTEMS, ECOSYSTEM_MARKER_CRATES
from rustdefend.exceptions import ManifestParseError
from rustdefend.parsers.manifest import CargoManifest, read_manifest
from rustdefend.types.common import Ecosystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceMap:
    """Crate root directory to detected ecosystems, plus the scan root's own set."""

    root_ecosystems: tuple[Ecosystem, ...]
    crates: Mapping[Path, tuple[Ecosystem, ...]]

    def crate_root_for(self, path: Path) -> Path | None:
        """Return the nearest enclosing crate root of ``path``."""
        for parent in path.parents:
            if parent in self.crates:
                return parent
        return None

    def ecosystems_for(self, path: Path) -> tuple[Ecosystem, ...]:
        """Return the ecosystems a file is scanned under.

        Nearest crate's ecosystems, else the scan root's, else every ecosystem.
        """
        crate_root = self.crate_root_for(path)
        if crate_root is not None and self.crates[crate_root]:
            return self.crates[crate_root]
        if self.root_ecosystems:
            return self.root_ecosystems
        return ALL_ECOSYSTEMS

    def layout(self) -> tuple[str, ...]:
        """Return a stable textual form of the map, one ``dir=eco,eco`` entry per crate."""
        entries = [f"<root>={','.join(self.root_ecosystems)}"]
        entries.extend(f"{path.as_posix()}={','.join(ecosystems)}" for path, ecosystems in self.crates.items())
        return tuple(entries)

    @property
    def detected_ecosystems(self) -> tuple[Ecosystem, ...]:
        found = set(self.root_ecosystems)
        for ecosystems in self.crates.values():
            found.update(ecosystems)
        return _ordered(found)


def detect_ecosystems(manifest: CargoManifest) -> tuple[Ecosystem, ...]:
    """Return ecosystems whose marker crates the manifest depends on."""
    names = manifest.dependency_names()
    return _ordered(ecosystem for ecosystem, markers in ECOSYSTEM_MARKER_CRATES.items() if names & markers)


def find_crate_root(path: Path) -> Path | None:
    """Return the nearest ancestor directory (or ``path`` itself) containing a ``Cargo.toml``."""
    start = path if path.is_dir() else path.parent
    for candidate in (start, *start.parents):
        if (candidate / MANIFEST_FILENAME).is_file():
            return candidate
    return None


def expand_workspace_members(workspace_dir: Path, members: Iterable[str]) -> list[Path]:
    """Expand ``[workspace] members`` entries into member directories.

    Literal paths are kept when they contain a manifest; ``dir/*`` expands to
    every subdirectory of ``dir`` holding a manifest.
    """
    expanded: list[Path] = []
    for member in members:
        if member.endswith("/*"):
            parent = workspace_dir / member[:-2]
            if parent.is_dir():
                expanded.extend(
                    child for child in sorted(parent.iterdir()) if (child / MANIFEST_FILENAME).is_file()
                )
            continue
        candidate = workspace_dir / member
        if (candidate / MANIFEST_FILENAME).is_file():
            expanded.append(candidate)
    return expanded


def resolve_workspace(
    root: Path,
    manifests: Mapping[Path, CargoManifest | None],
    *,
    warnings: list[str] | None = None,
) -> WorkspaceMap:
    """Build the crate-root ecosystem map for a scan root.

    ``manifests`` maps discovered manifest paths to their parsed form (``None``
    when parsing failed). The root (or, for a single-file scan, its nearest
    crate) contributes workspace members, which are read from disk when
    discovery did not cover them.
    """
    crates: dict[Path, tuple[Ecosystem, ...]] = {}
    for path, manifest in manifests.items():
        if manifest is not None and manifest.has_package:
            crates[path.parent] = detect_ecosystems(manifest)

    root_dir = find_crate_root(root)
    root_ecosystems: set[Ecosystem] = set()
    if root_dir is not None:
        root_manifest = _manifest_at(root_dir / MANIFEST_FILENAME, manifests, warnings)
        if root_manifest is not None:
            root_ecosystems.update(detect_ecosystems(root_manifest))
            if root_manifest.has_package:
                crates[root_dir] = detect_ecosystems(root_manifest)
            for member_dir in expand_workspace_members(root_dir, root_manifest.workspace_members):
                member = _manifest_at(member_dir / MANIFEST_FILENAME, manifests, warnings)
                if member is None:
                    continue
                member_ecosystems = detect_ecosystems(member)
                crates[member_dir] = member_ecosystems
                root_ecosystems.update(member_ecosystems)

    workspace = WorkspaceMap(
        root_ecosystems=_ordered(root_ecosystems),
        crates=MappingProxyType(dict(sorted(crates.items()))),
    )
    logger.debug(
        "Resolved %d crate(s); root ecosystems: %s",
        len(workspace.crates),
        ", ".join(workspace.root_ecosystems) or "none",
    )
    return workspace


def _manifest_at(
    path: Path,
    manifests: Mapping[Path, CargoManifest | None],
    warnings: list[str] | None,
) -> CargoManifest | None:
    resolved = path.resolve()
    if resolved in manifests:
        return manifests[resolved]
    try:
        return read_manifest(resolved)
    except ManifestParseError as exc:
        warning = f"Skipping unreadable manifest: {exc}"
        logger.warning(warning)
        if warnings is not None:
            warnings.append(warning)
        return None


def _ordered(ecosystems: Iterable[Ecosystem]) -> tuple[Ecosystem, ...]:
    wanted = set(ecosystems)
    return tuple(ecosystem for ecosystem in ALL_ECOSYSTEMS if ecosystem in wanted)
