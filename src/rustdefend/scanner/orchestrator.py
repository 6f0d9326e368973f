"""End-to-end scan orchestration for RustDefend.

The ``scan_workspace`` function is the primary entry point.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from rustdefend.analysis import ProjectCallGraph, build_call_graph, build_project_call_graph
from rustdefend.config import config_fingerprint
from rustdefend.constants.cache import CACHE_FILENAME
from rustdefend.constants.ecosystems import ALL_ECOSYSTEMS
from rustdefend.detectors import DetectorRegistry, ManifestDetector
from rustdefend.exceptions import ManifestParseError, NoSourceFilesError, ScanTargetError, SourceParseError
from rustdefend.model import Finding, ScanResult
from rustdefend.parsers import CargoManifest, parse_rust_file, read_manifest
from rustdefend.scanner.baseline import diff_against_baseline, load_baseline, save_baseline
from rustdefend.scanner.cache import ScanCache, build_scan_fingerprint, load_cache, save_cache
from rustdefend.scanner.discovery import discover_manifests, discover_source_files
from rustdefend.scanner.pipeline.config_resolution import (
    load_config_or_default,
    load_rules_or_default,
    resolve_ecosystem_filter,
    resolve_min_confidence,
    resolve_min_severity,
    resolve_severities,
)
from rustdefend.scanner.pipeline.dispatch import FileTask, dispatch_files
from rustdefend.scanner.pipeline.filters import FindingFilters, filter_findings, sort_findings
from rustdefend.scanner.workspace import resolve_workspace
from rustdefend.types.common import Ecosystem

logger = logging.getLogger(__name__)


def _path_for_warning(path: Path, root: Path) -> str:
    """Render a warning-friendly path relative to the scan root when possible."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _warn(warnings: list[str], warning: str) -> None:
    warnings.append(warning)
    logger.warning(warning)


def scan_workspace(
    *,
    root: Path,
    ecosystems: Sequence[str] | None = None,
    severities: Sequence[str] | None = None,
    detector_ids: Sequence[str] | None = None,
    min_confidence: str | None = None,
    min_severity: str | None = None,
    config_path: Path | None = None,
    rules_path: Path | None = None,
    cross_file: bool = False,
    incremental: bool = False,
    cache_path: Path | None = None,
    baseline_path: Path | None = None,
    save_baseline_path: Path | None = None,
    max_workers: int | None = None,
) -> ScanResult:
    """Scan a Rust source tree (or a single ``.rs`` file) and return its findings.

    Explicit ``ecosystems`` override detection from ``Cargo.toml`` files.
    ``min_severity``/``min_confidence`` take precedence over the project config.
    With ``incremental`` the per-file cache is read before and written after
    dispatch. With ``baseline_path`` only findings absent from the baseline are
    returned.
    """
    started_at = time.perf_counter()
    root = root.resolve()
    if not root.exists():
        raise ScanTargetError(f"Scan root does not exist: {root}")
    scan_dir = root if root.is_dir() else root.parent

    warnings: list[str] = []
    ecosystem_override = resolve_ecosystem_filter(ecosystems, warnings=warnings)
    selected_severities = resolve_severities(severities)

    config = load_config_or_default(root, config_path, warnings=warnings)
    filters = FindingFilters(
        ignored_ids=frozenset(config.ignore),
        min_severity=resolve_min_severity(min_severity, config),
        min_confidence=resolve_min_confidence(min_confidence, config),
    )
    custom_rules = load_rules_or_default(
        rules_path,
        reserved_ids=DetectorRegistry().detector_ids,
        warnings=warnings,
    )
    registry = DetectorRegistry(custom_rules)

    source_files = discover_source_files(root, config.ignore_files)
    if not source_files:
        raise NoSourceFilesError(f"No Rust source files found under {root}")
    manifests = _read_manifests(discover_manifests(root), scan_dir, warnings)

    ecosystems_for: Callable[[Path], tuple[Ecosystem, ...]]
    if ecosystem_override is not None:
        ecosystem_scope: tuple[str, ...] = ecosystem_override
        override = ecosystem_override

        def ecosystems_for(_path: Path) -> tuple[Ecosystem, ...]:
            return override

    else:
        workspace = resolve_workspace(root, manifests, warnings=warnings)
        ecosystem_scope = workspace.layout()
        ecosystems_for = workspace.ecosystems_for
        logger.debug("Manifests declare ecosystems: %s", ", ".join(workspace.detected_ecosystems) or "none")

    tasks = [FileTask(path=path, ecosystems=ecosystems_for(path)) for path in source_files]
    active_ecosystems = _ordered_ecosystems(ecosystem for task in tasks for ecosystem in task.ecosystems)
    detectors = registry.get_detectors(active_ecosystems, selected_severities, detector_ids)
    manifest_detectors = registry.get_manifest_detectors(selected_severities, detector_ids)
    logger.info(
        "Scanning %d source file(s) and %d manifest(s) for %s with %d detector(s)",
        len(source_files),
        len(manifests),
        ", ".join(active_ecosystems),
        len(detectors) + len(manifest_detectors),
    )

    project_graph = _build_project_graph(source_files) if cross_file else None

    cache: ScanCache | None = None
    resolved_cache_path = (cache_path or scan_dir / CACHE_FILENAME).resolve()
    if incremental:
        scan_fingerprint = build_scan_fingerprint(
            detector_ids=[detector.detector_id for detector in detectors],
            config_fingerprint=config_fingerprint(config, custom_rules),
            ecosystem_scope=ecosystem_scope,
            project_graph_digest=project_graph.digest if project_graph is not None else None,
        )
        cache = load_cache(resolved_cache_path, scan_fingerprint)

    all_findings: list[Finding] = []
    pending: list[FileTask] = []
    mtimes: dict[Path, int] = {}
    cache_hits = 0
    for task in tasks:
        if cache is None:
            pending.append(task)
            continue
        try:
            mtime_ns = task.path.stat().st_mtime_ns
        except OSError as exc:
            _warn(warnings, f"Failed to read file metadata: {_path_for_warning(task.path, scan_dir)} ({exc})")
            continue
        cached = cache.lookup(str(task.path), mtime_ns)
        if cached is not None:
            cache_hits += 1
            all_findings.extend(cached)
            continue
        mtimes[task.path] = mtime_ns
        pending.append(task)

    for outcome in dispatch_files(pending, detectors, project_graph=project_graph, max_workers=max_workers):
        if outcome.warning is not None:
            _warn(warnings, outcome.warning)
            continue
        all_findings.extend(outcome.findings)
        if cache is not None and outcome.path in mtimes:
            cache.store(str(outcome.path), mtimes[outcome.path], outcome.findings)

    all_findings.extend(_run_manifest_detectors(manifests, manifest_detectors, ecosystem_override))

    findings = sort_findings(filter_findings(all_findings, filters))
    if filters.active():
        logger.info("Filters kept %d of %d finding(s)", len(findings), len(all_findings))

    if cache is not None:
        pruned = cache.prune(str(path) for path in source_files)
        save_cache(resolved_cache_path, cache)
        logger.info("Cache: %d hit(s), %d miss(es), %d pruned", cache_hits, len(pending), pruned)

    if save_baseline_path is not None:
        save_baseline(findings, root, save_baseline_path.resolve())

    baseline_suppressed = 0
    if baseline_path is not None:
        diff = diff_against_baseline(findings, load_baseline(baseline_path.resolve()), root)
        findings = list(diff.new_findings)
        baseline_suppressed = diff.suppressed_count
        logger.info("Baseline suppressed %d known finding(s)", baseline_suppressed)

    return ScanResult(
        findings=tuple(findings),
        scanned_files=len(source_files),
        scanned_manifests=sum(1 for manifest in manifests.values() if manifest is not None),
        ecosystems=active_ecosystems,
        cache_hits=cache_hits,
        cache_misses=len(pending) if cache is not None else 0,
        baseline_suppressed=baseline_suppressed,
        duration_seconds=time.perf_counter() - started_at,
        warnings=tuple(warnings),
    )


def _read_manifests(paths: Iterable[Path], scan_dir: Path, warnings: list[str]) -> dict[Path, CargoManifest | None]:
    """Parse discovered manifests; unreadable ones map to ``None`` with a warning."""
    manifests: dict[Path, CargoManifest | None] = {}
    for path in paths:
        try:
            manifests[path] = read_manifest(path)
        except ManifestParseError as exc:
            _warn(warnings, f"Skipping manifest {_path_for_warning(path, scan_dir)}: {exc}")
            manifests[path] = None
    return manifests


def _build_project_graph(paths: Sequence[Path]) -> ProjectCallGraph:
    """Parse every file once on the calling thread and compose the project call graph."""
    graphs = []
    for path in paths:
        try:
            unit = parse_rust_file(path)
        except SourceParseError:
            logger.debug("Project graph skips unparsable file %s", path)
            continue
        graphs.append((path.as_posix(), build_call_graph(unit)))
    project_graph = build_project_call_graph(graphs)
    logger.info(
        "Built project call graph: %d function(s) from %d file(s)",
        len(project_graph.graph),
        len(project_graph.files),
    )
    return project_graph


def _run_manifest_detectors(
    manifests: dict[Path, CargoManifest | None],
    detectors: Sequence[ManifestDetector],
    ecosystem_override: tuple[Ecosystem, ...] | None,
) -> list[Finding]:
    """Run manifest detectors once per parsed ``Cargo.toml``.

    With an explicit ecosystem override, findings attributed to other
    ecosystems are dropped.
    """
    findings: list[Finding] = []
    for path, manifest in manifests.items():
        if manifest is None:
            continue
        for detector in detectors:
            try:
                detected = detector.detect_manifest(manifest)
            except Exception:
                logger.exception("Detector %s failed on %s", detector.detector_id, path)
                continue
            findings.extend(
                finding
                for finding in detected
                if ecosystem_override is None or finding.ecosystem is None or finding.ecosystem in ecosystem_override
            )
    return findings


def _ordered_ecosystems(ecosystems: Iterable[Ecosystem]) -> tuple[Ecosystem, ...]:
    wanted = set(ecosystems)
    return tuple(ecosystem for ecosystem in ALL_ECOSYSTEMS if ecosystem in wanted)
