"""Parallel detector dispatch over discovered source files."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from rustdefend.analysis import ProjectCallGraph, build_call_graph, iter_functions
from rustdefend.detectors.base import Detector
from rustdefend.exceptions import SourceParseError
from rustdefend.model import Finding, ParsedUnit
from rustdefend.parsers import parse_rust_file
from rustdefend.scanner.context import ScanContext
from rustdefend.types.common import Ecosystem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileTask:
    """One source file and the ecosystems it is scanned under."""

    path: Path
    ecosystems: tuple[Ecosystem, ...]


@dataclass(frozen=True)
class FileOutcome:
    """Findings of one file, or the warning explaining why it was skipped."""

    path: Path
    findings: tuple[Finding, ...] = ()
    warning: str | None = None


def run_detectors(
    unit: ParsedUnit,
    ecosystems: Sequence[Ecosystem],
    detectors: Sequence[Detector],
    *,
    project_graph: ProjectCallGraph | None = None,
) -> list[Finding]:
    """Run every applicable detector over one parsed file.

    One context is built per ecosystem; detectors without an ecosystem run only
    in the first context. A failing detector is logged and skipped. Suppressed
    findings are dropped.
    """
    call_graph = build_call_graph(unit)
    functions = tuple(iter_functions(unit))
    findings: list[Finding] = []
    for index, ecosystem in enumerate(ecosystems):
        ctx = ScanContext(
            unit=unit,
            ecosystem=ecosystem,
            call_graph=call_graph,
            functions=functions,
            project_graph=project_graph,
        )
        for detector in detectors:
            if detector.ecosystem is None:
                if index != 0:
                    continue
            elif detector.ecosystem != ecosystem:
                continue
            try:
                detected = detector.detect(ctx)
            except Exception:
                logger.exception("Detector %s failed on %s", detector.detector_id, ctx.file)
                continue
            findings.extend(
                finding for finding in detected if not ctx.is_suppressed(finding.line, finding.detector_id)
            )
    return findings


def scan_file(
    task: FileTask,
    detectors: Sequence[Detector],
    *,
    project_graph: ProjectCallGraph | None = None,
) -> FileOutcome:
    """Parse one file and run detectors over it; parse failures become a warning."""
    try:
        unit = parse_rust_file(task.path)
    except SourceParseError as exc:
        return FileOutcome(path=task.path, warning=f"Skipping file: {exc}")
    findings = run_detectors(unit, task.ecosystems, detectors, project_graph=project_graph)
    return FileOutcome(path=task.path, findings=tuple(findings))


def dispatch_files(
    tasks: Sequence[FileTask],
    detectors: Sequence[Detector],
    *,
    project_graph: ProjectCallGraph | None = None,
    max_workers: int | None = None,
) -> list[FileOutcome]:
    """Scan ``tasks`` on a thread pool and return outcomes in task order."""
    if not tasks:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        outcomes = list(
            executor.map(lambda task: scan_file(task, detectors, project_graph=project_graph), tasks)
        )
    logger.debug("Dispatched %d file(s) to %d detector(s)", len(tasks), len(detectors))
    return outcomes
