"""Incremental scan cache keyed by file path and modification time."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from rustdefend.constants.cache import CACHE_TEMP_PREFIX, CACHE_TEMP_SUFFIX, CACHE_VERSION
from rustdefend.io import load_versioned_json, write_json_atomic
from rustdefend.model import Finding
from rustdefend.scanner.pipeline.conversion import deserialize_findings
from rustdefend.types import CacheFileEntry, CacheNamespace, CachePayload

logger = logging.getLogger(__name__)


def new_cache() -> CachePayload:
    """Return an empty cache payload."""
    return {
        "version": CACHE_VERSION,
        "namespaces": {},
    }


def build_scan_fingerprint(
    *,
    detector_ids: Iterable[str],
    config_fingerprint: str,
    ecosystem_scope: Iterable[str] = (),
    project_graph_digest: str | None = None,
) -> str:
    """Return a stable fingerprint over everything that shapes per-file findings.

    ``ecosystem_scope`` describes which ecosystems apply where (the explicit
    override, or the resolved crate layout). In cross-file mode the project
    graph digest participates, so edits in one file invalidate cached findings
    of files whose propagation they affect.
    """
    payload = {
        "config_fingerprint": config_fingerprint,
        "detector_ids": sorted(detector_ids),
        "ecosystem_scope": sorted(ecosystem_scope),
        "project_graph_digest": project_graph_digest or "",
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()


class ScanCache:
    """Findings per file for one scan fingerprint.

    ``lookup`` hits only when the stored modification time equals the current one.
    """

    def __init__(self, scan_fingerprint: str, files: dict[str, CacheFileEntry] | None = None) -> None:
        self.scan_fingerprint = scan_fingerprint
        self._files: dict[str, CacheFileEntry] = dict(files or {})

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def lookup(self, path: str, mtime_ns: int) -> list[Finding] | None:
        """Return cached findings for ``path`` at exactly ``mtime_ns``, or ``None`` on a miss."""
        entry = self._files.get(path)
        if entry is None or entry["mtime_ns"] != mtime_ns:
            return None
        return deserialize_findings(entry["findings"])

    def store(self, path: str, mtime_ns: int, findings: Iterable[Finding]) -> None:
        """Record findings for ``path``, replacing any previous entry."""
        self._files[path] = {
            "mtime_ns": mtime_ns,
            "findings": [finding.to_dict() for finding in findings],
        }

    def prune(self, keep: Iterable[str]) -> int:
        """Drop entries whose path is not in ``keep``; return how many were removed."""
        wanted = set(keep)
        stale = [path for path in self._files if path not in wanted]
        for path in stale:
            del self._files[path]
        return len(stale)

    def to_namespace(self) -> CacheNamespace:
        return {
            "scan_fingerprint": self.scan_fingerprint,
            "files": dict(sorted(self._files.items())),
        }


def load_cache(cache_path: Path, scan_fingerprint: str) -> ScanCache:
    """Load the namespace for ``scan_fingerprint``; any unreadable or invalid file yields an empty cache."""
    payload = load_cache_payload(cache_path)
    namespace = payload["namespaces"].get(scan_fingerprint)
    if namespace is None:
        return ScanCache(scan_fingerprint)
    return ScanCache(scan_fingerprint, namespace["files"])


def load_cache_payload(cache_path: Path) -> CachePayload:
    """Load a cache file if valid, otherwise return a new cache payload."""
    if not cache_path.is_file():
        return new_cache()

    payload = load_versioned_json(cache_path, version=CACHE_VERSION, label="cache")
    if payload is None:
        return new_cache()

    raw_namespaces = payload.get("namespaces")
    if not isinstance(raw_namespaces, dict):
        return new_cache()

    namespaces: dict[str, CacheNamespace] = {}
    for key, value in raw_namespaces.items():
        if not isinstance(key, str) or not isinstance(value, dict):
            continue
        namespaces[key] = {
            "scan_fingerprint": key,
            "files": _normalize_files(value.get("files")),
        }

    return {
        "version": CACHE_VERSION,
        "namespaces": namespaces,
    }


def save_cache(cache_path: Path, cache: ScanCache) -> None:
    """Persist ``cache`` atomically, replacing any older namespaces in the file.

    Only the current namespace is kept so the file does not grow with every
    change of detector selection.
    """
    payload = new_cache()
    payload["namespaces"][cache.scan_fingerprint] = cache.to_namespace()
    write_json_atomic(
        path=cache_path,
        payload=payload,
        temp_prefix=CACHE_TEMP_PREFIX,
        temp_suffix=CACHE_TEMP_SUFFIX,
    )


def _normalize_files(raw_files: object) -> dict[str, CacheFileEntry]:
    if not isinstance(raw_files, dict):
        return {}

    files: dict[str, CacheFileEntry] = {}
    for key, value in raw_files.items():
        if not isinstance(key, str) or not isinstance(value, dict):
            continue

        mtime_ns = value.get("mtime_ns")
        findings = value.get("findings")

        if isinstance(mtime_ns, bool) or not isinstance(mtime_ns, int):
            continue
        if not isinstance(findings, list):
            continue

        files[key] = {
            "mtime_ns": mtime_ns,
            "findings": [finding for finding in findings if isinstance(finding, dict)],
        }
    return files
