"""Tests for the mtime-keyed incremental cache."""

from __future__ import annotations

import json
from pathlib import Path

from rustdefend.model import Finding
from rustdefend.scanner.cache import ScanCache, build_scan_fingerprint, load_cache, load_cache_payload, save_cache


def _finding(line: int = 3) -> Finding:
    return Finding(
        detector_id="SOL-001",
        name="missing-signer-check",
        severity="critical",
        confidence="high",
        message="Function 'withdraw' accepts AccountInfo 'user' without verifying is_signer",
        file="/repo/src/lib.rs",
        line=line,
        column=8,
        snippet="pub fn withdraw(user: &AccountInfo) {",
        recommendation="Check is_signer",
        ecosystem="solana",
    )


def _fingerprint() -> str:
    return build_scan_fingerprint(detector_ids=["SOL-001"], config_fingerprint="cfg")


def test_store_then_lookup_hits_only_on_exact_mtime() -> None:
    cache = ScanCache(_fingerprint())
    cache.store("/repo/src/lib.rs", 100, [_finding()])

    assert cache.lookup("/repo/src/lib.rs", 100) == [_finding()]
    assert cache.lookup("/repo/src/lib.rs", 101) is None
    assert cache.lookup("/repo/src/lib.rs", 99) is None
    assert cache.lookup("/repo/src/other.rs", 100) is None


def test_store_overwrites_previous_entry() -> None:
    cache = ScanCache(_fingerprint())
    cache.store("a.rs", 1, [_finding(1)])
    cache.store("a.rs", 2, [])

    assert cache.lookup("a.rs", 1) is None
    assert cache.lookup("a.rs", 2) == []


def test_prune_removes_undiscovered_paths() -> None:
    cache = ScanCache(_fingerprint())
    cache.store("a.rs", 1, [])
    cache.store("b.rs", 1, [])

    removed = cache.prune(["a.rs"])

    assert removed == 1
    assert "a.rs" in cache
    assert "b.rs" not in cache
    assert len(cache) == 1


def test_save_and_load_roundtrip(tmp_path: Path) -> None:
    cache_path = tmp_path / ".rustdefend-cache.json"
    fingerprint = _fingerprint()
    cache = ScanCache(fingerprint)
    cache.store("/repo/src/lib.rs", 42, [_finding()])

    save_cache(cache_path, cache)
    loaded = load_cache(cache_path, fingerprint)

    assert loaded.lookup("/repo/src/lib.rs", 42) == [_finding()]
    assert not list(tmp_path.glob("*.tmp"))


def test_other_fingerprint_starts_empty(tmp_path: Path) -> None:
    cache_path = tmp_path / ".rustdefend-cache.json"
    cache = ScanCache(_fingerprint())
    cache.store("a.rs", 1, [_finding()])
    save_cache(cache_path, cache)

    other = build_scan_fingerprint(detector_ids=["SOL-001", "SOL-002"], config_fingerprint="cfg")

    assert len(load_cache(cache_path, other)) == 0


def test_corrupt_cache_loads_empty(tmp_path: Path) -> None:
    cache_path = tmp_path / ".rustdefend-cache.json"
    cache_path.write_text("{not json", encoding="utf-8")

    assert len(load_cache(cache_path, _fingerprint())) == 0


def test_wrong_version_and_malformed_entries(tmp_path: Path) -> None:
    cache_path = tmp_path / ".rustdefend-cache.json"
    cache_path.write_text(json.dumps({"version": 999, "namespaces": {}}), encoding="utf-8")
    assert load_cache_payload(cache_path)["namespaces"] == {}

    fingerprint = _fingerprint()
    cache_path.write_text(
        json.dumps(
            {
                "version": 1,
                "namespaces": {
                    fingerprint: {
                        "scan_fingerprint": fingerprint,
                        "files": {
                            "good.rs": {"mtime_ns": 5, "findings": [_finding().to_dict(), "junk"]},
                            "bool.rs": {"mtime_ns": True, "findings": []},
                            "bad.rs": {"mtime_ns": 5, "findings": "nope"},
                        },
                    }
                },
            }
        ),
        encoding="utf-8",
    )

    cache = load_cache(cache_path, fingerprint)

    assert len(cache) == 1
    assert cache.lookup("good.rs", 5) == [_finding()]


def test_missing_cache_file_is_empty(tmp_path: Path) -> None:
    assert len(load_cache(tmp_path / "absent.json", _fingerprint())) == 0


def test_fingerprint_changes_with_inputs() -> None:
    base = build_scan_fingerprint(detector_ids=["SOL-001", "CW-003"], config_fingerprint="cfg")

    assert base == build_scan_fingerprint(detector_ids=["CW-003", "SOL-001"], config_fingerprint="cfg")
    assert base != build_scan_fingerprint(detector_ids=["SOL-001"], config_fingerprint="cfg")
    assert base != build_scan_fingerprint(detector_ids=["SOL-001", "CW-003"], config_fingerprint="other")
    assert base != build_scan_fingerprint(
        detector_ids=["SOL-001", "CW-003"],
        config_fingerprint="cfg",
        ecosystem_scope=("solana",),
    )
    assert base != build_scan_fingerprint(
        detector_ids=["SOL-001", "CW-003"],
        config_fingerprint="cfg",
        project_graph_digest="abc",
    )
