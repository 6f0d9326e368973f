"""End-to-end tests for ``scan_workspace``."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from rustdefend.detectors.dependencies import SupplyChainRiskDetector
from rustdefend.detectors.solana import CheckedArithmeticUnwrapDetector
from rustdefend.exceptions import ConfigError, NoSourceFilesError, ScanTargetError
from rustdefend.scanner import scan_workspace

UNCHECKED = """
use solana_program::account_info::AccountInfo;

pub fn withdraw(user: &AccountInfo, amount: u64) {
    **user.try_borrow_mut_lamports().unwrap() -= amount;
}
"""

GUARDED = """
use solana_program::account_info::AccountInfo;

pub fn withdraw(user: &AccountInfo, amount: u64) {
    if !user.is_signer {
        return;
    }
    **user.try_borrow_mut_lamports().unwrap() -= amount;
}
"""

MIXED = """
use solana_program::account_info::AccountInfo;

pub fn withdraw(user: &AccountInfo, amount: u64) {
    **user.try_borrow_mut_lamports().unwrap() -= amount;
}

pub fn total(a: u64, b: u64) -> u64 {
    a.checked_add(b).unwrap()
}
"""


def _ids(result) -> list[str]:
    return [finding.detector_id for finding in result.findings]


def test_unchecked_account_mutation_yields_one_critical_finding(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED})

    result = scan_workspace(root=root)

    assert len(result.findings) == 1
    finding = result.findings[0]
    assert finding.detector_id == "SOL-001"
    assert finding.severity == "critical"
    assert finding.line == 3
    assert finding.column == 8
    assert finding.ecosystem == "solana"
    assert "'withdraw'" in finding.message
    assert finding.snippet.startswith("pub fn withdraw(")
    assert result.scanned_files == 1
    assert result.severity_counts["critical"] == 1


def test_signer_guard_removes_the_finding(write_tree) -> None:
    root = write_tree({"src/lib.rs": GUARDED})

    result = scan_workspace(root=root)

    assert result.findings == ()


def test_duplicate_dependency_reports_only_unpatched_occurrence(write_tree) -> None:
    root = write_tree(
        {
            "Cargo.toml": """
                [package]
                name = "demo"
                version = "0.1.0"

                [dependencies]
                cosmwasm-std = "1.5.4"

                [dev-dependencies]
                cosmwasm-std = "1.4.0"
            """,
            "src/lib.rs": "pub fn instantiate() {}\n",
        }
    )

    result = scan_workspace(root=root)

    assert _ids(result) == ["DEP-001"]
    finding = result.findings[0]
    assert finding.line == 9
    assert finding.file.endswith("Cargo.toml")
    assert '"1.4.0"' in finding.message
    assert finding.ecosystem == "cosmwasm"
    assert result.scanned_manifests == 1
    assert result.ecosystems == ("cosmwasm",)


def test_manifest_ecosystem_scopes_source_detectors(write_tree) -> None:
    root = write_tree(
        {
            "Cargo.toml": """
                [package]
                name = "demo"
                version = "0.1.0"

                [dependencies]
                cosmwasm-std = "2.1.0"
            """,
            "src/lib.rs": UNCHECKED,
        }
    )

    result = scan_workspace(root=root)

    assert result.findings == ()
    assert result.ecosystems == ("cosmwasm",)


def test_explicit_ecosystems_override_detection(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED})

    cosmwasm_only = scan_workspace(root=root, ecosystems=["cw"])
    with_unknown = scan_workspace(root=root, ecosystems=["sol", "bogus"])

    assert cosmwasm_only.findings == ()
    assert cosmwasm_only.ecosystems == ("cosmwasm",)
    assert _ids(with_unknown) == ["SOL-001"]
    assert any("bogus" in warning for warning in with_unknown.warnings)
    with pytest.raises(ConfigError):
        scan_workspace(root=root, ecosystems=["bogus"])


def test_scans_are_deterministic(write_tree) -> None:
    root = write_tree(
        {
            "src/lib.rs": MIXED,
            "src/other.rs": UNCHECKED,
            "programs/b/src/lib.rs": MIXED,
        }
    )

    first = scan_workspace(root=root, max_workers=4)
    second = scan_workspace(root=root, max_workers=1)

    assert first.findings == second.findings
    assert [finding.sort_key() for finding in first.findings] == sorted(
        finding.sort_key() for finding in first.findings
    )


def test_severity_and_id_selection(write_tree) -> None:
    root = write_tree({"src/lib.rs": MIXED})

    assert _ids(scan_workspace(root=root)) == ["SOL-001", "SOL-020"]
    assert _ids(scan_workspace(root=root, min_severity="high")) == ["SOL-001"]
    assert _ids(scan_workspace(root=root, severities=["medium"])) == ["SOL-020"]
    assert _ids(scan_workspace(root=root, detector_ids=["sol-020"])) == ["SOL-020"]
    assert _ids(scan_workspace(root=root, min_confidence="high")) == ["SOL-001", "SOL-020"]
    with pytest.raises(ConfigError):
        scan_workspace(root=root, min_confidence="bogus")


def test_config_thresholds_and_ignores(write_tree) -> None:
    root = write_tree(
        {
            "src/lib.rs": MIXED,
            ".rustdefend.yaml": """
                min_severity: critical
                ignore_files:
                  - generated/**
            """,
            "generated/bindings.rs": UNCHECKED,
        }
    )

    from_config = scan_workspace(root=root)
    overridden = scan_workspace(root=root, min_severity="low")

    assert _ids(from_config) == ["SOL-001"]
    assert from_config.scanned_files == 1
    assert _ids(overridden) == ["SOL-001", "SOL-020"]

    (root / ".rustdefend.yaml").write_text("ignore:\n  - sol-001\n", encoding="utf-8")
    assert _ids(scan_workspace(root=root)) == ["SOL-020"]


def test_invalid_config_falls_back_to_defaults(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED, ".rustdefend.yaml": "unknown_key: 1\n"})

    result = scan_workspace(root=root)

    assert _ids(result) == ["SOL-001"]
    assert any("unknown keys" in warning for warning in result.warnings)


def test_custom_rules_are_loaded(write_tree) -> None:
    root = write_tree(
        {
            "src/lib.rs": MIXED,
            "rules.yaml": """
                rules:
                  - id: CUSTOM-001
                    name: no-unwrap
                    severity: low
                    confidence: high
                    pattern: ".unwrap()"
                    message: Avoid unwrap in program code
                    recommendation: Propagate errors with ?
                  - id: SOL-001
                    name: shadow
                    severity: low
                    confidence: low
                    pattern: fn
                    message: Shadows a built-in
                    recommendation: Rename
            """,
        }
    )

    result = scan_workspace(root=root, rules_path=root / "rules.yaml", detector_ids=["CUSTOM-001"])

    assert [(finding.detector_id, finding.line) for finding in result.findings] == [
        ("CUSTOM-001", 4),
        ("CUSTOM-001", 8),
    ]
    assert result.findings[0].message == "Avoid unwrap in program code (in function 'withdraw')"
    assert any("SOL-001" in warning for warning in result.warnings)


def test_malformed_rule_file_is_a_warning(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED, "rules.yaml": "rules: [unclosed\n"})

    result = scan_workspace(root=root, rules_path=root / "rules.yaml")

    assert _ids(result) == ["SOL-001"]
    assert any("custom rules" in warning for warning in result.warnings)


def test_suppression_marker_drops_finding(write_tree) -> None:
    suppressed = UNCHECKED.replace(
        "pub fn withdraw",
        "// rustdefend-ignore[SOL-001]\npub fn withdraw",
    )
    root = write_tree({"src/lib.rs": suppressed})

    assert scan_workspace(root=root).findings == ()


def test_form_feed_keeps_snippets_and_markers_aligned(write_tree) -> None:
    shifted = UNCHECKED.replace("pub fn withdraw", "// layout \x0c page\npub fn withdraw")
    distant_marker = UNCHECKED.replace(
        "pub fn withdraw",
        "// rustdefend-ignore[SOL-001]\n// layout \x0c page\npub fn withdraw",
    )
    adjacent_marker = UNCHECKED.replace(
        "pub fn withdraw",
        "// layout \x0c page\n// rustdefend-ignore[SOL-001]\npub fn withdraw",
    )
    root = write_tree({"src/a.rs": shifted, "src/b.rs": distant_marker, "src/c.rs": adjacent_marker})

    result = scan_workspace(root=root)

    assert [(Path(finding.file).name, finding.line) for finding in result.findings] == [("a.rs", 4), ("b.rs", 5)]
    assert {finding.snippet for finding in result.findings} == {"pub fn withdraw(user: &AccountInfo, amount: u64) {"}


def test_failing_detectors_do_not_block_the_scan(write_tree, monkeypatch, caplog) -> None:
    def _raise(self, *_args):  # type: ignore[no-untyped-def]
        raise RuntimeError("detector bug")

    monkeypatch.setattr(CheckedArithmeticUnwrapDetector, "detect", _raise)
    monkeypatch.setattr(SupplyChainRiskDetector, "detect_manifest", _raise)
    root = write_tree(
        {
            "Cargo.toml": """
                [package]
                name = "vault"
                version = "0.1.0"

                [dependencies]
                solana-program = "1.18.0"
                cosmwasm-std = "1.4.0"
            """,
            "src/lib.rs": MIXED,
            "src/other.rs": UNCHECKED,
        }
    )

    with caplog.at_level(logging.ERROR, logger="rustdefend"):
        result = scan_workspace(root=root, ecosystems=["solana", "cosmwasm"])

    assert _ids(result) == ["DEP-001", "SOL-001", "SOL-001"]
    assert "Detector SOL-020 failed" in caplog.text
    assert "Detector DEP-002 failed" in caplog.text


def test_unparsable_file_is_skipped_with_warning(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED, "src/broken.rs": "fn broken( {\n"})

    result = scan_workspace(root=root)

    assert _ids(result) == ["SOL-001"]
    assert result.scanned_files == 2
    assert any("broken.rs" in warning for warning in result.warnings)


def test_cross_file_mode_uses_callers_in_other_files(write_tree) -> None:
    root = write_tree(
        {
            "src/entry.rs": """
                use solana_program::account_info::AccountInfo;

                pub fn process_instruction(user: &AccountInfo, amount: u64) {
                    if !user.is_signer {
                        return;
                    }
                    apply_withdrawal(user, amount);
                }
            """,
            "src/apply.rs": """
                use solana_program::account_info::AccountInfo;

                pub fn apply_withdrawal(user: &AccountInfo, amount: u64) {
                    **user.try_borrow_mut_lamports().unwrap() -= amount;
                }
            """,
        }
    )

    per_file = scan_workspace(root=root)
    project_wide = scan_workspace(root=root, cross_file=True)

    assert _ids(per_file) == ["SOL-001"]
    assert per_file.findings[0].file.endswith("src/apply.rs")
    assert project_wide.findings == ()


def test_incremental_scan_reuses_unchanged_files(write_tree, tmp_path: Path) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED, "src/math.rs": "pub fn add(a: u64) -> u64 {\n    a\n}\n"})
    cache_path = tmp_path / "cache.json"

    first = scan_workspace(root=root, incremental=True, cache_path=cache_path)
    second = scan_workspace(root=root, incremental=True, cache_path=cache_path)

    assert (first.cache_hits, first.cache_misses) == (0, 2)
    assert (second.cache_hits, second.cache_misses) == (2, 0)
    assert second.findings == first.findings

    lib = root / "src" / "lib.rs"
    lib.write_text(GUARDED.lstrip("\n"), encoding="utf-8")
    stat = lib.stat()
    os.utime(lib, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))

    third = scan_workspace(root=root, incremental=True, cache_path=cache_path)

    assert (third.cache_hits, third.cache_misses) == (1, 1)
    assert third.findings == ()


def test_incremental_cache_defaults_to_scan_root(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED})

    scan_workspace(root=root, incremental=True)

    assert (root / ".rustdefend-cache.json").is_file()


def test_baseline_suppresses_known_findings(write_tree, tmp_path: Path) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED})
    baseline = tmp_path / "baseline.json"

    saved = scan_workspace(root=root, save_baseline_path=baseline)
    assert _ids(saved) == ["SOL-001"]

    known = scan_workspace(root=root, baseline_path=baseline)
    assert known.findings == ()
    assert known.baseline_suppressed == 1

    shifted = UNCHECKED.replace(
        "pub fn withdraw",
        "pub fn sweep(owner: &AccountInfo) {\n    owner.try_borrow_mut_data().unwrap()[0] = 0;\n}\n\npub fn withdraw",
    )
    (root / "src" / "lib.rs").write_text(shifted.lstrip("\n"), encoding="utf-8")

    after_edit = scan_workspace(root=root, baseline_path=baseline)
    assert [finding.message.split("'")[1] for finding in after_edit.findings] == ["sweep"]
    assert after_edit.baseline_suppressed == 1


def test_single_file_root(write_tree) -> None:
    root = write_tree({"src/lib.rs": UNCHECKED})

    result = scan_workspace(root=root / "src" / "lib.rs")

    assert _ids(result) == ["SOL-001"]


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(ScanTargetError):
        scan_workspace(root=tmp_path / "missing")


def test_no_source_files_raises(write_tree) -> None:
    root = write_tree({"README.md": "# nothing here\n", "tests/only.rs": "fn t() {}\n"})

    with pytest.raises(NoSourceFilesError):
        scan_workspace(root=root)
