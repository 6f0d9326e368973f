"""CosmWasm contract detectors."""

from __future__ import annotations

from rustdefend.constants.detectors import (
    MIGRATE_AUTH_MARKERS,
    MIGRATE_MIN_BODY_CHARS,
    MIGRATE_VERSION_MARKERS,
    STORAGE_MUTATION_MARKERS,
)
from rustdefend.detectors.base import Detector
from rustdefend.detectors.common import contains_any, function_finding
from rustdefend.model import Finding
from rustdefend.scanner.context import ScanContext


class MissingSenderCheckDetector(Detector):
    """Flag execute handlers that write storage without ever reading ``info.sender``."""

    detector_id = "CW-003"
    name = "missing-sender-check"
    description = "Detects execute handlers mutating storage without checking info.sender"
    severity = "critical"
    confidence = "medium"
    ecosystem = "cosmwasm"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        findings: list[Finding] = []
        for function in ctx.functions:
            if not function.is_free_function or "execute" not in function.name:
                continue
            body = function.body_text
            if "ExecuteMsg" not in body or not contains_any(body.replace(" ", ""), STORAGE_MUTATION_MARKERS):
                continue
            if "sender" in body:
                continue
            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    message=f"Execute handler '{function.name}' mutates storage without checking info.sender",
                    recommendation="Add `if info.sender != authorized_addr { return Err(...) }` before storage mutations",
                )
            )
        return findings


class UnguardedMigrateDetector(Detector):
    """Flag non-trivial migrate handlers with neither an admin check nor version validation."""

    detector_id = "CW-010"
    name = "unguarded-migrate-entry"
    description = "Detects migrate entry points without admin or contract version checks"
    severity = "medium"
    confidence = "medium"
    ecosystem = "cosmwasm"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        findings: list[Finding] = []
        for function in ctx.functions:
            if not function.is_free_function:
                continue
            if function.name != "migrate" and not function.name.startswith("migrate_"):
                continue
            if function.has_attribute("test"):
                continue

            body = function.body_text
            if len("".join(body.split())) < MIGRATE_MIN_BODY_CHARS:
                continue
            if contains_any(body, MIGRATE_AUTH_MARKERS) or contains_any(body, MIGRATE_VERSION_MARKERS):
                continue

            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    message=f"Migrate handler '{function.name}' has no admin/sender check or version validation",
                    recommendation=(
                        "Add admin authorization check (info.sender) and/or version validation "
                        "(cw2::set_contract_version) in migrate handler"
                    ),
                )
            )
        return findings


COSMWASM_DETECTORS: tuple[type[Detector], ...] = (
    MissingSenderCheckDetector,
    UnguardedMigrateDetector,
)
