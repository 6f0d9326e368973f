"""Solana program detectors."""

from __future__ import annotations

from rustdefend.analysis.syntax import FunctionItem
from rustdefend.constants.detectors import (
    ACCOUNT_MUTATION_MARKERS,
    CHECKED_ARITHMETIC_OPS,
    CHECKED_UNWRAP_WINDOW,
    DESERIALIZATION_MARKERS,
    SIGNER_CPI_WRAPPER_NAMES,
    SIGNER_SKIP_FRAGMENTS,
    SIGNER_SKIP_PARAM_FRAGMENTS,
    SIGNER_SKIP_PREFIXES,
    SIGNER_SKIP_SUFFIXES,
    SOLANA_FRAMEWORK_PATH_FRAGMENTS,
    SOLANA_SOURCE_MARKERS,
)
from rustdefend.detectors.base import Detector
from rustdefend.detectors.common import contains_any, function_finding
from rustdefend.model import Finding
from rustdefend.scanner.context import ScanContext


class MissingSignerCheckDetector(Detector):
    """Flag entry points that mutate a raw ``AccountInfo`` without checking ``is_signer``.

    Helpers, CPI wrappers, and Anchor handlers (``Signer``/``Context``) are skipped.
    A caller performing the signer check, per file or project-wide, clears the finding.
    """

    detector_id = "SOL-001"
    name = "missing-signer-check"
    description = "Detects functions accepting AccountInfo without verifying is_signer"
    severity = "critical"
    confidence = "high"
    ecosystem = "solana"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        if contains_any(ctx.file, SOLANA_FRAMEWORK_PATH_FRAGMENTS):
            return []

        findings: list[Finding] = []
        for function in ctx.functions:
            if not function.is_free_function or _skip_signer_candidate(function):
                continue

            unchecked = _unchecked_account_params(function)
            if not unchecked:
                continue

            body = function.body_text
            if "is_signer" in body or "has_signer" in body:
                continue
            if not contains_any(body, ACCOUNT_MUTATION_MARKERS):
                continue
            if ctx.caller_has_check(function.name, "signer"):
                continue

            rendered = ", ".join(f"'{param}'" for param in unchecked)
            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    message=f"Function '{function.name}' accepts AccountInfo {rendered} without verifying is_signer",
                    recommendation=(
                        "Add `if !account.is_signer { return Err(...) }` check, or use Anchor's `Signer<'info>` type"
                    ),
                )
            )
        return findings


def _skip_signer_candidate(function: FunctionItem) -> bool:
    name = function.name.lower()
    if function.has_attribute("test"):
        return True
    if name.startswith(SIGNER_SKIP_PREFIXES) or name.endswith(SIGNER_SKIP_SUFFIXES):
        return True
    if name.startswith("process_") and name != "process_instruction":
        return True
    if name in SIGNER_CPI_WRAPPER_NAMES or contains_any(name, SIGNER_SKIP_FRAGMENTS):
        return True
    # Anchor validates signers through account constraints.
    text = function.text
    return "Signer" in text or "Context<" in text or "Context <" in text


def _unchecked_account_params(function: FunctionItem) -> list[str]:
    unchecked: list[str] = []
    for param in function.parameters:
        if "AccountInfo" not in param.type_text:
            continue
        if "[" in param.type_text or "Vec" in param.type_text:
            continue
        if contains_any(param.name.lower(), SIGNER_SKIP_PARAM_FRAGMENTS):
            continue
        unchecked.append(param.name)
    return unchecked


class MissingOwnerCheckDetector(Detector):
    """Flag functions that deserialize account data without comparing the account owner."""

    detector_id = "SOL-002"
    name = "missing-owner-check"
    description = "Detects account deserialization without verifying the account owner"
    severity = "critical"
    confidence = "high"
    ecosystem = "solana"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        if not contains_any(ctx.source, SOLANA_SOURCE_MARKERS):
            return []

        findings: list[Finding] = []
        for function in ctx.functions:
            if not function.is_free_function:
                continue
            text = function.text
            if ("Account<" in text or "Account <" in text) and "AccountInfo" not in text:
                continue

            body = function.body_text
            if not contains_any(body, DESERIALIZATION_MARKERS):
                continue
            if "owner" in body and ("program_id" in body or "key()" in body):
                continue
            if ctx.caller_has_check(function.name, "owner"):
                continue

            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    message=f"Function '{function.name}' deserializes account data without verifying account owner",
                    recommendation=(
                        "Add `if account.owner != program_id { return Err(...) }` before deserialization, "
                        "or use Anchor's `Account<'info, T>`"
                    ),
                )
            )
        return findings


class CheckedArithmeticUnwrapDetector(Detector):
    """Flag ``checked_*(..).unwrap()``, which panics instead of returning an error."""

    detector_id = "SOL-020"
    name = "checked-arithmetic-unwrap"
    description = "Detects checked arithmetic immediately unwrapped instead of propagating errors"
    severity = "medium"
    confidence = "high"
    ecosystem = "solana"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        if not contains_any(ctx.source, SOLANA_SOURCE_MARKERS):
            return []

        findings: list[Finding] = []
        for function in ctx.functions:
            if function.is_nested or function.is_test or function.body is None:
                continue
            body = function.body_text
            body_line = function.body.start_point[0] + 1
            for op in CHECKED_ARITHMETIC_OPS:
                position = _unwrapped_call_position(body, op)
                if position is None:
                    continue
                findings.append(
                    function_finding(
                        self,
                        ctx,
                        function,
                        line=body_line + body.count("\n", 0, position),
                        message=(
                            f"Function '{function.name}' calls .{op}().unwrap(); "
                            "use .ok_or(...)? to propagate errors instead of panicking"
                        ),
                        recommendation=(
                            f"Replace .{op}().unwrap() with .{op}().ok_or(MyError::Overflow)? "
                            "to return an error instead of panicking"
                        ),
                    )
                )
        return findings


def _unwrapped_call_position(body: str, op: str) -> int | None:
    """Return the offset of the first ``op(`` whose following window unwraps without propagating."""
    needle = f"{op}("
    start = body.find(needle)
    while start != -1:
        window = body[start : start + CHECKED_UNWRAP_WINDOW]
        if ".unwrap()" in window and ".ok_or" not in window and "?" not in window:
            return start
        start = body.find(needle, start + len(needle))
    return None


SOLANA_DETECTORS: tuple[type[Detector], ...] = (
    MissingSignerCheckDetector,
    MissingOwnerCheckDetector,
    CheckedArithmeticUnwrapDetector,
)
