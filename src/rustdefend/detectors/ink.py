"""ink! contract detectors."""

from __future__ import annotations

from rustdefend.constants.detectors import (
    INK_CALLER_CHECK_MARKERS,
    INK_EXEMPT_MESSAGES,
    INK_EXEMPT_PREFIXES,
    INK_SENSITIVE_FIELD_FRAGMENTS,
    INK_VALUE_TRANSFER_MARKERS,
)
from rustdefend.detectors.base import Detector
from rustdefend.detectors.common import contains_any, function_finding, self_field_writes
from rustdefend.model import Finding
from rustdefend.scanner.context import ScanContext


class MissingCallerCheckDetector(Detector):
    """Flag ``#[ink(message)]`` methods that write storage without verifying the caller.

    Payable messages and writes scoped to ``self.env().caller()`` are not reported.
    """

    detector_id = "INK-003"
    name = "ink-missing-caller-check"
    description = "Detects #[ink(message)] functions that write storage without caller check"
    severity = "critical"
    confidence = "medium"
    ecosystem = "ink"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        findings: list[Finding] = []
        for function in ctx.functions:
            if function.impl_type is None or function.body is None:
                continue
            message_attrs = [attr for attr in function.attributes if "ink" in attr and "message" in attr]
            if not message_attrs or any("payable" in attr for attr in message_attrs):
                continue
            if "&mut self" not in function.signature_text.replace("& mut", "&mut"):
                continue
            if _is_exempt(function.name):
                continue

            written = self_field_writes(function.body)
            if not written:
                continue
            body = function.body_text
            if _has_caller_check(body):
                continue

            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    message=(
                        f"#[ink(message)] '{function.name}' writes to storage without verifying caller"
                        f"{_risk_context(body, written)}"
                    ),
                    recommendation=(
                        "Add `assert_eq!(self.env().caller(), self.owner)` or similar caller verification "
                        "before storage writes"
                    ),
                )
            )
        return findings


def _is_exempt(name: str) -> bool:
    lowered = name.lower()
    return lowered in INK_EXEMPT_MESSAGES or lowered.startswith(INK_EXEMPT_PREFIXES)


def _has_caller_check(body: str) -> bool:
    if contains_any(body, INK_CALLER_CHECK_MARKERS):
        return True
    compares = "== " in body or "!= " in body
    return compares and ("owner" in body or "admin" in body)


def _risk_context(body: str, written: tuple[str, ...]) -> str:
    if contains_any(body, INK_VALUE_TRANSFER_MARKERS):
        return " (transfers value)"
    if any(contains_any(field.lower(), INK_SENSITIVE_FIELD_FRAGMENTS) for field in written):
        return " (modifies sensitive field)"
    return ""


INK_DETECTORS: tuple[type[Detector], ...] = (MissingCallerCheckDetector,)
