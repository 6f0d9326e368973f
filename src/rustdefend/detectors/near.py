"""NEAR contract detectors."""

from __future__ import annotations

from rustdefend.constants.detectors import ACCESS_CONTROL_MARKERS, NEAR_SOURCE_MARKERS
from rustdefend.detectors.base import Detector
from rustdefend.detectors.common import contains_any, function_finding, is_comment_line
from rustdefend.model import Finding
from rustdefend.scanner.context import ScanContext


class SignerVsPredecessorDetector(Detector):
    """Flag access control built on ``signer_account_id()``.

    The signer is the transaction originator and differs from the direct caller
    in cross-contract calls.
    """

    detector_id = "NEAR-002"
    name = "signer-vs-predecessor"
    description = "Detects signer_account_id() used for access control instead of predecessor_account_id()"
    severity = "high"
    confidence = "high"
    ecosystem = "near"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        findings: list[Finding] = []
        for function in ctx.functions:
            if function.is_nested or function.is_test:
                continue
            body = function.body_text
            if "signer_account_id" not in body or not contains_any(body, ACCESS_CONTROL_MARKERS):
                continue

            signer_line = self._signer_line(ctx, start=function.line, end=function.end_line)
            if signer_line is None:
                continue
            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    line=signer_line,
                    message=(
                        f"Function '{function.name}' uses signer_account_id() for access control "
                        "instead of predecessor_account_id()"
                    ),
                    recommendation=(
                        "Use env::predecessor_account_id() for access control. signer_account_id() returns the "
                        "transaction originator which can differ from the direct caller in cross-contract calls"
                    ),
                )
            )
        return findings

    @staticmethod
    def _signer_line(ctx: ScanContext, *, start: int, end: int) -> int | None:
        """Return the first code line in range using ``signer_account_id`` outside a string literal."""
        for line in range(start, end + 1):
            text = ctx.line_text(line)
            if is_comment_line(text):
                continue
            if "signer_account_id" in text.split('"', 1)[0]:
                return line
        return None


class MissingPrivateCallbackDetector(Detector):
    """Flag public callback methods lacking ``#[private]``."""

    detector_id = "NEAR-006"
    name = "missing-private-callback"
    description = "Detects public callback methods without the #[private] attribute"
    severity = "critical"
    confidence = "high"
    ecosystem = "near"

    def detect(self, ctx: ScanContext) -> list[Finding]:
        if not contains_any(ctx.source, NEAR_SOURCE_MARKERS):
            return []

        findings: list[Finding] = []
        for function in ctx.functions:
            if function.impl_type is None or function.is_nested or not function.is_public:
                continue
            name = function.name
            if not (name.startswith(("on_", "handle_")) or "callback" in name):
                continue
            if function.has_attribute("private"):
                continue
            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    message=f"Callback method '{name}' is public without #[private] attribute",
                    recommendation=(
                        "Add #[private] attribute to ensure only the contract itself can call this callback"
                    ),
                )
            )
        return findings


NEAR_DETECTORS: tuple[type[Detector], ...] = (
    SignerVsPredecessorDetector,
    MissingPrivateCallbackDetector,
)
