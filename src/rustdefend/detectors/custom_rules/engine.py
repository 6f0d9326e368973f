"""CustomRuleDetector: adapter that wraps a user rule as a Detector."""

from __future__ import annotations

from rustdefend.analysis.syntax import first_line_containing
from rustdefend.detectors.base import Detector, validate_detector_metadata
from rustdefend.detectors.common import function_finding
from rustdefend.detectors.custom_rules.schema import CustomRule
from rustdefend.model import Finding
from rustdefend.scanner.context import ScanContext


class CustomRuleDetector(Detector):
    """Detector backed by a user rule definition.

    Reports each function whose line span contains the rule's pattern, once,
    at the first matching line. A rule without an ecosystem runs for every
    ecosystem.
    """

    detector_id = "_custom_rule_template"

    def __init__(self, rule: CustomRule) -> None:
        validate_detector_metadata(
            type(self).__name__,
            detector_id=rule.id,
            severity=rule.severity,
            confidence=rule.confidence,
        )
        self.rule = rule
        self.detector_id = rule.id
        self.name = rule.name
        self.description = rule.message
        self.severity = rule.severity
        self.confidence = rule.confidence
        self.ecosystem = rule.ecosystem

    def detect(self, ctx: ScanContext) -> list[Finding]:
        if self.rule.ecosystem is not None and ctx.ecosystem != self.rule.ecosystem:
            return []

        findings: list[Finding] = []
        for function in ctx.functions:
            if function.is_nested:
                continue
            if self.rule.exclude_tests and function.is_test:
                continue
            match_line = first_line_containing(ctx.unit, self.rule.pattern, start=function.line, end=function.end_line)
            if match_line is None:
                continue
            findings.append(
                function_finding(
                    self,
                    ctx,
                    function,
                    line=match_line,
                    message=f"{self.rule.message} (in function '{function.name}')",
                    recommendation=self.rule.recommendation,
                )
            )
        return findings
