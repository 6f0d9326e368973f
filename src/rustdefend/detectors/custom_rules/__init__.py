"""User-defined substring rules loaded from YAML."""

from __future__ import annotations

from .engine import CustomRuleDetector
from .loader import LoadedRules, load_custom_rules
from .schema import CustomRule, validate_custom_rule

__all__ = ["CustomRule", "CustomRuleDetector", "LoadedRules", "load_custom_rules", "validate_custom_rule"]
