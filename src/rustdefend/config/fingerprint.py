"""Stable config fingerprinting for cache namespacing."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from dataclasses import asdict

from rustdefend.config.model import RustDefendConfig
from rustdefend.detectors.custom_rules import CustomRule


def config_fingerprint(config: RustDefendConfig, custom_rules: Iterable[CustomRule] = ()) -> str:
    """Return a SHA-256 over the config and the full definition of every custom rule.

    Editing a custom rule's pattern without renaming it still changes the fingerprint.
    """
    payload = {
        "config": asdict(config),
        "custom_rules": sorted((asdict(rule) for rule in custom_rules), key=lambda rule: rule["id"]),
    }
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()
