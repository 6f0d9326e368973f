"""Constants for source and manifest discovery."""

from __future__ import annotations

RUST_SOURCE_SUFFIX: str = ".rs"
MANIFEST_FILENAME: str = "Cargo.toml"

# Directory names never descended into when collecting Rust sources.
EXCLUDED_SOURCE_DIRS: frozenset[str] = frozenset({"target", "tests", "test", "fuzz", "vendor", "node_modules"})
EXCLUDED_MANIFEST_DIRS: frozenset[str] = frozenset({"target", "node_modules"})
EXCLUDED_SOURCE_SUFFIXES: tuple[str, ...] = ("_test.rs",)
EXCLUDED_SOURCE_NAMES: frozenset[str] = frozenset({"tests.rs"})
