"""Parsers for Rust sources and Cargo manifests."""

from .manifest import CargoManifest, DependencyEntry, parse_manifest, read_manifest
from .rust import parse_rust_file, parse_rust_source

__all__ = [
    "CargoManifest",
    "DependencyEntry",
    "parse_manifest",
    "parse_rust_file",
    "parse_rust_source",
    "read_manifest",
]
