"""Shared file I/O helpers."""

from .json_io import load_json_file, load_versioned_json, write_json_atomic

__all__ = ["load_json_file", "load_versioned_json", "write_json_atomic"]
