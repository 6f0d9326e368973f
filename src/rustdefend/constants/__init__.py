"""Typed module-level constants grouped by concern."""
