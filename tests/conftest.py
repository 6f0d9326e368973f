"""Shared pytest fixtures for writing Rust projects and building scan contexts."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import TypeAlias

import pytest

from rustdefend.analysis import ProjectCallGraph, build_call_graph, iter_functions
from rustdefend.model import ParsedUnit
from rustdefend.parsers import parse_rust_source
from rustdefend.scanner.context import ScanContext
from rustdefend.types import Ecosystem

WriteTree: TypeAlias = Callable[[dict[str, str]], Path]
MakeContext: TypeAlias = Callable[..., ScanContext]


@pytest.fixture()
def write_tree(tmp_path: Path) -> WriteTree:
    """Return a helper that writes ``{relative_path: content}`` under a fresh project root."""
    root = tmp_path / "project"

    def _write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root.resolve()

    return _write


def parse_unit(source: str, name: str = "lib.rs") -> ParsedUnit:
    """Parse dedented Rust source into a unit rooted at a fake path."""
    return parse_rust_source(textwrap.dedent(source).lstrip("\n"), path=Path("/workspace/src") / name)


@pytest.fixture()
def make_context() -> MakeContext:
    """Return a helper that parses source and wraps it in a ``ScanContext``."""

    def _make(
        source: str,
        ecosystem: Ecosystem = "solana",
        *,
        name: str = "lib.rs",
        project_graph: ProjectCallGraph | None = None,
    ) -> ScanContext:
        unit = parse_unit(source, name)
        return ScanContext(
            unit=unit,
            ecosystem=ecosystem,
            call_graph=build_call_graph(unit),
            functions=tuple(iter_functions(unit)),
            project_graph=project_graph,
        )

    return _make
