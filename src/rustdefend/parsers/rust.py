"""Rust source parsing backed by the tree-sitter Rust grammar."""

from __future__ import annotations

from pathlib import Path

import tree_sitter_rust
from tree_sitter import Language, Parser

from rustdefend.exceptions import SourceParseError
from rustdefend.model import ParsedUnit

RUST_LANGUAGE: Language = Language(tree_sitter_rust.language())


def parse_rust_source(source: str, *, path: Path) -> ParsedUnit:
    """Parse Rust source text into a ``ParsedUnit``.

    A fresh ``Parser`` is created per call so that worker threads never share one.
    Trees containing syntax errors are rejected.
    """
    parser = Parser(RUST_LANGUAGE)
    tree = parser.parse(source.encode("utf-8"))
    if tree.root_node.has_error:
        raise SourceParseError(f"Syntax error in Rust source: {path}")

    return ParsedUnit(
        path=path,
        source=source,
        lines=_split_lines(source),
        tree=tree,
    )


def parse_rust_file(path: Path) -> ParsedUnit:
    """Read and parse one Rust source file."""
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceParseError(f"Unable to read Rust source: {path} ({exc})") from exc
    return parse_rust_source(source, path=path)


def _split_lines(source: str) -> tuple[str, ...]:
    """Split on ``\\n`` only, matching tree-sitter row numbering; ``\\r`` line ends are trimmed."""
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return tuple(line.removesuffix("\r") for line in lines)
