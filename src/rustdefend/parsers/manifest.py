"""Cargo.toml reading with per-table dependency line lookup."""

from __future__ import annotations

import re
import tomllib
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeAlias

from rustdefend.exceptions import ManifestParseError

DEPENDENCY_TABLE_NAMES: tuple[str, ...] = ("dependencies", "dev-dependencies", "build-dependencies")

TablePath: TypeAlias = tuple[str, ...]


@dataclass(frozen=True)
class DependencyEntry:
    """One dependency declaration inside one dependency table."""

    section: TablePath
    key: str
    name: str
    version: str
    line: int
    git: str | None = None
    path: str | None = None
    rev: str | None = None
    tag: str | None = None
    branch: str | None = None
    workspace: bool = False

    @property
    def is_dev(self) -> bool:
        return self.section[-1] == "dev-dependencies"

    @property
    def section_name(self) -> str:
        return ".".join(self.section)


@dataclass(frozen=True)
class CargoManifest:
    """Parsed ``Cargo.toml`` plus its raw text for line lookups."""

    path: Path
    text: str
    data: Mapping[str, Any]
    dependencies: tuple[DependencyEntry, ...]

    @property
    def package_name(self) -> str | None:
        package = self.data.get("package")
        if isinstance(package, dict) and isinstance(package.get("name"), str):
            return package["name"]
        return None

    @property
    def has_package(self) -> bool:
        return isinstance(self.data.get("package"), dict)

    @property
    def workspace_members(self) -> tuple[str, ...]:
        workspace = self.data.get("workspace")
        if not isinstance(workspace, dict):
            return ()
        members = workspace.get("members")
        if not isinstance(members, list):
            return ()
        return tuple(member for member in members if isinstance(member, str))

    def dependency_names(self) -> frozenset[str]:
        """Return every crate name declared in any dependency table."""
        return frozenset(entry.name for entry in self.dependencies)


def read_manifest(path: Path) -> CargoManifest:
    """Read and parse a Cargo manifest from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(f"Unable to read manifest: {path} ({exc})") from exc
    return parse_manifest(text, path=path)


def parse_manifest(text: str, *, path: Path) -> CargoManifest:
    """Parse manifest text, collecting dependency entries from every dependency table."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestParseError(f"Invalid TOML in manifest: {path} ({exc})") from exc

    lines = text.splitlines()
    entries: list[DependencyEntry] = []
    for section, table in _iter_dependency_tables(data):
        for key, value in table.items():
            entry = _build_entry(section, key, value, lines)
            if entry is not None:
                entries.append(entry)

    return CargoManifest(path=path, text=text, data=data, dependencies=tuple(entries))


def _iter_dependency_tables(data: Mapping[str, Any]) -> Iterator[tuple[TablePath, Mapping[str, Any]]]:
    for name in DEPENDENCY_TABLE_NAMES:
        table = data.get(name)
        if isinstance(table, dict):
            yield (name,), table

    workspace = data.get("workspace")
    if isinstance(workspace, dict) and isinstance(workspace.get("dependencies"), dict):
        yield ("workspace", "dependencies"), workspace["dependencies"]

    targets = data.get("target")
    if isinstance(targets, dict):
        for target_name, target_tables in targets.items():
            if not isinstance(target_tables, dict):
                continue
            for name in DEPENDENCY_TABLE_NAMES:
                table = target_tables.get(name)
                if isinstance(table, dict):
                    yield ("target", target_name, name), table


def _build_entry(section: TablePath, key: str, value: object, lines: list[str]) -> DependencyEntry | None:
    line = locate_dependency_line(lines, section, key)
    if isinstance(value, str):
        return DependencyEntry(section=section, key=key, name=key, version=value, line=line)
    if not isinstance(value, dict):
        return None

    package = value.get("package")
    version = value.get("version")
    return DependencyEntry(
        section=section,
        key=key,
        name=package if isinstance(package, str) else key,
        version=version if isinstance(version, str) else "",
        line=line,
        git=_optional_str(value.get("git")),
        path=_optional_str(value.get("path")),
        rev=_optional_str(value.get("rev")),
        tag=_optional_str(value.get("tag")),
        branch=_optional_str(value.get("branch")),
        workspace=value.get("workspace") is True,
    )


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def locate_dependency_line(lines: list[str], section: TablePath, key: str) -> int:
    """Return the 1-based line declaring ``key`` inside the table ``section``.

    Both ``key = ...`` / ``key.version = ...`` lines under the table header and
    dedicated ``[section.key]`` headers are recognized. Falls back to the first
    line mentioning ``key``, then to line 1.
    """
    key_pattern = re.compile(rf"""^\s*(?:"{re.escape(key)}"|'{re.escape(key)}'|{re.escape(key)})\s*[=.]""")
    current: TablePath | None = None

    for index, line in enumerate(lines, start=1):
        header = _parse_table_header(line)
        if header is not None:
            current = header
            if current == (*section, key):
                return index
            continue
        if current == section and key_pattern.match(line):
            return index

    for index, line in enumerate(lines, start=1):
        if key in line:
            return index
    return 1


def _parse_table_header(line: str) -> TablePath | None:
    stripped = line.split("#", 1)[0].strip()
    if not stripped.startswith("[") or not stripped.endswith("]"):
        return None
    if stripped.startswith("[["):
        return _split_dotted_key(stripped[2:-2])
    return _split_dotted_key(stripped[1:-1])


def _split_dotted_key(raw: str) -> TablePath:
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in raw:
        if quote is not None:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in "\"'":
            quote = char
        elif char == ".":
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return tuple(parts)
