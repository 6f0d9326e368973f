"""Known-vulnerable dependency ranges and supply-chain deny lists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from rustdefend.types.common import Ecosystem

VersionTuple: TypeAlias = tuple[int, int, int]


@dataclass(frozen=True)
class VulnerableRange:
    """Half-open version window ``[introduced, fixed)`` for one advisory.

    ``introduced`` of ``None`` means every version below ``fixed`` is affected.
    """

    introduced: VersionTuple | None
    fixed: VersionTuple


@dataclass(frozen=True)
class Advisory:
    """Vulnerable version ranges published for one crate."""

    crate_name: str
    description: str
    advisory: str
    ecosystem: Ecosystem
    ranges: tuple[VulnerableRange, ...]


CRATE_ADVISORIES: tuple[Advisory, ...] = (
    Advisory(
        crate_name="cosmwasm-std",
        description="CWA-2024-002: Uint256::pow/Int256::neg use wrapping math",
        advisory="CWA-2024-002 / CVE-2024-58263",
        ecosystem="cosmwasm",
        ranges=(
            VulnerableRange(None, (1, 4, 4)),
            VulnerableRange((1, 5, 0), (1, 5, 4)),
            VulnerableRange((2, 0, 0), (2, 0, 2)),
        ),
    ),
    Advisory(
        crate_name="cosmwasm-vm",
        description="CWA-2025-001: VM memory safety issue",
        advisory="CWA-2025-001",
        ecosystem="cosmwasm",
        ranges=(
            VulnerableRange(None, (1, 5, 8)),
            VulnerableRange((2, 0, 0), (2, 0, 6)),
        ),
    ),
    Advisory(
        crate_name="near-sdk",
        description="Legacy callback handling issues",
        advisory="NEAR SDK < 4.0.0",
        ecosystem="near",
        ranges=(VulnerableRange(None, (4, 0, 0)),),
    ),
    Advisory(
        crate_name="ink",
        description="Pre-reentrancy-default versions lack safe defaults",
        advisory="ink! < 4.0.0",
        ecosystem="ink",
        ranges=(VulnerableRange(None, (4, 0, 0)),),
    ),
    Advisory(
        crate_name="anchor-lang",
        description="Various account validation fixes",
        advisory="Anchor < 0.28.0",
        ecosystem="solana",
        ranges=(VulnerableRange(None, (0, 28, 0)),),
    ),
    Advisory(
        crate_name="solana-program",
        description="Various runtime fixes",
        advisory="solana-program < 1.16.0",
        ecosystem="solana",
        ranges=(VulnerableRange(None, (1, 16, 0)),),
    ),
)

KNOWN_MALICIOUS_CRATES: frozenset[str] = frozenset(
    {
        "rustdecimal",
        "faster_log",
        "async_println",
        "finch-rust",
        "finch-rst",
        "sha-rust",
        "sha-rst",
        "finch_cli_rust",
        "polymarket-clients-sdk",
        "polymarket-client-sdks",
    }
)

# Version requirements treated as "any version".
WILDCARD_VERSIONS: frozenset[str] = frozenset({"*", ">= 0", "> 0"})
WILDCARD_VERSION_PREFIXES: tuple[str, ...] = (">= 0.", "> 0.")
WILDCARD_VERSION_SUFFIX: str = ".*"
VERSION_REQUIREMENT_OPERATORS: str = "^~="
