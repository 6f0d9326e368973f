"""Ecosystem names, aliases, and marker crates."""

from __future__ import annotations

from rustdefend.types.common import Ecosystem

ALL_ECOSYSTEMS: tuple[Ecosystem, ...] = ("solana", "cosmwasm", "near", "ink")

ECOSYSTEM_ALIASES: dict[str, Ecosystem] = {
    "solana": "solana",
    "sol": "solana",
    "cosmwasm": "cosmwasm",
    "cw": "cosmwasm",
    "cosmos": "cosmwasm",
    "near": "near",
    "ink": "ink",
    "ink!": "ink",
    "polkadot": "ink",
}

# A crate declaring any of these dependencies targets the keyed ecosystem.
ECOSYSTEM_MARKER_CRATES: dict[Ecosystem, frozenset[str]] = {
    "solana": frozenset({"anchor-lang", "anchor-spl", "solana-program", "solana-sdk"}),
    "cosmwasm": frozenset({"cosmwasm-std", "cosmwasm-storage", "cw-storage-plus", "sylvia"}),
    "near": frozenset({"near-sdk", "near-contract-standards"}),
    "ink": frozenset({"ink", "ink_lang", "ink_storage", "ink_env"}),
}
