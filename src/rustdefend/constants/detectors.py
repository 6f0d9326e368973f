"""Marker tables used by built-in source detectors."""

from __future__ import annotations

# Source text markers that indicate a file targets the keyed ecosystem.
SOLANA_SOURCE_MARKERS: tuple[str, ...] = (
    "solana_program",
    "anchor_lang",
    "AccountInfo",
    "ProgramResult",
    "solana_sdk",
)
NEAR_SOURCE_MARKERS: tuple[str, ...] = (
    "near_sdk",
    "near_contract_standards",
    "#[near_bindgen]",
    "#[near(",
    "env::predecessor_account_id",
    "env::signer_account_id",
    "Promise::new",
)

# Framework sources where signer checks are architectural rather than per function.
SOLANA_FRAMEWORK_PATH_FRAGMENTS: tuple[str, ...] = (
    "/spl-token",
    "/spl_token",
    "/anchor-lang/",
    "/anchor_lang/",
    "/anchor-spl/",
    "/anchor_spl/",
    "/solana-program/",
    "/solana_program/",
)

SIGNER_SKIP_PREFIXES: tuple[str, ...] = (
    "test_",
    "_",
    "inner_",
    "do_",
    "impl_",
    "handle_",
    "execute_",
    "transfer_",
    "burn_",
    "mint_",
    "create_",
    "close_",
    "set_",
)
SIGNER_SKIP_SUFFIXES: tuple[str, ...] = ("_tokens", "_account", "_fees")
SIGNER_SKIP_FRAGMENTS: tuple[str, ...] = (
    "serialize",
    "pack",
    "parse",
    "validate",
    "verify",
    "check",
    "from_account",
    "to_account",
)
# CPI wrappers forward authority; the caller validates the signer.
SIGNER_CPI_WRAPPER_NAMES: frozenset[str] = frozenset(
    {
        "transfer",
        "burn",
        "mint_to",
        "freeze",
        "thaw",
        "approve",
        "revoke",
        "close",
        "close_account",
        "set_authority",
        "create_account",
        "create_new_account",
        "create_or_allocate_account_raw",
        "topup",
        "dispose_account",
        "extend_account_size",
        "set_program_upgrade_authority",
    }
)
# Parameter names that denote programs, sysvars, or data accounts rather than signers.
SIGNER_SKIP_PARAM_FRAGMENTS: tuple[str, ...] = (
    "program",
    "system",
    "rent",
    "clock",
    "token",
    "mint",
    "metadata",
    "associated",
    "sysvar",
    "pda",
    "vault",
    "pool",
    "config",
    "state",
    "data",
    "dest",
    "source",
)
ACCOUNT_MUTATION_MARKERS: tuple[str, ...] = ("serialize", "try_borrow_mut", "borrow_mut", "invoke")

DESERIALIZATION_MARKERS: tuple[str, ...] = (
    "deserialize",
    "try_from_slice",
    "unpack",
    "try_deserialize",
    "try_borrow_data",
)

CHECKED_ARITHMETIC_OPS: tuple[str, ...] = (
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
    "checked_rem",
    "checked_pow",
    "checked_shl",
    "checked_shr",
)
CHECKED_UNWRAP_WINDOW: int = 200

STORAGE_MUTATION_MARKERS: tuple[str, ...] = (".save(", ".update(", ".remove(")

MIGRATE_AUTH_MARKERS: tuple[str, ...] = (
    "sender",
    "admin",
    "owner",
    "ADMIN",
    "OWNER",
    "ensure_admin",
)
MIGRATE_VERSION_MARKERS: tuple[str, ...] = (
    "version",
    "VERSION",
    "cw2::",
)
MIGRATE_MIN_BODY_CHARS: int = 60

ACCESS_CONTROL_MARKERS: tuple[str, ...] = ("assert", "require", "== ", "!= ", "owner", "admin")

INK_EXEMPT_MESSAGES: frozenset[str] = frozenset(
    {
        "flip",
        "inc",
        "increment",
        "decrement",
        "vote",
        "register",
        "new",
        "transfer",
        "transfer_from",
        "approve",
        "increase_allowance",
        "decrease_allowance",
    }
)
INK_EXEMPT_PREFIXES: tuple[str, ...] = ("get_", "is_", "has_")
INK_CALLER_CHECK_MARKERS: tuple[str, ...] = ("caller", "ensure!", "assert!", "only_owner", "authorize")
INK_SENSITIVE_FIELD_FRAGMENTS: tuple[str, ...] = (
    "owner",
    "admin",
    "authority",
    "manager",
    "controller",
    "paused",
    "frozen",
    "config",
    "operator",
)
INK_VALUE_TRANSFER_MARKERS: tuple[str, ...] = ("transfer(", "transferred_value")
