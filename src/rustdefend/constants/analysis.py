"""Constants for call-graph construction and check propagation."""

from __future__ import annotations

from rustdefend.types.common import CheckKind

MAX_CALLER_DEPTH: int = 5

# A body exhibits a check when it contains every ``all_of`` token and,
# if ``any_of`` is non-empty, at least one ``any_of`` token.
CHECK_MARKERS: dict[CheckKind, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "signer": ((), ("is_signer", "has_signer")),
    "owner": (("owner",), ("program_id", "key")),
    "input_validation": ((), ("assert!", "assert_eq!", "assert_ne!", "require!", "ensure!")),
}
