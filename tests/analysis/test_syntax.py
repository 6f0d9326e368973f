"""Tests for syntax helpers over tree-sitter Rust trees."""

from __future__ import annotations

import pytest

from rustdefend.analysis.syntax import first_line_containing, iter_functions, snippet_at_line
from rustdefend.exceptions import SourceParseError
from rustdefend.parsers import parse_rust_source

SOURCE = """
pub fn top(a: &AccountInfo, mut b: u64) -> u64 {
    fn inner() {}
    b
}

#[near_bindgen]
impl Contract {
    /// Resolves the promise.
    #[private]
    pub fn on_done(&mut self, amount: U128) {}
}

#[cfg(test)]
mod tests {
    #[test]
    fn it_works() {}
}
"""


def test_iter_functions_yields_items_in_source_order(make_context) -> None:
    functions = make_context(SOURCE).functions

    assert [function.name for function in functions] == ["top", "inner", "on_done", "it_works"]


def test_free_function_metadata(make_context) -> None:
    top = make_context(SOURCE).functions[0]

    assert top.is_public
    assert top.is_free_function
    assert top.line == 1
    assert top.end_line == 4
    assert [(param.name, param.type_text) for param in top.parameters] == [("a", "&AccountInfo"), ("b", "u64")]
    assert top.signature_text.startswith("pub fn top(")
    assert "fn inner" in top.body_text


def test_nested_function_is_marked(make_context) -> None:
    inner = make_context(SOURCE).functions[1]

    assert inner.is_nested
    assert not inner.is_free_function
    assert not inner.is_public


def test_impl_method_carries_impl_context(make_context) -> None:
    on_done = make_context(SOURCE).functions[2]

    assert on_done.impl_type == "Contract"
    assert on_done.impl_trait is None
    assert on_done.impl_attributes == ("#[near_bindgen]",)
    assert on_done.attributes == ("#[private]",)
    assert on_done.has_attribute("private")
    assert [param.name for param in on_done.parameters] == ["amount"]


def test_test_module_functions_are_tests(make_context) -> None:
    functions = make_context(SOURCE).functions

    assert functions[3].in_test_module
    assert functions[3].is_test
    assert not functions[0].is_test


def test_trait_impl_records_trait_name(make_context) -> None:
    functions = make_context(
        """
        impl Default for Counter {
            fn default() -> Self {
                Counter { value: 0 }
            }
        }
        """
    ).functions

    assert functions[0].impl_type == "Counter"
    assert functions[0].impl_trait == "Default"


def test_trait_default_methods_are_not_free_functions(make_context) -> None:
    functions = make_context(
        """
        pub trait Vault {
            fn limit(&self) -> u64;

            fn sweep(user: &AccountInfo) {
                helper(user);
            }
        }
        """
    ).functions

    assert [function.name for function in functions] == ["sweep"]
    assert functions[0].impl_type is None
    assert functions[0].impl_trait == "Vault"
    assert not functions[0].is_free_function


def test_line_helpers(make_context) -> None:
    unit = make_context(SOURCE).unit

    assert snippet_at_line(unit, 2) == "fn inner() {}"
    assert first_line_containing(unit, "private", start=1, end=20) == 9
    assert first_line_containing(unit, "private", start=10, end=20) is None
    assert unit.line_text(0) == ""
    assert unit.line_text(500) == ""


def test_syntax_errors_are_rejected(tmp_path) -> None:
    with pytest.raises(SourceParseError):
        parse_rust_source("fn broken( {\n", path=tmp_path / "broken.rs")


def test_iter_functions_on_empty_file(make_context) -> None:
    assert list(iter_functions(make_context("").unit)) == []


def test_form_feed_does_not_shift_line_numbers(tmp_path) -> None:
    source = "// page \x0c break\r\n// rustdefend-ignore[SOL-001]\npub fn withdraw(user: &AccountInfo) {}\n"
    unit = parse_rust_source(source, path=tmp_path / "lib.rs")

    function = next(iter_functions(unit))

    assert len(unit.lines) == 3
    assert unit.line_text(1) == "// page \x0c break"
    assert function.line == 3
    assert snippet_at_line(unit, function.line) == "pub fn withdraw(user: &AccountInfo) {}"
    assert first_line_containing(unit, "rustdefend-ignore", start=1, end=3) == 2
