"""Tests for call-graph construction and caller check propagation."""

from __future__ import annotations

from rustdefend.analysis import build_project_call_graph, caller_has_check, detect_checks

CHAIN_SOURCE = """
fn entry(account: &AccountInfo) {
    if !account.is_signer {
        return;
    }
    middle(account);
}

fn middle(account: &AccountInfo) {
    leaf(account);
}

fn leaf(account: &AccountInfo) {
    account.try_borrow_mut_data().unwrap();
}
"""


def test_records_calls_and_checks(make_context) -> None:
    ctx = make_context(CHAIN_SOURCE)
    graph = ctx.call_graph

    assert set(graph.functions) == {"entry", "middle", "leaf"}
    assert graph.functions["entry"].calls == ("middle",)
    assert graph.functions["entry"].checks == frozenset({"signer"})
    assert graph.functions["leaf"].checks == frozenset()
    assert graph.callers_of("leaf") == frozenset({"middle"})


def test_callee_names_from_paths_methods_and_generics(make_context) -> None:
    ctx = make_context(
        """
        fn run(x: Vault) {
            helpers::validate(x);
            x.apply();
            decode::<u64>(x);
            plain();
            plain();
        }
        """
    )

    assert ctx.call_graph.functions["run"].calls == ("validate", "apply", "decode", "plain")


def test_propagates_check_through_intermediate_caller(make_context) -> None:
    graph = make_context(CHAIN_SOURCE).call_graph

    assert caller_has_check(graph, "leaf", "signer")
    assert caller_has_check(graph, "middle", "signer")
    assert not caller_has_check(graph, "entry", "signer")
    assert not caller_has_check(graph, "leaf", "owner")


def test_propagation_stops_when_top_caller_loses_its_check(make_context) -> None:
    graph = make_context(CHAIN_SOURCE.replace("!account.is_signer", "account.lamports() == 0")).call_graph

    assert not caller_has_check(graph, "leaf", "signer")


def test_terminates_on_mutual_recursion(make_context) -> None:
    graph = make_context(
        """
        fn ping(n: u64) {
            pong(n);
        }

        fn pong(n: u64) {
            ping(n);
        }
        """
    ).call_graph

    assert not caller_has_check(graph, "ping", "signer")
    assert not caller_has_check(graph, "pong", "input_validation")


def test_self_recursion_does_not_count_as_caller(make_context) -> None:
    graph = make_context(
        """
        fn spin(n: u64) {
            assert!(n > 0);
            spin(n - 1);
        }
        """
    ).call_graph

    assert not caller_has_check(graph, "spin", "input_validation")


def _chain(length: int) -> str:
    functions = ["fn f0(a: u64) {\n    require!(a > 0);\n    f1(a);\n}\n"]
    for index in range(1, length):
        functions.append(f"fn f{index}(a: u64) {{\n    f{index + 1}(a);\n}}\n")
    functions.append(f"fn f{length}(a: u64) {{\n    let _ = a;\n}}\n")
    return "\n".join(functions)


def test_depth_bound_is_respected(make_context) -> None:
    five_hops = make_context(_chain(5)).call_graph
    six_hops = make_context(_chain(6)).call_graph

    assert caller_has_check(five_hops, "f5", "input_validation")
    assert not caller_has_check(six_hops, "f6", "input_validation")
    assert caller_has_check(six_hops, "f6", "input_validation", max_depth=6)
    assert not caller_has_check(five_hops, "f5", "input_validation", max_depth=1)


def test_visited_set_is_shared_with_caller(make_context) -> None:
    graph = make_context(CHAIN_SOURCE).call_graph
    visited = {"middle"}

    assert not caller_has_check(graph, "leaf", "signer", visited=visited)
    assert "leaf" in visited


def test_function_without_callers_never_benefits(make_context) -> None:
    graph = make_context("fn lonely() {\n    let _ = 1;\n}\n").call_graph

    assert not caller_has_check(graph, "lonely", "signer")
    assert not caller_has_check(graph, "missing", "signer")


def test_detect_checks_requires_owner_with_key_or_program_id() -> None:
    assert detect_checks("if acct.owner != program_id {}") == frozenset({"owner"})
    assert detect_checks("acct.owner") == frozenset()
    assert detect_checks("ensure!(ok, Error::Bad)") == frozenset({"input_validation"})


def test_project_graph_merges_files_by_name(make_context) -> None:
    checker = make_context(
        """
        fn entry(account: &AccountInfo) {
            if !account.is_signer {
                return;
            }
            apply(account);
        }
        """,
        name="entry.rs",
    )
    worker = make_context(
        """
        fn apply(account: &AccountInfo) {
            account.try_borrow_mut_data().unwrap();
        }
        """,
        name="apply.rs",
    )

    project = build_project_call_graph([("b/apply.rs", worker.call_graph), ("a/entry.rs", checker.call_graph)])

    assert project.files == ("a/entry.rs", "b/apply.rs")
    assert not caller_has_check(worker.call_graph, "apply", "signer")
    assert project.caller_has_check("apply", "signer")
    assert set(project.graph.functions["apply"].calls) == {"try_borrow_mut_data", "unwrap"}


def test_project_graph_digest_is_order_independent(make_context) -> None:
    first = make_context("fn a() {\n    b();\n}\n", name="a.rs").call_graph
    second = make_context("fn b() {\n    c();\n}\n", name="b.rs").call_graph

    forward = build_project_call_graph([("a.rs", first), ("b.rs", second)])
    backward = build_project_call_graph([("b.rs", second), ("a.rs", first)])

    assert forward.digest == backward.digest
