"""Read-only helpers over tree-sitter Rust syntax trees."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace

from tree_sitter import Node

from rustdefend.model import ParsedUnit

_CALL_TARGET_FIELDS: dict[str, str] = {
    "scoped_identifier": "name",
    "field_expression": "field",
}


@dataclass(frozen=True)
class Parameter:
    """A typed function parameter (``self`` receivers are not included)."""

    name: str
    type_text: str


@dataclass(frozen=True)
class FunctionItem:
    """A ``fn`` item with the surrounding context detectors care about.

    Default methods of a trait definition carry the trait name in ``impl_trait``
    and no ``impl_type``.
    """

    name: str
    node: Node = field(repr=False, compare=False)
    line: int
    column: int
    end_line: int
    attributes: tuple[str, ...]
    is_public: bool
    parameters: tuple[Parameter, ...]
    in_test_module: bool = False
    is_nested: bool = False
    impl_type: str | None = None
    impl_trait: str | None = None
    impl_attributes: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return node_text(self.node)

    @property
    def body(self) -> Node | None:
        return self.node.child_by_field_name("body")

    @property
    def body_text(self) -> str:
        body = self.body
        return node_text(body) if body is not None else ""

    @property
    def signature_text(self) -> str:
        body = self.body
        if body is None:
            return self.text
        raw = self.node.text or b""
        return raw[: body.start_byte - self.node.start_byte].decode("utf-8", errors="replace")

    @property
    def is_free_function(self) -> bool:
        """True for module-level ``fn`` items (not impl or trait methods, not nested in another fn)."""
        return self.impl_type is None and self.impl_trait is None and not self.is_nested

    def has_attribute(self, fragment: str) -> bool:
        """Return whether any attribute on the function contains ``fragment``."""
        return any(fragment in attribute for attribute in self.attributes)

    @property
    def is_test(self) -> bool:
        return (
            self.in_test_module
            or "test" in self.name
            or any(attribute.replace(" ", "") in {"#[test]", "#[tokio::test]"} for attribute in self.attributes)
            or self.has_attribute("cfg(test)")
        )


def node_text(node: Node) -> str:
    return (node.text or b"").decode("utf-8", errors="replace")


def node_line(node: Node) -> int:
    """Return the 1-based line of a node's first byte."""
    return node.start_point[0] + 1


def node_column(node: Node) -> int:
    """Return the 1-based column of a node's first byte."""
    return node.start_point[1] + 1


def iter_descendants(node: Node, *, skip_types: frozenset[str] = frozenset()) -> Iterator[Node]:
    """Yield named descendants depth-first in source order, not entering ``skip_types`` subtrees."""
    stack = list(reversed(node.named_children))
    while stack:
        current = stack.pop()
        yield current
        if current.type in skip_types:
            continue
        stack.extend(reversed(current.named_children))


def preceding_attributes(node: Node) -> tuple[str, ...]:
    """Return the outer attribute texts attached to an item, in source order."""
    attributes: list[str] = []
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type in {"attribute_item", "line_comment", "block_comment"}:
        if sibling.type == "attribute_item":
            attributes.append(node_text(sibling))
        sibling = sibling.prev_named_sibling
    attributes.reverse()
    return tuple(attributes)


def iter_functions(unit: ParsedUnit) -> Iterator[FunctionItem]:
    """Yield every function item in the file: free functions, impl methods, and nested functions."""
    yield from _walk_items(unit.tree.root_node, scope=_ItemScope())


@dataclass(frozen=True)
class _ItemScope:
    in_test_module: bool = False
    nested: bool = False
    impl_type: str | None = None
    impl_trait: str | None = None
    impl_attributes: tuple[str, ...] = ()


def _walk_items(node: Node, *, scope: _ItemScope) -> Iterator[FunctionItem]:
    for child in node.named_children:
        if child.type == "function_item":
            item = _function_item(child, scope=scope)
            if item is not None:
                yield item
            body = child.child_by_field_name("body")
            if body is not None:
                nested_in_test = scope.in_test_module or (item is not None and item.is_test)
                yield from _walk_items(body, scope=_ItemScope(in_test_module=nested_in_test, nested=True))
        elif child.type == "mod_item":
            is_test_mod = any("cfg(test)" in attribute for attribute in preceding_attributes(child))
            yield from _walk_items(child, scope=replace(scope, in_test_module=scope.in_test_module or is_test_mod))
        elif child.type == "impl_item":
            impl_type = child.child_by_field_name("type")
            impl_trait = child.child_by_field_name("trait")
            impl_scope = replace(
                scope,
                impl_type=node_text(impl_type) if impl_type is not None else None,
                impl_trait=node_text(impl_trait) if impl_trait is not None else None,
                impl_attributes=preceding_attributes(child),
            )
            yield from _walk_items(child, scope=impl_scope)
        elif child.type == "trait_item":
            trait_name = child.child_by_field_name("name")
            trait_scope = replace(
                scope,
                impl_trait=node_text(trait_name) if trait_name is not None else None,
                impl_attributes=preceding_attributes(child),
            )
            yield from _walk_items(child, scope=trait_scope)
        else:
            yield from _walk_items(child, scope=scope)


def _function_item(node: Node, *, scope: _ItemScope) -> FunctionItem | None:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    return FunctionItem(
        name=node_text(name_node),
        node=node,
        line=node_line(name_node),
        column=node_column(name_node),
        end_line=node.end_point[0] + 1,
        attributes=preceding_attributes(node),
        is_public=any(child.type == "visibility_modifier" for child in node.children),
        parameters=_parameters(node),
        in_test_module=scope.in_test_module,
        is_nested=scope.nested,
        impl_type=scope.impl_type,
        impl_trait=scope.impl_trait,
        impl_attributes=scope.impl_attributes,
    )


def _parameters(node: Node) -> tuple[Parameter, ...]:
    params = node.child_by_field_name("parameters")
    if params is None:
        return ()
    collected: list[Parameter] = []
    for child in params.named_children:
        if child.type != "parameter":
            continue
        pattern = child.child_by_field_name("pattern")
        type_node = child.child_by_field_name("type")
        if pattern is None or type_node is None:
            continue
        name = node_text(pattern).removeprefix("mut ").strip()
        collected.append(Parameter(name=name, type_text=node_text(type_node)))
    return tuple(collected)


def called_names(node: Node) -> tuple[str, ...]:
    """Return deduplicated callee names of every call inside ``node``, in first-seen order.

    ``a::b::c()`` yields ``c``, ``x.m()`` yields ``m``, ``f::<T>()`` yields ``f``.
    Nested function items are not entered.
    """
    seen: dict[str, None] = {}
    for descendant in iter_descendants(node, skip_types=frozenset({"function_item"})):
        if descendant.type != "call_expression":
            continue
        target = descendant.child_by_field_name("function")
        name = _call_target_name(target) if target is not None else None
        if name:
            seen.setdefault(name, None)
    return tuple(seen)


def _call_target_name(node: Node) -> str | None:
    while node.type == "generic_function":
        inner = node.child_by_field_name("function")
        if inner is None:
            return None
        node = inner
    if node.type == "identifier":
        return node_text(node)
    field_name = _CALL_TARGET_FIELDS.get(node.type)
    if field_name is None:
        return None
    target = node.child_by_field_name(field_name)
    return node_text(target) if target is not None else None


def snippet_at_line(unit: ParsedUnit, line: int) -> str:
    """Return the trimmed source text of a 1-based line."""
    return unit.line_text(line).strip()


def first_line_containing(unit: ParsedUnit, needle: str, *, start: int, end: int) -> int | None:
    """Return the first 1-based line in ``[start, end]`` whose text contains ``needle``."""
    for line in range(start, min(end, len(unit.lines)) + 1):
        if needle in unit.line_text(line):
            return line
    return None
