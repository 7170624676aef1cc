"""Unit tests for moddoc.paths."""

from __future__ import annotations

import pytest

from moddoc.errors import InvariantViolation
from moddoc.models.nodes import (
    ClassNode,
    FunctionNode,
    ImportDef,
    ImportNode,
    NamespaceDef,
    NamespaceNode,
    VariableNode,
)
from moddoc.paths import resolve_path


def _ns(name: str, *elements) -> NamespaceNode:
    return NamespaceNode(name=name, namespace_def=NamespaceDef(elements=list(elements)))


class TestNestedResolution:
    def test_descends_through_namespaces(self) -> None:
        c = FunctionNode(name="c")
        graph = [_ns("A", _ns("B", c))]

        group = resolve_path("A.B.c", graph)

        assert group is not None
        assert group.nodes == [c]
        assert group.nodes[0] is c
        assert group.kind == "function"
        assert group.name == "c"
        assert group.path == ["A", "B"]

    def test_top_level_name(self) -> None:
        cls = ClassNode(name="Router")
        group = resolve_path("Router", [FunctionNode(name="other"), cls])
        assert group is not None
        assert group.nodes == [cls]
        assert group.kind == "class"
        assert group.path == []

    def test_namespace_itself_is_resolvable(self) -> None:
        inner = _ns("B")
        group = resolve_path("A.B", [_ns("A", inner)])
        assert group is not None
        assert group.kind == "namespace"
        assert group.nodes[0] is inner

    def test_name_inside_namespace_shadows_top_level(self) -> None:
        top = VariableNode(name="x")
        nested = VariableNode(name="x")
        group = resolve_path("A.x", [top, _ns("A", nested)])
        assert group is not None
        assert group.nodes[0] is nested


class TestForgivingDescent:
    def test_missing_namespace_falls_back_to_top_level(self) -> None:
        c = FunctionNode(name="c")
        graph = [c, _ns("Other")]

        group = resolve_path("X.c", graph)

        assert group is not None
        assert group.nodes == [c]
        assert group.path == []

    def test_missing_middle_segment_keeps_last_reached_list(self) -> None:
        c = FunctionNode(name="c")
        top_c = FunctionNode(name="c", function_def={"top": True})
        graph = [top_c, _ns("A", c)]

        group = resolve_path("A.Missing.c", graph)

        assert group is not None
        assert group.nodes == [c]
        assert group.nodes[0] is c
        assert group.path == ["A"]

    def test_non_namespace_segment_is_not_descended(self) -> None:
        c = FunctionNode(name="c")
        graph = [ClassNode(name="A"), c]
        group = resolve_path("A.c", graph)
        assert group is not None
        assert group.nodes[0] is c
        assert group.path == []


class TestNotFound:
    def test_unknown_name(self) -> None:
        assert resolve_path("nope", [FunctionNode(name="yes")]) is None

    def test_unknown_nested_name(self) -> None:
        assert resolve_path("A.nope", [_ns("A", FunctionNode(name="yes"))]) is None

    def test_imports_never_match(self) -> None:
        graph = [
            ImportNode(name="Path", import_def=ImportDef(src="https://example.com/path.ts")),
        ]
        assert resolve_path("Path", graph) is None

    def test_import_skipped_next_to_real_node(self) -> None:
        cls = ClassNode(name="Path")
        graph = [ImportNode(name="Path", import_def=ImportDef(src="./path.ts")), cls]
        group = resolve_path("Path", graph)
        assert group is not None
        assert group.nodes == [cls]

    def test_empty_graph(self) -> None:
        assert resolve_path("A.b", []) is None


class TestOverloads:
    def test_function_overloads_grouped(self) -> None:
        f1 = FunctionNode(name="f", function_def={"params": []})
        f2 = FunctionNode(name="f", function_def={"params": [{"name": "x"}]})
        group = resolve_path("f", [f1, ClassNode(name="g"), f2])
        assert group is not None
        assert group.kind == "function"
        assert group.nodes == [f1, f2]

    def test_mixed_kinds_violate_invariant(self) -> None:
        graph = [ClassNode(name="g"), VariableNode(name="g")]
        with pytest.raises(InvariantViolation):
            resolve_path("g", graph)

    def test_function_and_variable_violate_invariant(self) -> None:
        graph = [FunctionNode(name="g"), VariableNode(name="g")]
        with pytest.raises(InvariantViolation):
            resolve_path("g", graph)

    def test_duplicate_classes_violate_invariant(self) -> None:
        with pytest.raises(InvariantViolation):
            resolve_path("C", [ClassNode(name="C"), ClassNode(name="C")])
