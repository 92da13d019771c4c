"""Tests for derived field ordering and cycle detection."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from formsmith.core.derived import detect_cycles, resolve_evaluation_order
from formsmith.core.derived.graph import build_dependency_graph
from formsmith.core.ir import FormField, FormSchema


def derived(field_id: str, parents: list[str], logic: str = "1") -> dict[str, Any]:
    return {
        "id": field_id,
        "type": "number",
        "label": field_id.upper(),
        "derivedFrom": {"parentFields": parents, "computationLogic": logic},
    }


def fields(*specs: dict[str, Any]) -> list[FormField]:
    schema = FormSchema.model_validate({"id": "graph", "name": "Graph", "fields": list(specs)})
    return schema.derived_fields()


def ids(order: list[FormField]) -> list[str]:
    return [f.id for f in order]


class TestBuildGraph:
    def test_input_parents_are_leaves(self) -> None:
        graph = build_dependency_graph(fields(derived("a", ["x", "y"]), derived("b", ["a", "x"])))
        assert graph == {"a": [], "b": ["a"]}

    def test_duplicate_parents_collapsed(self) -> None:
        graph = build_dependency_graph(fields(derived("a", []), derived("b", ["a", "a"])))
        assert graph["b"] == ["a"]


class TestEvaluationOrder:
    def test_parents_before_children(self) -> None:
        resolution = resolve_evaluation_order(
            fields(derived("c", ["b"]), derived("b", ["a"]), derived("a", ["x"]))
        )
        assert not resolution.cycle
        assert ids(resolution.order) == ["a", "b", "c"]
        assert resolution.blocked == []

    def test_independent_fields_keep_declaration_order(self) -> None:
        resolution = resolve_evaluation_order(
            fields(derived("q", ["x"]), derived("p", ["x"]), derived("r", []))
        )
        assert ids(resolution.order) == ["q", "p", "r"]

    def test_diamond(self) -> None:
        resolution = resolve_evaluation_order(
            fields(
                derived("d", ["b", "c"]),
                derived("b", ["a"]),
                derived("c", ["a"]),
                derived("a", []),
            )
        )
        order = ids(resolution.order)
        assert order.index("a") < order.index("b") < order.index("d")
        assert order.index("c") < order.index("d")
        assert len(order) == 4

    def test_empty(self) -> None:
        resolution = resolve_evaluation_order([])
        assert not resolution.cycle
        assert resolution.order == []


class TestCycles:
    def test_two_field_cycle(self) -> None:
        resolution = resolve_evaluation_order(fields(derived("x", ["y"]), derived("y", ["x"])))
        assert resolution.cycle
        assert resolution.order == []
        assert resolution.cycles == [["x", "y", "x"]]
        assert resolution.blocked == ["x", "y"]

    def test_self_reference_is_a_cycle(self) -> None:
        assert detect_cycles(fields(derived("s", ["s"]))) == [["s", "s"]]

    def test_no_cycles(self) -> None:
        assert detect_cycles(fields(derived("a", []), derived("b", ["a"]))) == []

    def test_cycle_blocks_everything_by_default(self) -> None:
        resolution = resolve_evaluation_order(
            fields(derived("w", ["input"]), derived("x", ["y"]), derived("y", ["x"]))
        )
        assert resolution.order == []
        assert resolution.blocked == ["w", "x", "y"]

    def test_isolate_blocks_cycle_and_dependents(self) -> None:
        resolution = resolve_evaluation_order(
            fields(
                derived("w", ["input"]),
                derived("x", ["y"]),
                derived("y", ["x"]),
                derived("z", ["y"]),
                derived("v", ["z", "w"]),
            ),
            isolate_cycles=True,
        )
        assert resolution.cycle
        assert ids(resolution.order) == ["w"]
        assert resolution.blocked == ["x", "y", "z", "v"]

    def test_cycle_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="formsmith"):
            resolve_evaluation_order(fields(derived("x", ["y"]), derived("y", ["x"])))
        assert "x -> y -> x" in caplog.text
