"""Tests for BuildOrderResolver: post-order DFS, all-or-nothing."""

import itertools

import pytest

from canister_graph.core.build_order import BuildOrderResolver
from canister_graph.core.cycle_detector import CycleDetector
from canister_graph.schema import CanisterGraph, CanisterNode


def _graph(deps: dict[str, list[str]]) -> CanisterGraph:
    return CanisterGraph(nodes=[
        CanisterNode(name=name, dependencies=d) for name, d in deps.items()
    ])


def _order(deps: dict[str, list[str]]) -> list[str]:
    graph = _graph(deps)
    return BuildOrderResolver().resolve(graph, CycleDetector().detect(graph))


def _assert_respects_edges(order: list[str], deps: dict[str, list[str]]) -> None:
    index = {name: i for i, name in enumerate(order)}
    for source, targets in deps.items():
        for target in targets:
            if target in index:
                assert index[target] < index[source]


class TestAcyclicOrders:
    """Dependencies precede dependents."""

    def test_linear_chain(self) -> None:
        assert _order({"A": ["B"], "B": ["C"], "C": []}) == ["C", "B", "A"]

    def test_diamond(self) -> None:
        deps = {"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []}
        order = _order(deps)
        assert sorted(order) == ["A", "B", "C", "D"]
        _assert_respects_edges(order, deps)

    def test_independent_canisters(self) -> None:
        order = _order({"X": [], "Y": [], "Z": []})
        assert sorted(order) == ["X", "Y", "Z"]
        assert len(order) == 3

    def test_dangling_reference_not_in_order(self) -> None:
        assert _order({"D": ["ghost"]}) == ["D"]

    @pytest.mark.parametrize(
        "names", list(itertools.permutations(["A", "B", "C", "D"]))
    )
    def test_any_declaration_order(self, names: tuple) -> None:
        full = {"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []}
        deps = {name: full[name] for name in names}
        order = _order(deps)
        assert len(order) == 4
        _assert_respects_edges(order, deps)


class TestCyclicOrders:
    """Any cycle empties the order."""

    def test_mutual_dependency(self) -> None:
        assert _order({"A": ["B"], "B": ["A"]}) == []

    def test_cycle_in_one_component_empties_all(self) -> None:
        assert _order({"X": [], "A": ["B"], "B": ["A"]}) == []

    def test_self_loop(self) -> None:
        assert _order({"A": ["A"], "B": []}) == []

    def test_cycles_argument_is_authoritative(self) -> None:
        graph = _graph({"A": []})
        assert BuildOrderResolver().resolve(graph, [["A", "A"]]) == []


class TestDeepChains:
    """Traversal depth is not bounded by the recursion limit."""

    def test_chain_of_1500(self) -> None:
        deps = {f"c{i}": [f"c{i + 1}"] for i in range(1499)}
        deps["c1499"] = []
        order = _order(deps)
        assert order[0] == "c1499"
        assert order[-1] == "c0"
        _assert_respects_edges(order, deps)
