"""Tests for the breadth-first journey search."""

import pytest
from journey_planner.core.exceptions import NoConnectionsFromStationError
from journey_planner.helpers.network_graph import NetworkGraph, build_connection_graph
from journey_planner.helpers.path_search import (
    PlannerBudgets,
    SearchNode,
    SearchTree,
    StopReason,
    enumerate_paths,
)
from journey_planner.schemas.journeys import StationRecord
from journey_planner.services.network_source import StaticNetworkSource

from tests.helpers.railway_network import TestMetroNetwork

DEFAULT_LIMITS = {"max_depth": 15, "max_iterations": 10000, "max_leaves": 15}


def _graph(network: StaticNetworkSource) -> NetworkGraph:
    return build_connection_graph(network.connections)


def _leaf_paths(tree: SearchTree, leaves: list[int]) -> list[list[tuple[str, str | None]]]:
    """Render each leaf as its root-to-leaf list of (station, arriving line)."""
    return [
        [(node.station_code, node.line_name) for node in reversed(list(tree.walk_to_root(leaf)))] for leaf in leaves
    ]


class TestSearchTree:
    """Tests for the search node arena."""

    def test_add_returns_sequential_indices(self) -> None:
        """Test that nodes are addressed by their insertion index."""
        tree = SearchTree()
        root = tree.add(SearchNode("A", "Alpha", None, 0, None))
        child = tree.add(SearchNode("B", "Bravo", "R1", 1, root))

        assert (root, child) == (0, 1)
        assert tree[child].parent == root
        assert len(tree) == 2

    def test_walk_to_root_yields_leaf_first(self) -> None:
        """Test that walking from a leaf visits every ancestor up to the root."""
        tree = SearchTree()
        root = tree.add(SearchNode("A", "Alpha", None, 0, None))
        middle = tree.add(SearchNode("B", "Bravo", "R1", 1, root))
        leaf = tree.add(SearchNode("C", "Charlie", "R1", 2, middle))

        assert [node.station_code for node in tree.walk_to_root(leaf)] == ["C", "B", "A"]


class TestPlannerBudgets:
    """Tests for PlannerBudgets."""

    def test_defaults(self) -> None:
        """Test the default depth, iteration and oversampling budgets."""
        budgets = PlannerBudgets()

        assert budgets.max_depth == 15
        assert budgets.max_iterations == 10000
        assert budgets.oversample_factor == 5

    def test_leaf_cap_oversamples_requested_results(self) -> None:
        """Test that the leaf cap is the requested count times the oversample factor."""
        assert PlannerBudgets().leaf_cap(3) == 15
        assert PlannerBudgets(oversample_factor=2).leaf_cap(4) == 8

    def test_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that budgets are read from settings."""
        from journey_planner.core.config import settings  # noqa: PLC0415

        monkeypatch.setattr(settings, "PLANNER_MAX_DEPTH", 7)
        monkeypatch.setattr(settings, "PLANNER_MAX_ITERATIONS", 500)
        monkeypatch.setattr(settings, "PLANNER_OVERSAMPLE_FACTOR", 2)

        assert PlannerBudgets.from_settings() == PlannerBudgets(max_depth=7, max_iterations=500, oversample_factor=2)


class TestEnumeratePaths:
    """Tests for enumerate_paths."""

    def test_interchange_journey_found(self) -> None:
        """Test the single arrival at E over the R1/R2 interchange."""
        network = TestMetroNetwork.create_interchange_network()
        origin = StationRecord(code="A", name="Alpha")

        result = enumerate_paths(_graph(network), origin, "E", **DEFAULT_LIMITS)

        assert _leaf_paths(result.tree, result.leaves) == [
            [("A", None), ("B", "R1"), ("D", "R2"), ("E", "R2")],
        ]
        assert result.stop_reason is StopReason.EXHAUSTED

    def test_root_node_shape(self) -> None:
        """Test that the root is the origin with no line, depth 0 and no parent."""
        network = TestMetroNetwork.create_interchange_network()
        origin = StationRecord(code="A", name="Alpha")

        result = enumerate_paths(_graph(network), origin, "C", **DEFAULT_LIMITS)

        assert result.tree[0] == SearchNode("A", "Alpha", None, 0, None)

    def test_arrivals_on_different_lines_are_distinct_leaves(self) -> None:
        """Test that reaching the destination on two lines yields two leaves, shallowest first."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="W1", name="West End")

        result = enumerate_paths(_graph(network), origin, "S2", **DEFAULT_LIMITS)

        assert _leaf_paths(result.tree, result.leaves) == [
            [("W1", None), ("W2", "Red"), ("X1", "Green"), ("S2", "Green")],
            [("W1", None), ("W2", "Red"), ("HUB", "Red"), ("S1", "Blue"), ("S2", "Blue")],
        ]

    def test_leaf_depths_are_non_decreasing(self) -> None:
        """Test that breadth-first order discovers shallower leaves first."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="N1", name="North Gate")

        result = enumerate_paths(_graph(network), origin, "W1", **DEFAULT_LIMITS)

        depths = [result.tree[leaf].depth for leaf in result.leaves]
        assert depths
        assert depths == sorted(depths)

    def test_circular_line_terminates(self) -> None:
        """Test that a cyclic line is searched to exhaustion without revisiting keys."""
        network = TestMetroNetwork.create_circle_network()
        origin = StationRecord(code="C1", name="Circle One")

        result = enumerate_paths(_graph(network), origin, "C3", **DEFAULT_LIMITS)

        assert result.stop_reason is StopReason.EXHAUSTED
        assert _leaf_paths(result.tree, result.leaves) == [
            [("C1", None), ("C2", "Circle"), ("C3", "Circle")],
        ]

    def test_no_connections_from_origin_raises(self) -> None:
        """Test that an origin absent from the graph is a data error."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="ISO", name="Isolated Halt")

        with pytest.raises(NoConnectionsFromStationError) as exc_info:
            enumerate_paths(_graph(network), origin, "W1", **DEFAULT_LIMITS)

        assert exc_info.value.station_code == "ISO"

    def test_empty_graph_raises(self) -> None:
        """Test that an empty graph has no connections from any origin."""
        with pytest.raises(NoConnectionsFromStationError, match="No connections found from station: A"):
            enumerate_paths({}, StationRecord(code="A", name="Alpha"), "B", **DEFAULT_LIMITS)

    def test_unreachable_destination_returns_no_leaves(self) -> None:
        """Test that a destination with no path yields no leaves rather than an error."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="W1", name="West End")

        result = enumerate_paths(_graph(network), origin, "ISO", **DEFAULT_LIMITS)

        assert result.leaves == []
        assert result.stop_reason is StopReason.EXHAUSTED


class TestEnumeratePathsBudgets:
    """Tests for the depth, iteration and leaf budgets."""

    def test_leaf_budget_stops_search_early(self) -> None:
        """Test that the search stops once the leaf cap is reached."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="W1", name="West End")

        result = enumerate_paths(_graph(network), origin, "S2", max_depth=15, max_iterations=10000, max_leaves=1)

        assert len(result.leaves) == 1
        assert result.stop_reason is StopReason.LEAF_BUDGET
        assert result.tree[result.leaves[0]].line_name == "Green"

    def test_iteration_budget_truncates_search(self) -> None:
        """Test that exceeding the iteration budget ends the search without error."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="W1", name="West End")

        result = enumerate_paths(_graph(network), origin, "S2", max_depth=15, max_iterations=3, max_leaves=15)

        assert result.leaves == []
        assert result.iterations == 4
        assert result.stop_reason is StopReason.ITERATION_BUDGET

    def test_depth_budget_drops_deep_nodes(self) -> None:
        """Test that nodes beyond the depth budget are not recorded or expanded."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="W1", name="West End")

        result = enumerate_paths(_graph(network), origin, "S2", max_depth=2, max_iterations=10000, max_leaves=15)

        assert result.leaves == []
        assert result.depth_pruned > 0
        assert result.stop_reason is StopReason.EXHAUSTED

    def test_depth_budget_keeps_shallow_arrivals(self) -> None:
        """Test that arrivals within the depth budget survive while deeper ones are dropped."""
        network = TestMetroNetwork.create_metro_network()
        origin = StationRecord(code="W1", name="West End")

        result = enumerate_paths(_graph(network), origin, "S2", max_depth=3, max_iterations=10000, max_leaves=15)

        assert _leaf_paths(result.tree, result.leaves) == [
            [("W1", None), ("W2", "Red"), ("X1", "Green"), ("S2", "Green")],
        ]
