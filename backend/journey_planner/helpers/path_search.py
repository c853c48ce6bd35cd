"""
Breadth-first journey search over the network graph.

The search tree is kept in a flat arena (``SearchTree``) where every node
refers to its parent by index. Visited state is keyed on
(station, arriving line) so that a station reached on two different lines
yields two distinct branches, while the "strictly shallower only" rule keeps
the frontier bounded on cyclic networks.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import NamedTuple

import structlog

from journey_planner.core.config import settings
from journey_planner.core.exceptions import NoConnectionsFromStationError
from journey_planner.helpers.network_graph import NetworkGraph
from journey_planner.schemas.journeys import StationRecord

logger = structlog.get_logger(__name__)


class SearchNode(NamedTuple):
    """Node in the search tree. ``parent`` is an index into the owning arena."""

    station_code: str
    station_name: str
    line_name: str | None  # None only for the root (origin)
    depth: int
    parent: int | None


@dataclass
class SearchTree:
    """Arena of search nodes addressed by integer index."""

    nodes: list[SearchNode] = field(default_factory=list)

    def add(self, node: SearchNode) -> int:
        """Append a node and return its index."""
        self.nodes.append(node)
        return len(self.nodes) - 1

    def __getitem__(self, index: int) -> SearchNode:
        return self.nodes[index]

    def __len__(self) -> int:
        return len(self.nodes)

    def walk_to_root(self, index: int) -> Iterator[SearchNode]:
        """Yield the node at ``index`` and each ancestor up to and including the root."""
        current: int | None = index
        while current is not None:
            node = self.nodes[current]
            yield node
            current = node.parent


class StopReason(StrEnum):
    """Why a search ended."""

    EXHAUSTED = "exhausted"  # Frontier emptied
    ITERATION_BUDGET = "iteration_budget"
    LEAF_BUDGET = "leaf_budget"


@dataclass(frozen=True)
class PlannerBudgets:
    """Numeric caps bounding the work of a single search."""

    max_depth: int = 15
    max_iterations: int = 10000
    oversample_factor: int = 5

    @classmethod
    def from_settings(cls) -> PlannerBudgets:
        """Build budgets from application settings."""
        return cls(
            max_depth=settings.PLANNER_MAX_DEPTH,
            max_iterations=settings.PLANNER_MAX_ITERATIONS,
            oversample_factor=settings.PLANNER_OVERSAMPLE_FACTOR,
        )

    def leaf_cap(self, requested_results: int) -> int:
        """
        Raw destination leaves to collect before stopping early.

        Oversampling gives the ranker more candidates than it returns. It is a
        heuristic: it does not guarantee the globally best journeys are among them.
        """
        return requested_results * self.oversample_factor


@dataclass
class SearchResult:
    """Outcome of a search: the arena plus the indices of leaves at the destination."""

    tree: SearchTree
    leaves: list[int]
    iterations: int
    stop_reason: StopReason
    depth_pruned: int = 0


def enumerate_paths(
    graph: NetworkGraph,
    origin: StationRecord,
    destination_code: str,
    *,
    max_depth: int,
    max_iterations: int,
    max_leaves: int,
) -> SearchResult:
    """
    Collect search-tree leaves that reach the destination, in discovery order.

    Breadth-first over a FIFO frontier seeded with the origin. A node at the
    destination is recorded and not expanded; the search carries on so that
    other arrivals still in the frontier are found too. A child is enqueued
    only if its (station, line) key is new or is now reached at a strictly
    smaller depth.

    Stops when the frontier empties, the iteration budget is exceeded, or
    ``max_leaves`` leaves have been found. Nodes deeper than ``max_depth``
    are dropped without expansion. Hitting a budget is not an error.

    Args:
        graph: Adjacency mapping from build_connection_graph()
        origin: Origin station
        destination_code: Destination station code
        max_depth: Depth budget
        max_iterations: Iteration (frontier pop) budget
        max_leaves: Leaf collection cap

    Returns:
        SearchResult with the arena, leaf indices and search statistics

    Raises:
        NoConnectionsFromStationError: If the origin has no outgoing edges
    """
    if not graph.get(origin.code):
        logger.warning("no_connections_from_station", station_code=origin.code)
        raise NoConnectionsFromStationError(origin.code)

    tree = SearchTree()
    root = tree.add(
        SearchNode(
            station_code=origin.code,
            station_name=origin.name,
            line_name=None,
            depth=0,
            parent=None,
        )
    )
    frontier: deque[int] = deque([root])
    min_depth_seen: dict[tuple[str, str], int] = {}
    leaves: list[int] = []
    iterations = 0
    depth_pruned = 0
    stop_reason = StopReason.EXHAUSTED

    while frontier:
        if len(leaves) >= max_leaves:
            stop_reason = StopReason.LEAF_BUDGET
            break

        iterations += 1
        if iterations > max_iterations:
            stop_reason = StopReason.ITERATION_BUDGET
            break

        index = frontier.popleft()
        node = tree[index]

        if node.depth > max_depth:
            depth_pruned += 1
            continue

        if node.station_code == destination_code:
            leaves.append(index)
            continue

        child_depth = node.depth + 1
        for edge in graph.get(node.station_code, []):
            key = (edge["to_station_code"], edge["line_name"])
            seen_depth = min_depth_seen.get(key)
            if seen_depth is None or child_depth < seen_depth:
                min_depth_seen[key] = child_depth
                frontier.append(
                    tree.add(
                        SearchNode(
                            station_code=edge["to_station_code"],
                            station_name=edge["to_station_name"],
                            line_name=edge["line_name"],
                            depth=child_depth,
                            parent=index,
                        )
                    )
                )

    if stop_reason is not StopReason.EXHAUSTED:
        logger.info(
            "journey_search_budget_exhausted",
            origin=origin.code,
            destination=destination_code,
            stop_reason=stop_reason.value,
            iterations=iterations,
            leaves_found=len(leaves),
        )

    logger.debug(
        "journey_search_completed",
        origin=origin.code,
        destination=destination_code,
        iterations=iterations,
        nodes_created=len(tree),
        leaves_found=len(leaves),
        depth_pruned=depth_pruned,
        stop_reason=stop_reason.value,
    )

    return SearchResult(
        tree=tree,
        leaves=leaves,
        iterations=iterations,
        stop_reason=stop_reason,
        depth_pruned=depth_pruned,
    )
