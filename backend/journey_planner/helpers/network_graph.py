"""
Network graph helpers.

Pure functions that turn the flat list of station connections into an
adjacency mapping the journey search can walk. No I/O, no shared state.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TypedDict

from journey_planner.schemas.journeys import StationConnectionRecord


class GraphEdge(TypedDict):
    """Outgoing edge from a station in the network graph."""

    to_station_code: str
    to_station_name: str
    line_name: str
    line_id: int


NetworkGraph = dict[str, list[GraphEdge]]


def build_connection_graph(connections: Iterable[StationConnectionRecord]) -> NetworkGraph:
    """
    Build an adjacency mapping from directed station connections.

    Every connection contributes its forward edge and a synthesized backward
    edge on the same line, so journeys can be found in either direction along
    a line. Edge order follows input order, forward before backward.

    Args:
        connections: Station connections (adjacent stops on a line)

    Returns:
        Mapping of station code to its outgoing edges

    Examples:
        >>> conn = StationConnectionRecord(
        ...     from_station_code="A", from_station_name="Alpha",
        ...     to_station_code="B", to_station_name="Bravo",
        ...     line_id=1, line_name="R1", from_stop_order=1, to_stop_order=2,
        ... )
        >>> graph = build_connection_graph([conn])
        >>> [edge["to_station_code"] for edge in graph["A"]], [edge["to_station_code"] for edge in graph["B"]]
        (['B'], ['A'])
        >>> build_connection_graph([])
        {}
    """
    graph: NetworkGraph = {}

    for connection in connections:
        graph.setdefault(connection.from_station_code, []).append(
            GraphEdge(
                to_station_code=connection.to_station_code,
                to_station_name=connection.to_station_name,
                line_name=connection.line_name,
                line_id=connection.line_id,
            )
        )
        graph.setdefault(connection.to_station_code, []).append(
            GraphEdge(
                to_station_code=connection.from_station_code,
                to_station_name=connection.from_station_name,
                line_name=connection.line_name,
                line_id=connection.line_id,
            )
        )

    return graph
