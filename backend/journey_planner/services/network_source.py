"""Collaborator interfaces for network reference data, plus an in-memory implementation."""

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

import structlog

from journey_planner.schemas.journeys import LineDefinition, StationConnectionRecord, StationRecord

logger = structlog.get_logger(__name__)


@runtime_checkable
class ConnectionSource(Protocol):
    """Supplies every adjacent-stop connection on every line."""

    async def get_connections(self) -> list[StationConnectionRecord]: ...


@runtime_checkable
class StationLookup(Protocol):
    """Resolves an upper-case station code to its station record."""

    async def get_station(self, code: str) -> StationRecord | None: ...


def derive_line_connections(
    stations: Mapping[str, StationRecord],
    lines: Iterable[LineDefinition],
) -> list[StationConnectionRecord]:
    """
    Derive adjacent-stop connections from ordered line definitions.

    Stop orders are 1-based. Each consecutive pair of stops on a line gives one
    connection from stop ``n`` to stop ``n + 1``; output is ordered by line ID,
    then stop order.

    Args:
        stations: Stations keyed by upper-case code
        lines: Line definitions

    Returns:
        List of connections, forward direction only

    Raises:
        ValueError: If a line references a station code not in ``stations``

    Examples:
        >>> stations = {"A": StationRecord(code="A", name="Alpha"), "B": StationRecord(code="B", name="Bravo")}
        >>> line = LineDefinition(line_id=1, name="R1", stop_codes=["A", "B"])
        >>> [(c.from_station_code, c.to_station_code, c.from_stop_order) for c in derive_line_connections(stations, [line])]
        [('A', 'B', 1)]
    """
    connections: list[StationConnectionRecord] = []

    for line in sorted(lines, key=lambda line: line.line_id):
        line_stations: list[StationRecord] = []
        for code in line.stop_codes:
            station = stations.get(code.upper())
            if station is None:
                msg = f"Line '{line.name}' references unknown station code '{code}'"
                raise ValueError(msg)
            line_stations.append(station)

        for stop_order, (from_station, to_station) in enumerate(
            zip(line_stations, line_stations[1:], strict=False), start=1
        ):
            connections.append(
                StationConnectionRecord(
                    from_station_code=from_station.code,
                    from_station_name=from_station.name,
                    to_station_code=to_station.code,
                    to_station_name=to_station.name,
                    line_id=line.line_id,
                    line_name=line.name,
                    from_stop_order=stop_order,
                    to_stop_order=stop_order + 1,
                )
            )

    return connections


class StaticNetworkSource:
    """
    In-memory network built from station records and line definitions.

    Implements both ConnectionSource and StationLookup. Data is fixed at
    construction, so a planner using it never needs its cache invalidated
    unless the source itself is replaced.
    """

    def __init__(self, stations: Iterable[StationRecord], lines: Iterable[LineDefinition]) -> None:
        """
        Initialize the network source.

        Args:
            stations: Station reference data
            lines: Lines with their stops in order

        Raises:
            ValueError: If a line references an unknown station
        """
        self._stations = {station.code.upper(): station for station in stations}
        self._lines = list(lines)
        self._connections = derive_line_connections(self._stations, self._lines)

        logger.info(
            "static_network_loaded",
            stations_count=len(self._stations),
            lines_count=len(self._lines),
            connections_count=len(self._connections),
        )

    async def get_connections(self) -> list[StationConnectionRecord]:
        """Return every adjacent-stop connection."""
        return list(self._connections)

    async def get_station(self, code: str) -> StationRecord | None:
        """Return the station for ``code`` (case-insensitive), or None."""
        return self._stations.get(code.upper())

    @property
    def lines(self) -> list[LineDefinition]:
        return list(self._lines)

    @property
    def connections(self) -> list[StationConnectionRecord]:
        return list(self._connections)
