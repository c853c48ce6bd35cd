"""Domain exceptions raised while planning journeys."""


class JourneyPlanningError(Exception):
    """Base exception for journey planning errors."""

    pass


class StationNotFoundError(JourneyPlanningError):
    """Raised when a station code does not resolve to a known station."""

    def __init__(self, station_code: str) -> None:
        self.station_code = station_code
        super().__init__(f"Station not found: {station_code}")


class NoConnectionsFromStationError(JourneyPlanningError):
    """
    Raised when the origin station exists but has no edges in the network graph.

    Usually a station attached to no line in the reference data.
    """

    def __init__(self, station_code: str) -> None:
        self.station_code = station_code
        super().__init__(f"No connections found from station: {station_code}")
