"""Pydantic schemas for network reference data and planned journeys."""

from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from journey_planner.core.config import settings

MIN_STATION_CODE_LENGTH = 1
MAX_STATION_CODE_LENGTH = 10

# ==================== Reference Data ====================


class StationRecord(BaseModel):
    """A station on the network, as supplied by the station lookup."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Stable station code (e.g., 'ALT' for Altrincham)")
    name: str = Field(..., description="Display name")


class StationConnectionRecord(BaseModel):
    """Direct hop between two stations that are adjacent stops on a line."""

    model_config = ConfigDict(frozen=True)

    from_station_code: str
    from_station_name: str
    to_station_code: str
    to_station_name: str
    line_id: int
    line_name: str
    from_stop_order: int
    to_stop_order: int


class LineDefinition(BaseModel):
    """A service line with its stations in stop order."""

    model_config = ConfigDict(frozen=True)

    line_id: int
    name: str
    stop_codes: list[str] = Field(..., min_length=1, description="Station codes in stop order")


# ==================== Journey Results ====================


class JourneySegment(BaseModel):
    """Contiguous ride on a single line."""

    model_config = ConfigDict(frozen=True)

    from_station_code: str
    from_station_name: str
    to_station_code: str
    to_station_name: str
    line_name: str
    stops_count: int = Field(..., ge=1)


class Journey(BaseModel):
    """Ordered sequence of segments from the requested origin to the requested destination."""

    model_config = ConfigDict(frozen=True)

    from_station_code: str
    from_station_name: str
    to_station_code: str
    to_station_name: str
    segments: list[JourneySegment] = Field(..., min_length=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_stops(self) -> int:
        """Stops travelled across all segments."""
        return sum(segment.stops_count for segment in self.segments)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def changes(self) -> int:
        """Number of line changes."""
        return len(self.segments) - 1


# ==================== Requests ====================


class JourneyQuery(BaseModel):
    """Normalized journey planning request."""

    model_config = ConfigDict(frozen=True)

    origin_code: str = Field(..., min_length=MIN_STATION_CODE_LENGTH, max_length=MAX_STATION_CODE_LENGTH)
    destination_code: str = Field(..., min_length=MIN_STATION_CODE_LENGTH, max_length=MAX_STATION_CODE_LENGTH)
    max_results: int = Field(default_factory=lambda: settings.PLANNER_DEFAULT_RESULTS, ge=1)

    @field_validator("origin_code", "destination_code", mode="before")
    @classmethod
    def normalize_station_code(cls, v: object) -> object:
        """Trim and upper-case station codes before length validation."""
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("max_results", mode="after")
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        """Bound the result count by the configured maximum."""
        if v > settings.PLANNER_MAX_RESULTS:
            msg = f"max_results must be at most {settings.PLANNER_MAX_RESULTS}"
            raise ValueError(msg)
        return v

    @property
    def cache_key(self) -> str:
        """
        Key identifying this request in the journey cache.

        Codes are percent-encoded so a ":" inside a code cannot be mistaken for
        the separator, e.g. ("X:Y", "Z") and ("X", "Y:Z") get different keys.
        """
        origin = quote(self.origin_code, safe="")
        destination = quote(self.destination_code, safe="")
        return f"journeys:{origin}:{destination}:{self.max_results}"
