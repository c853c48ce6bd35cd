"""Journey planning service: station resolution, search, ranking and caching."""

import structlog

from journey_planner.core.exceptions import StationNotFoundError
from journey_planner.core.telemetry import annotate_current_span, journey_span
from journey_planner.helpers.journey_assembly import build_journey, rank_journeys, reconstruct_segments
from journey_planner.helpers.network_graph import build_connection_graph
from journey_planner.helpers.path_search import PlannerBudgets, enumerate_paths
from journey_planner.schemas.journeys import Journey, JourneyQuery, StationRecord
from journey_planner.services.journey_cache import JourneyCache
from journey_planner.services.network_source import ConnectionSource, StationLookup

logger = structlog.get_logger(__name__)


class JourneyPlanner:
    """
    Plans journeys between two stations on a fixed-route network.

    Journeys are ranked by fewest changes, then fewest stops. Results are
    memoized per (origin, destination, max_results) until the cache is
    invalidated; each computation builds its own graph and search state, so
    concurrent plans for different keys share nothing but the cache.
    """

    def __init__(
        self,
        connections: ConnectionSource,
        stations: StationLookup,
        *,
        cache: JourneyCache | None = None,
        budgets: PlannerBudgets | None = None,
    ) -> None:
        """
        Initialize the planner.

        Args:
            connections: Source of adjacent-stop connections
            stations: Station lookup by code
            cache: Result cache (a private one is created if omitted)
            budgets: Search budgets (read from settings if omitted)
        """
        self.connections = connections
        self.stations = stations
        self.cache = cache if cache is not None else JourneyCache()
        self.budgets = budgets if budgets is not None else PlannerBudgets.from_settings()

    async def plan(
        self,
        origin_code: str,
        destination_code: str,
        max_results: int | None = None,
    ) -> list[Journey]:
        """
        Find the best journeys from one station to another.

        Args:
            origin_code: Origin station code (case-insensitive)
            destination_code: Destination station code (case-insensitive)
            max_results: Number of journeys to return (default from settings)

        Returns:
            Journeys sorted by changes then total stops; empty if origin and
            destination are the same station

        Raises:
            pydantic.ValidationError: If codes or max_results are out of bounds
            StationNotFoundError: If either code does not resolve
            NoConnectionsFromStationError: If the origin has no connections
        """
        query = (
            JourneyQuery(origin_code=origin_code, destination_code=destination_code)
            if max_results is None
            else JourneyQuery(origin_code=origin_code, destination_code=destination_code, max_results=max_results)
        )

        with journey_span(
            "journey.plan",
            **{
                "journey.origin": query.origin_code,
                "journey.destination": query.destination_code,
                "journey.max_results": query.max_results,
            },
        ) as span:
            result = await self.cache.get_or_compute(query.cache_key, lambda: self._compute(query))
            span.set_attribute("journey.cache_hit", not result.computed)
            span.set_attribute("journey.results_count", len(result.journeys))
            return result.journeys

    async def invalidate(self) -> None:
        """Discard memoized journeys, e.g. after the network data has been reloaded."""
        await self.cache.invalidate()

    async def _resolve_station(self, code: str) -> StationRecord:
        station = await self.stations.get_station(code)
        if station is None:
            logger.warning("station_not_found", station_code=code)
            raise StationNotFoundError(code)
        return station

    async def _compute(self, query: JourneyQuery) -> list[Journey]:
        """Run the uncached pipeline for a normalized query."""
        origin = await self._resolve_station(query.origin_code)
        destination = await self._resolve_station(query.destination_code)

        if origin.code == destination.code:
            logger.info("journey_same_origin_destination", station_code=origin.code)
            return []

        graph = build_connection_graph(await self.connections.get_connections())
        search = enumerate_paths(
            graph,
            origin,
            destination.code,
            max_depth=self.budgets.max_depth,
            max_iterations=self.budgets.max_iterations,
            max_leaves=self.budgets.leaf_cap(query.max_results),
        )

        found: list[Journey] = []
        for leaf in search.leaves:
            journey = build_journey(origin, destination, reconstruct_segments(search.tree, leaf))
            if journey is not None:
                found.append(journey)

        ranked = rank_journeys(found, query.max_results)

        annotate_current_span(
            **{
                "journey.search_iterations": search.iterations,
                "journey.search_stop_reason": search.stop_reason.value,
                "journey.candidates_count": len(found),
            }
        )

        logger.info(
            "journeys_planned",
            origin=origin.code,
            destination=destination.code,
            candidates=len(found),
            returned=len(ranked),
            iterations=search.iterations,
            stop_reason=search.stop_reason.value,
        )
        return ranked
