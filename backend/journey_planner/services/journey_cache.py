"""Memoizing cache for planned journeys with single-flight computation."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import NamedTuple

import structlog
from aiocache import Cache
from aiocache.serializers import PickleSerializer

from journey_planner.schemas.journeys import Journey

logger = structlog.get_logger(__name__)


class CachedJourneys(NamedTuple):
    """Journeys returned by the cache, and whether this caller computed them."""

    journeys: list[Journey]
    computed: bool


class _FlightOutcome(NamedTuple):
    journeys: tuple[Journey, ...]
    computed: bool


class JourneyCache:
    """
    Key -> journeys table with at most one in-flight computation per key.

    Computations run in tasks owned by the cache, not by the caller that
    started them. Every caller (the first included) waits on a shielded view of
    that task, so a caller that times out or is cancelled only stops waiting;
    the computation finishes and the other callers still get its result.

    Results are kept without expiry until invalidate() is called (the explicit
    rebuild signal, e.g. after a network data reload). Failed computations are
    never stored: every caller waiting on the failed flight receives the same
    exception and the next call for that key computes again.

    Claiming a key is atomic with respect to the event loop: the in-flight
    table is checked and updated with no await in between.
    """

    def __init__(self, namespace: str = "journeys") -> None:
        """
        Initialize the cache.

        Args:
            namespace: aiocache namespace for stored results
        """
        self.cache = Cache(
            Cache.MEMORY,
            serializer=PickleSerializer(),
            namespace=namespace,
        )
        self._in_flight: dict[str, asyncio.Task[_FlightOutcome]] = {}
        # Strong references; the event loop only keeps weak ones
        self._running: set[asyncio.Task[_FlightOutcome]] = set()
        self._generation = 0

    @property
    def in_flight_count(self) -> int:
        """Number of computations that new callers would join."""
        return len(self._in_flight)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[list[Journey]]],
    ) -> CachedJourneys:
        """
        Return cached journeys for ``key``, computing them at most once.

        Concurrent callers for a key that is already being computed wait on
        that computation and share its result or its exception. Each caller
        gets its own list.

        Args:
            key: Cache key (see JourneyQuery.cache_key)
            compute: Coroutine factory producing the journeys on a miss

        Returns:
            CachedJourneys with ``computed`` True only for the caller that started
            a computation which actually ran ``compute``

        Raises:
            Exception: Whatever ``compute`` raised, for every caller of that flight
        """
        flight = self._in_flight.get(key)
        started_here = flight is None
        if flight is None:
            flight = asyncio.create_task(self._fly(key, compute, self._generation))
            self._in_flight[key] = flight
            self._running.add(flight)
            flight.add_done_callback(self._running.discard)
        else:
            logger.debug("journey_cache_joined_in_flight", key=key)

        outcome = await asyncio.shield(flight)
        return CachedJourneys(journeys=list(outcome.journeys), computed=started_here and outcome.computed)

    async def _fly(
        self,
        key: str,
        compute: Callable[[], Awaitable[list[Journey]]],
        generation: int,
    ) -> _FlightOutcome:
        """Body of an in-flight task: read through the cache, computing on a miss."""
        try:
            cached: list[Journey] | None = await self.cache.get(key)
            if cached is not None:
                logger.debug("journey_cache_hit", key=key, count=len(cached))
                return _FlightOutcome(journeys=tuple(cached), computed=False)

            logger.debug("journey_cache_miss", key=key)
            journeys = tuple(await compute())

            # A result computed before an invalidation must not outlive it
            if generation == self._generation:
                await self.cache.set(key, list(journeys))
                logger.debug("journey_cache_stored", key=key, count=len(journeys))
            else:
                logger.info("journey_cache_store_skipped_after_invalidation", key=key)

            return _FlightOutcome(journeys=journeys, computed=True)

        except Exception as exc:
            logger.debug("journey_cache_compute_failed", key=key, error=str(exc))
            raise
        finally:
            if self._in_flight.get(key) is asyncio.current_task():
                del self._in_flight[key]

    async def invalidate(self) -> None:
        """
        Drop every stored result and detach running computations.

        Callers arriving afterwards start fresh computations. Computations already
        running still answer their own callers but will not store their results.
        """
        self._generation += 1
        self._in_flight.clear()
        await self.cache.clear()
        logger.info("journey_cache_invalidated", generation=self._generation)
