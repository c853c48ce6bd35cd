"""
Journey assembly helpers.

Turns destination leaves of a search tree into ride segments and journeys,
and ranks journeys for the rider. Pure functions with no side effects.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from journey_planner.helpers.path_search import SearchTree
from journey_planner.schemas.journeys import Journey, JourneySegment, StationRecord


@dataclass
class _SegmentDraft:
    """Mutable segment used while walking a path backwards."""

    from_station_code: str
    from_station_name: str
    to_station_code: str
    to_station_name: str
    line_name: str
    stops_count: int = 1

    def freeze(self) -> JourneySegment:
        return JourneySegment(
            from_station_code=self.from_station_code,
            from_station_name=self.from_station_name,
            to_station_code=self.to_station_code,
            to_station_name=self.to_station_name,
            line_name=self.line_name,
            stops_count=self.stops_count,
        )


def reconstruct_segments(tree: SearchTree, leaf_index: int) -> list[JourneySegment]:
    """
    Rebuild the ride segments for the path ending at ``leaf_index``.

    Walks from the leaf back to the root with SearchTree.walk_to_root, building
    segments back to front. A hop on the same line as the current first segment
    extends it (its origin moves back one station and it gains a stop); any
    other line starts a new leading segment. The root has no arriving line and
    contributes nothing, so consecutive same-line hops always end up in a single
    segment.

    Args:
        tree: Search arena
        leaf_index: Index of a destination leaf in ``tree``

    Returns:
        Segments in travel order (empty if the leaf is the root)
    """
    drafts: deque[_SegmentDraft] = deque()
    path = list(tree.walk_to_root(leaf_index))

    for node, parent in zip(path, path[1:], strict=False):
        if node.line_name is None:
            continue
        if drafts and drafts[0].line_name == node.line_name:
            drafts[0].from_station_code = parent.station_code
            drafts[0].from_station_name = parent.station_name
            drafts[0].stops_count += 1
        else:
            drafts.appendleft(
                _SegmentDraft(
                    from_station_code=parent.station_code,
                    from_station_name=parent.station_name,
                    to_station_code=node.station_code,
                    to_station_name=node.station_name,
                    line_name=node.line_name,
                )
            )

    return [draft.freeze() for draft in drafts]


def build_journey(
    origin: StationRecord,
    destination: StationRecord,
    segments: list[JourneySegment],
) -> Journey | None:
    """
    Wrap segments into a Journey between the requested stations.

    Returns:
        Journey, or None for a degenerate path with no segments
    """
    if not segments:
        return None

    return Journey(
        from_station_code=origin.code,
        from_station_name=origin.name,
        to_station_code=destination.code,
        to_station_name=destination.name,
        segments=segments,
    )


def journey_sort_key(journey: Journey) -> tuple[int, int]:
    """Rank key: fewest changes first, then fewest stops."""
    return (journey.changes, journey.total_stops)


def rank_journeys(journeys: Iterable[Journey], limit: int) -> list[Journey]:
    """
    Order journeys by (changes, total stops) and keep the best ``limit``.

    The sort is stable, so journeys that tie on both keys keep discovery order.

    Example:
        Candidates scoring (1, 3), (0, 4), (1, 5) and (2, 3) as (changes, stops)
        come back from rank_journeys(candidates, limit=3) scoring (0, 4), (1, 3)
        and (1, 5).
    """
    return sorted(journeys, key=journey_sort_key)[:limit]
