# map_matcher.py
# Associates a position with the active route.
# Read-only: never mutates the session it is given.

from dataclasses import dataclass

from .geo_utils import distance, nearest_point_on_polyline
from .models import Coord, NavigationSession, Position, Route


@dataclass(frozen=True)
class MatchResult:
    distance_to_route_m: float
    distance_along_route_m: float
    segment_index: int


def _coord(position) -> Coord:
    return position if isinstance(position, Coord) else Coord(position.lat, position.lon)


def match(position: Position, route: Route) -> MatchResult:
    """Perpendicular distance to the polyline and distance travelled along it."""
    hit = nearest_point_on_polyline(_coord(position), route.polyline)
    return MatchResult(
        distance_to_route_m=hit.distance_m,
        distance_along_route_m=hit.distance_along_m,
        segment_index=hit.segment_index,
    )


def next_maneuver_index(session: NavigationSession) -> int:
    """
    Index of the maneuver that ends the current step.

    Step i runs from its own anchor to the anchor of step i + 1. Once the
    arrival step is current, its own anchor is the target.
    """
    last = len(session.route.steps) - 1
    return min(session.current_step_index + 1, last)


def distance_to_next_maneuver(position: Position, session: NavigationSession) -> float:
    """Great-circle distance from position to the upcoming maneuver anchor."""
    target = session.route.steps[next_maneuver_index(session)]
    return distance(_coord(position), target.anchor)
