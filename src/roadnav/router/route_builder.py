# route_builder.py
# Normalizes a provider route response into a Route.
# Also holds the presentation helpers used by announcements and snapshots.

import logging
from typing import Any, Dict, List, Optional

from .errors import InvalidRoute
from .models import Coord, Route, RouteStep

logger = logging.getLogger(__name__)

UNNAMED_ROAD = "Unnamed road"


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------

def format_distance(meters: float) -> str:
    """'N m' below one kilometre (after rounding), 'X.Y km' from there on."""
    rounded = int(round(meters))
    if rounded < 1000:
        return f"{rounded} m"
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    """'M m' below one hour, 'H h M m' from there on."""
    total_minutes = int(max(0.0, seconds) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes} m"
    return f"{hours} h {minutes} m"


def format_instruction(
    kind: str,
    modifier: Optional[str] = None,
    street_name: str = "",
    exit_number: Optional[int] = None,
) -> str:
    """
    Human-readable instruction for a maneuver.

    Args:
        kind:        Maneuver type ("depart", "turn", "roundabout", ...).
        modifier:    Direction modifier ("left", "slight right", ...).
        street_name: Road the maneuver leads onto.
        exit_number: Roundabout exit, when known.

    Returns:
        Instruction text.
    """
    if kind == "depart":
        text = f"Head {modifier or 'forward'}"
    elif kind == "turn":
        text = f"Turn {modifier}" if modifier else "Turn"
    elif kind == "new name":
        text = "Continue"
    elif kind == "arrive":
        return "You have arrived at your destination"
    elif kind == "merge":
        text = f"Merge {modifier}" if modifier else "Merge"
    elif kind == "on ramp":
        text = f"Take the ramp {modifier}" if modifier else "Take the ramp"
    elif kind == "off ramp":
        text = f"Take the exit {modifier}" if modifier else "Take the exit"
    elif kind == "fork":
        text = f"At the fork, take {modifier}" if modifier else "At the fork, continue"
    elif kind in ("roundabout", "rotary"):
        text = f"At the roundabout, take exit {exit_number}" if exit_number else "Enter the roundabout"
    elif kind == "end of road":
        text = f"At the end of the road, turn {modifier}" if modifier else "At the end of the road, turn"
    elif kind == "continue":
        text = f"Continue {modifier or 'straight'}"
    else:
        text = "Continue"

    if street_name and street_name != UNNAMED_ROAD:
        text += f" onto {street_name}"
    return text


def estimate_eta_seconds(route: Route, remaining_m: float) -> float:
    """Route duration scaled by the share of distance still ahead."""
    if route.total_distance_m <= 0:
        return 0.0
    share = min(1.0, max(0.0, remaining_m / route.total_distance_m))
    return route.total_duration_s * share


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

def _select_route(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Accept either a full OSRM response or a single route object."""
    if "routes" in payload:
        code = payload.get("code", "Ok")
        if code != "Ok":
            raise InvalidRoute(f"Provider returned code {code!r}: {payload.get('message', '')}")
        routes = payload["routes"]
        if not isinstance(routes, list) or not routes:
            raise InvalidRoute("Provider response has no routes.")
        payload = routes[0]
    if not isinstance(payload, dict):
        raise InvalidRoute("Route entry must be a JSON object.")
    return payload


def _parse_coord(raw: Any) -> Coord:
    """GeoJSON order: [lon, lat]."""
    try:
        lon, lat = float(raw[0]), float(raw[1])
    except (TypeError, ValueError, IndexError, KeyError) as e:
        raise InvalidRoute(f"Malformed coordinate {raw!r}") from e
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise InvalidRoute(f"Coordinate out of range: {raw!r}")
    return Coord(lat, lon)


def _parse_polyline(route: Dict[str, Any]) -> List[Coord]:
    geometry = route.get("geometry")
    if isinstance(geometry, dict):
        raw_coords = geometry.get("coordinates")
    else:
        raw_coords = route.get("coordinates")
    if not isinstance(raw_coords, list):
        raise InvalidRoute("Route geometry must be a GeoJSON LineString.")
    return [_parse_coord(c) for c in raw_coords]


def _is_arrive(raw: Any) -> bool:
    maneuver = raw.get("maneuver") if isinstance(raw, dict) else None
    return isinstance(maneuver, dict) and maneuver.get("type") == "arrive"


def _raw_steps(route: Dict[str, Any]) -> List[Dict[str, Any]]:
    if "legs" not in route:
        raw = route.get("steps") or []
        if not isinstance(raw, list):
            raise InvalidRoute("Route steps must be a list.")
        return raw

    legs = route["legs"] or []
    if not isinstance(legs, list):
        raise InvalidRoute("Route legs must be a list.")
    steps: List[Dict[str, Any]] = []
    for leg_index, leg in enumerate(legs):
        if not isinstance(leg, dict):
            raise InvalidRoute(f"Leg {leg_index} is not a JSON object.")
        leg_steps = leg.get("steps") or []
        if not isinstance(leg_steps, list):
            raise InvalidRoute(f"Leg {leg_index} steps must be a list.")
        # Intermediate legs end with an "arrive" at a waypoint; only the final one counts
        if leg_index < len(legs) - 1:
            leg_steps = [s for s in leg_steps if not _is_arrive(s)]
        steps.extend(leg_steps)
    return steps


def _parse_step(raw: Dict[str, Any], offset: float) -> RouteStep:
    if not isinstance(raw, dict):
        raise InvalidRoute(f"Malformed step: {raw!r}")
    try:
        maneuver = raw["maneuver"]
        kind = maneuver["type"]
        anchor = _parse_coord(maneuver["location"])
        distance_m = float(raw.get("distance", 0.0))
        duration_s = float(raw.get("duration", 0.0))
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidRoute(f"Malformed step: {e}") from e

    if distance_m < 0 or duration_s < 0:
        raise InvalidRoute("Step distance and duration must be non-negative.")

    modifier = maneuver.get("modifier")
    exit_number = maneuver.get("exit")
    street = raw.get("name") or UNNAMED_ROAD
    return RouteStep(
        instruction_text=format_instruction(kind, modifier, street, exit_number),
        maneuver_kind=kind,
        maneuver_modifier=modifier,
        street_name=street,
        distance_m=distance_m,
        duration_s=duration_s,
        distance_from_start_m=offset,
        anchor=anchor,
        roundabout_exit=exit_number,
    )


def _optional_float(route: Dict[str, Any], key: str) -> Optional[float]:
    value = route.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidRoute(f"Route {key} is not a number: {value!r}") from e


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_route(provider_response: Dict[str, Any]) -> Route:
    """
    Flatten a provider route response into a Route.

    Args:
        provider_response: OSRM /route JSON (or one element of its "routes").

    Returns:
        Route whose steps carry prefix-summed distance offsets.

    Raises:
        InvalidRoute: zero coordinates, zero steps or malformed entries.
    """
    if not isinstance(provider_response, dict):
        raise InvalidRoute("Provider response must be a JSON object.")

    route = _select_route(provider_response)
    polyline = _parse_polyline(route)
    raw_steps = _raw_steps(route)

    if not polyline:
        raise InvalidRoute("Route has no coordinates.")
    if not raw_steps:
        raise InvalidRoute("Route has no steps.")

    if len(polyline) == 1:
        polyline = [polyline[0], polyline[0]]

    steps: List[RouteStep] = []
    offset = 0.0
    for raw in raw_steps:
        step = _parse_step(raw, offset)
        steps.append(step)
        offset += step.distance_m

    # Last entry must be a zero-length arrival step
    if steps[-1].distance_m != 0:
        end = polyline[-1]
        steps.append(RouteStep(
            instruction_text=format_instruction("arrive"),
            maneuver_kind="arrive",
            street_name=steps[-1].street_name,
            distance_m=0.0,
            duration_s=0.0,
            distance_from_start_m=offset,
            anchor=end,
        ))

    total_distance = offset
    reported = _optional_float(route, "distance")
    if reported is not None and abs(reported - total_distance) > 1.0:
        logger.debug(f"Provider distance {reported} differs from step sum {total_distance:.1f}")

    total_duration = _optional_float(route, "duration")
    if total_duration is None:
        total_duration = sum(s.duration_s for s in steps)

    logger.info(
        f"Route built: {len(steps)} steps, {len(polyline)} points, "
        f"{format_distance(total_distance)}, {format_duration(total_duration)}"
    )
    return Route(
        total_distance_m=total_distance,
        total_duration_s=total_duration,
        polyline=polyline,
        steps=steps,
    )
