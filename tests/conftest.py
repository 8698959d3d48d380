import math
from typing import List, Optional

import pytest

from roadnav.router.models import Coord, Position, Route, RouteStep
from roadnav.router.nav_config import NavConfig

# Metres per degree of latitude (and of longitude on the equator)
M_PER_DEG = math.radians(1.0) * 6_371_000.0


def at(north_m: float, east_m: float = 0.0) -> Coord:
    """Coordinate north_m up the meridian at lon 0, shifted east_m."""
    return Coord(north_m / M_PER_DEG, east_m / M_PER_DEG)


def straight_route(step_distances=(500.0, 300.0, 0.0), spacing_m: float = 100.0) -> Route:
    """A route running due north from (0, 0), one step anchor per offset."""
    total = sum(step_distances)
    polyline: List[Coord] = []
    d = 0.0
    while d < total:
        polyline.append(at(d))
        d += spacing_m
    polyline.append(at(total))

    texts = ["Head north onto Main Street", "Turn right onto Oak Avenue"]
    steps = []
    offset = 0.0
    last = len(step_distances) - 1
    for i, dist in enumerate(step_distances):
        if i == last:
            kind, text = "arrive", "You have arrived at your destination"
        elif i == 0:
            kind, text = "depart", texts[0]
        else:
            kind, text = "turn", texts[1] if i == 1 else f"Turn left onto Street {i}"
        steps.append(RouteStep(
            instruction_text=text,
            maneuver_kind=kind,
            street_name="Main Street",
            distance_m=dist,
            duration_s=dist / 10.0,
            distance_from_start_m=offset,
            anchor=at(offset),
        ))
        offset += dist
    return Route(
        total_distance_m=total,
        total_duration_s=total / 10.0,
        polyline=polyline,
        steps=steps,
    )


def _lonlat(c: Coord) -> List[float]:
    return [c.lon, c.lat]


def osrm_payload(step_distances=(500.0, 300.0, 0.0)) -> dict:
    """OSRM /route response for the straight northbound test road."""
    coords = [_lonlat(at(d)) for d in range(0, 801, 100)]
    steps = []
    offset = 0.0
    kinds = [("depart", None, "Main Street"), ("turn", "right", "Oak Avenue"), ("arrive", None, "Oak Avenue")]
    for i, dist in enumerate(step_distances):
        kind, modifier, name = kinds[min(i, 2)]
        maneuver = {"type": kind, "location": _lonlat(at(offset))}
        if modifier:
            maneuver["modifier"] = modifier
        steps.append({"distance": dist, "duration": dist / 10, "name": name, "maneuver": maneuver})
        offset += dist
    return {
        "code": "Ok",
        "routes": [{
            "distance": sum(step_distances),
            "duration": sum(step_distances) / 10,
            "geometry": {"type": "LineString", "coordinates": coords},
            "legs": [{"steps": steps}],
        }],
    }


class Walker:
    """Emits Position samples with steadily increasing timestamps."""

    def __init__(self, step_ms: int = 1000) -> None:
        self.clock_ms = 0
        self.step_ms = step_ms

    def at(self, north_m: float, east_m: float = 0.0, accuracy_m: float = 5.0,
           speed_mps: Optional[float] = 10.0) -> Position:
        self.clock_ms += self.step_ms
        c = at(north_m, east_m)
        return Position(
            lat=c.lat, lon=c.lon, accuracy_m=accuracy_m,
            captured_at_ms=self.clock_ms, speed_mps=speed_mps,
        )


class FakeRecalculator:
    """Captures requests; the test decides when and how they complete."""

    def __init__(self) -> None:
        self.requests = []

    def request(self, origin, destination, travel_mode, on_done) -> None:
        self.requests.append((origin, destination, travel_mode, on_done))

    def complete(self, route=None, error=None, index: int = -1) -> None:
        self.requests[index][3](route, error)

    def shutdown(self) -> None:
        pass


class FakeProvider:
    def __init__(self, routes=None, error: Optional[Exception] = None) -> None:
        self.routes = list(routes or [])
        self.error = error
        self.calls = []

    def request_route(self, origin, destination, travel_mode="driving"):
        self.calls.append((origin, destination, travel_mode))
        if self.error is not None:
            raise self.error
        if len(self.routes) > 1:
            return self.routes.pop(0)
        return self.routes[0]


@pytest.fixture
def config() -> NavConfig:
    return NavConfig()


@pytest.fixture
def walker() -> Walker:
    return Walker()


@pytest.fixture
def route() -> Route:
    return straight_route()


@pytest.fixture
def spoken() -> list:
    return []
