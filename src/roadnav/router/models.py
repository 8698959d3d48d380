# models.py
# Shared data structures and enums used across all modules.

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# ---------------------------------------------------------------------------
# Coordinate / position
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate."""
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @staticmethod
    def from_dict(d: dict) -> "Coord":
        return Coord(float(d["lat"]), float(d["lon"]))


@dataclass(frozen=True)
class Position:
    """A single fix pushed by the location source."""
    lat: float
    lon: float
    accuracy_m: float
    captured_at_ms: int
    heading_deg: Optional[float] = None
    speed_mps: Optional[float] = None

    @property
    def coord(self) -> Coord:
        return Coord(self.lat, self.lon)

    @property
    def speed_kmh(self) -> Optional[float]:
        if self.speed_mps is None or self.speed_mps < 0:
            return None
        return self.speed_mps * 3.6


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

@dataclass
class RouteStep:
    """A single navigation instruction in a route."""
    instruction_text: str
    maneuver_kind: str           # "depart" | "turn" | "continue" | ... | "arrive"
    street_name: str
    distance_m: float
    duration_s: float
    distance_from_start_m: float
    anchor: Coord                # where the maneuver takes place
    maneuver_modifier: Optional[str] = None
    roundabout_exit: Optional[int] = None

    @property
    def is_arrival(self) -> bool:
        return self.maneuver_kind == "arrive"

    def to_dict(self) -> dict:
        return {
            "instruction_text": self.instruction_text,
            "maneuver_kind": self.maneuver_kind,
            "maneuver_modifier": self.maneuver_modifier,
            "street_name": self.street_name,
            "distance_m": self.distance_m,
            "duration_s": self.duration_s,
            "distance_from_start_m": self.distance_from_start_m,
            "anchor": self.anchor.to_dict(),
            "roundabout_exit": self.roundabout_exit,
        }

    @staticmethod
    def from_dict(d: dict) -> "RouteStep":
        return RouteStep(
            instruction_text=d["instruction_text"],
            maneuver_kind=d["maneuver_kind"],
            maneuver_modifier=d.get("maneuver_modifier"),
            street_name=d.get("street_name", ""),
            distance_m=float(d["distance_m"]),
            duration_s=float(d["duration_s"]),
            distance_from_start_m=float(d["distance_from_start_m"]),
            anchor=Coord.from_dict(d["anchor"]),
            roundabout_exit=d.get("roundabout_exit"),
        )


@dataclass
class Route:
    """A confirmed path: ordered steps plus the dense polyline."""
    total_distance_m: float
    total_duration_s: float
    polyline: List[Coord]
    steps: List[RouteStep]

    @property
    def arrival_step(self) -> RouteStep:
        return self.steps[-1]

    def to_dict(self) -> dict:
        return {
            "total_distance_m": self.total_distance_m,
            "total_duration_s": self.total_duration_s,
            "polyline": [[c.lat, c.lon] for c in self.polyline],
            "steps": [s.to_dict() for s in self.steps],
        }

    @staticmethod
    def from_dict(d: dict) -> "Route":
        return Route(
            total_distance_m=float(d["total_distance_m"]),
            total_duration_s=float(d["total_duration_s"]),
            polyline=[Coord(float(lat), float(lon)) for lat, lon in d["polyline"]],
            steps=[RouteStep.from_dict(s) for s in d["steps"]],
        )


# ---------------------------------------------------------------------------
# Navigation state
# ---------------------------------------------------------------------------

class NavState(Enum):
    IDLE        = "idle"
    NAVIGATING  = "navigating"
    OFF_ROUTE   = "off_route"
    ARRIVED     = "arrived"


@dataclass
class NavigationSession:
    """
    Mutable aggregate for one navigation lifecycle.

    Only the state machine writes to it; everybody else reads snapshots.
    """
    route: Route
    destination: Coord
    travel_mode: str = "driving"
    current_step_index: int = 0
    remaining_distance_m: float = 0.0
    distance_along_route_m: float = 0.0
    distance_to_route_m: float = 0.0
    last_announced_step_index: int = -1
    recalculation_in_flight: bool = False
    recalculation_count: int = 0
    started_at_ms: Optional[int] = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def current_step(self) -> Optional[RouteStep]:
        if 0 <= self.current_step_index < len(self.route.steps):
            return self.route.steps[self.current_step_index]
        return None


@dataclass(frozen=True)
class NavigationSnapshot:
    """Read-only view handed to display sinks after every update."""
    state: NavState
    current_step_index: int = 0
    step_count: int = 0
    remaining_distance_m: float = 0.0
    progress: float = 0.0                        # 0.0 .. 1.0
    active_instruction: Optional[str] = None     # upcoming maneuver
    next_instruction: Optional[str] = None       # the one after it
    street_name: Optional[str] = None
    distance_to_next_maneuver_m: Optional[float] = None
    distance_to_route_m: Optional[float] = None
    eta_seconds: Optional[float] = None
    speed_kmh: Optional[float] = None
    recalculating: bool = False

    def to_dict(self) -> dict:
        # Local import keeps models free of module-level cycles
        from .route_builder import format_distance, format_duration

        return {
            "state": self.state.value,
            "current_step_index": self.current_step_index,
            "step_count": self.step_count,
            "remaining_distance_m": round(self.remaining_distance_m, 1),
            "remaining_distance": format_distance(self.remaining_distance_m),
            "progress": round(self.progress, 4),
            "active_instruction": self.active_instruction,
            "next_instruction": self.next_instruction,
            "street_name": self.street_name,
            "distance_to_next_maneuver_m": self.distance_to_next_maneuver_m,
            "eta": format_duration(self.eta_seconds) if self.eta_seconds is not None else None,
            "speed_kmh": round(self.speed_kmh) if self.speed_kmh is not None else None,
            "recalculating": self.recalculating,
        }


# ---------------------------------------------------------------------------
# Per-update outcome
# ---------------------------------------------------------------------------

class RouteStatus(Enum):
    INACTIVE       = "inactive"
    REJECTED       = "rejected"        # sample filtered out by the tracker
    WAITING        = "waiting"         # route loaded, no fix yet
    PROGRESSING    = "progressing"
    WAYPOINT_HIT   = "waypoint_hit"
    OFF_ROUTE      = "off_route"
    FINISHED       = "finished"


@dataclass
class ProgressResult:
    """Returned by NavigationStateMachine.handle_position() every GPS update."""
    status: RouteStatus
    message: str
    distance_to_next: Optional[float] = None   # metres
    current_step: Optional[RouteStep] = None
    snapshot: Optional[NavigationSnapshot] = None
