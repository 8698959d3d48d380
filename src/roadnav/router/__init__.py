"""Live navigation: geometry, route model, position filtering and the state machine"""
from .errors import (
    InvalidRoute, NavigationError, PositionUnavailable,
    RecalculationFailed, RouteUnavailable,
)
from .models import (
    Coord, NavigationSession, NavigationSnapshot, NavState,
    Position, ProgressResult, Route, RouteStatus, RouteStep,
)
from .nav_config import NavConfig
from .navigator import NavigationSystem
from .route_builder import build_route, format_distance, format_duration
from .route_tracker import NavigationStateMachine
from .scheduler import ManualScheduler, ThreadedScheduler

__all__ = [
    "Coord", "Position", "Route", "RouteStep", "NavState", "RouteStatus",
    "NavigationSession", "NavigationSnapshot", "ProgressResult",
    "NavConfig", "NavigationSystem", "NavigationStateMachine",
    "ManualScheduler", "ThreadedScheduler",
    "build_route", "format_distance", "format_duration",
    "NavigationError", "InvalidRoute", "RouteUnavailable",
    "PositionUnavailable", "RecalculationFailed",
]
