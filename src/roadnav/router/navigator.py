# navigator.py
# Public entry point for the navigation system.
# Owns no business logic; delegates everything to specialist modules.

import logging
from typing import Callable, List, Optional

from .announcer import SpeakFn
from .errors import PositionUnavailable
from .interfaces import Recalculator, RouteProvider
from .models import Coord, NavigationSnapshot, NavState, Position, ProgressResult, Route
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .osrm_client import OSRMClient
from .recalculation import BackgroundRecalculator
from .route_builder import format_distance, format_duration
from .route_tracker import NavigationStateMachine
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class NavigationSystem:
    """
    High-level navigation facade.

    Typical lifecycle:
        nav = NavigationSystem(speak=speaker.speak)
        nav.update(first_fix)
        nav.start_navigation(None, Coord(39.921, 32.852))

        # GPS loop:
        result = nav.update(position)

    Args:
        provider:     RouteProvider; defaults to OSRMClient(config).
        config:       Optional NavConfig; defaults to NavConfig().
        speak:        Speech capability, speak(text) -> None.
        scheduler:    Debounce timer source.
        recalculator: Reroute adapter; defaults to a background worker on provider.
        persist:      Save routes and per-update events under config.log_dir.
    """

    def __init__(
        self,
        provider: Optional[RouteProvider] = None,
        config: Optional[NavConfig] = None,
        speak: Optional[SpeakFn] = None,
        scheduler: Optional[Scheduler] = None,
        recalculator: Optional[Recalculator] = None,
        persist: bool = True,
    ) -> None:
        self.config = config or NavConfig()
        self._provider = provider or OSRMClient(self.config)
        self._recalculator = recalculator or BackgroundRecalculator(self._provider)
        self._logger = NavLogger(self.config) if persist else None

        self._machine = NavigationStateMachine(
            config=self.config,
            recalculator=self._recalculator,
            scheduler=scheduler,
            speak=speak,
        )
        self._destination: Optional[Coord] = None

    # ------------------------------------------------------------------
    # Route selection
    # ------------------------------------------------------------------

    def _resolve_origin(self, origin: Optional[Coord]) -> Coord:
        if origin is not None:
            return origin
        fix = self._machine.tracker.last_good
        if fix is None:
            raise PositionUnavailable("No position fix yet; retry once the location source reports.")
        return fix.coord

    def preview_routes(
        self,
        origin: Optional[Coord],
        destination: Coord,
        travel_mode: Optional[str] = None,
    ) -> List[Route]:
        """
        Fetch candidate routes without starting navigation.

        Raises:
            PositionUnavailable: origin omitted and no fix yet.
            RouteUnavailable:    provider failure.
        """
        start = self._resolve_origin(origin)
        mode = travel_mode or self.config.travel_mode
        if isinstance(self._provider, OSRMClient):
            routes = self._provider.request_routes(start, destination, mode, alternatives=True)
        else:
            routes = [self._provider.request_route(start, destination, mode)]
        for i, r in enumerate(routes):
            logger.info(f"Option {i + 1}: {format_distance(r.total_distance_m)}, {format_duration(r.total_duration_s)}")
        return routes

    def confirm_route(
        self,
        route: Route,
        destination: Optional[Coord] = None,
        travel_mode: Optional[str] = None,
    ) -> ProgressResult:
        """Start navigating an already fetched route."""
        target = destination or route.arrival_step.anchor
        result = self._machine.start(route, target, travel_mode)
        self._destination = target
        if self._logger:
            self._logger.save_route(route, self._machine.session)
        logger.info(f"Route ready, {len(route.steps)} steps. First: {route.steps[0].instruction_text}")
        return result

    # ------------------------------------------------------------------
    # Navigation control
    # ------------------------------------------------------------------

    def start_navigation(
        self,
        origin: Optional[Coord],
        destination: Coord,
        travel_mode: Optional[str] = None,
    ) -> ProgressResult:
        """
        Calculate a route and begin tracking.

        Args:
            origin:      Starting coordinate; None uses the last known fix.
            destination: Target coordinate.
            travel_mode: "driving", "walking" or "cycling".

        Raises:
            PositionUnavailable: origin omitted and no fix yet.
            RouteUnavailable:    provider failure; nothing is started.
            InvalidRoute:        provider payload malformed; nothing is started.
        """
        start = self._resolve_origin(origin)
        mode = travel_mode or self.config.travel_mode
        logger.info(f"Calculating route: {start} → {destination} ({mode})")
        route = self._provider.request_route(start, destination, mode)
        return self.confirm_route(route, destination, mode)

    def stop_navigation(self) -> None:
        """Forcibly end the current navigation session."""
        self._machine.stop()
        self._destination = None
        logger.info("Navigation stopped by user.")

    def shutdown(self) -> None:
        self._machine.stop()
        self._recalculator.shutdown()

    # ------------------------------------------------------------------
    # GPS update: call this on every position fix
    # ------------------------------------------------------------------

    def update(self, position: Position) -> ProgressResult:
        """
        Process a new GPS position and return the current navigation status.

        Args:
            position: Raw sample from the location source.

        Returns:
            ProgressResult containing RouteStatus, message, and step info.
        """
        result = self._machine.handle_position(position)
        if self._logger:
            self._logger.log_event(result, position)
        return result

    # ------------------------------------------------------------------
    # Display / voice
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[NavigationSnapshot], None]) -> Callable[[], None]:
        return self._machine.subscribe(listener)

    def set_voice_enabled(self, enabled: bool) -> None:
        self._machine.announcer.voice_enabled = enabled
        if enabled:
            self._machine.announcer.say("Voice guidance enabled")

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavState:
        return self._machine.state

    @property
    def snapshot(self) -> NavigationSnapshot:
        return self._machine.snapshot()

    @property
    def is_active(self) -> bool:
        return self._machine.is_active

    @property
    def remaining_steps(self) -> int:
        return self._machine.remaining_steps

    @property
    def destination(self) -> Optional[Coord]:
        return self._destination
