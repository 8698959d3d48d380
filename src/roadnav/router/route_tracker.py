# route_tracker.py
# State machine that tracks a traveler's position against an active route.
# Call start() once per route, then handle_position() on every GPS update.

import logging
import threading
from functools import partial
from typing import Callable, List, Optional, Tuple

from .announcer import AnnouncementDispatcher, SpeakFn
from .errors import InvalidRoute
from .interfaces import Recalculator
from .map_matcher import MatchResult, distance_to_next_maneuver, match, next_maneuver_index
from .models import (
    Coord, NavigationSession, NavigationSnapshot, NavState,
    Position, ProgressResult, Route, RouteStatus,
)
from .nav_config import NavConfig
from .position_tracker import PositionTracker
from .route_builder import estimate_eta_seconds, format_distance
from .scheduler import Scheduler, ThreadedScheduler, TimerHandle

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[NavigationSnapshot], None]

ARRIVAL_MESSAGE = "You have reached your destination."
RECALCULATING_MESSAGE = "Recalculating route"


class NavigationStateMachine:
    """
    Owns the NavigationSession and every transition on it.

    States: IDLE -> NAVIGATING -> {NAVIGATING, OFF_ROUTE, ARRIVED};
    stop() returns to IDLE from anywhere.

    Usage:
        machine = NavigationStateMachine(config, recalculator=recalc, speak=speaker.speak)
        machine.start(route)

        # Inside GPS loop:
        result = machine.handle_position(sample)

    Args:
        config:       NavConfig instance.
        recalculator: Reroute collaborator; None disables rerouting.
        scheduler:    Debounce timer source; defaults to wall-clock timers.
        speak:        Speech capability for announcements.
        tracker:      PositionTracker; one is created if omitted.
        announcer:    AnnouncementDispatcher; one is created if omitted.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        recalculator: Optional[Recalculator] = None,
        scheduler: Optional[Scheduler] = None,
        speak: Optional[SpeakFn] = None,
        tracker: Optional[PositionTracker] = None,
        announcer: Optional[AnnouncementDispatcher] = None,
    ) -> None:
        self.config = config or NavConfig()
        self.recalculator = recalculator
        self.scheduler = scheduler or ThreadedScheduler()
        self.tracker = tracker or PositionTracker(self.config)
        self.announcer = announcer or AnnouncementDispatcher(speak, self.config)

        self._lock = threading.RLock()
        self._state: NavState = NavState.IDLE
        self._session: Optional[NavigationSession] = None
        self._debounce: Optional[TimerHandle] = None
        self._listeners: List[SnapshotListener] = []
        self._last_position: Optional[Position] = None
        self._last_distance_to_next: Optional[float] = None

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavState:
        return self._state

    @property
    def session(self) -> Optional[NavigationSession]:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None and self._state in (NavState.NAVIGATING, NavState.OFF_ROUTE)

    @property
    def debounce_pending(self) -> bool:
        return self._debounce is not None and not self._debounce.cancelled

    @property
    def remaining_steps(self) -> int:
        if self._session is None:
            return 0
        return max(0, len(self._session.route.steps) - self._session.current_step_index)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a display sink.

        Returns:
            A callable that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, snapshot: NavigationSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        route: Route,
        destination: Optional[Coord] = None,
        travel_mode: Optional[str] = None,
    ) -> ProgressResult:
        """
        Begin a session on a confirmed route, discarding any previous one.

        Without a position fix the session waits in IDLE and the first
        accepted sample activates it.

        Raises:
            InvalidRoute: route breaks the shape invariants.
        """
        if len(route.polyline) < 2 or not route.steps:
            raise InvalidRoute("Route needs at least two polyline points and one step.")

        with self._lock:
            if self._session is not None:
                logger.info(f"Discarding session {self._session.session_id} for a new route.")
            self._cancel_debounce()

            session = NavigationSession(
                route=route,
                destination=destination or route.arrival_step.anchor,
                travel_mode=travel_mode or self.config.travel_mode,
                remaining_distance_m=route.total_distance_m,
            )
            self._session = session
            self._state = NavState.IDLE
            self._last_position = None
            self._last_distance_to_next = None
            self.tracker.begin_session()

            logger.info(
                f"Session {session.session_id} started: {len(route.steps)} steps, "
                f"{format_distance(route.total_distance_m)}"
            )
            self.announcer.say(route.steps[0].instruction_text)

            fix = self.tracker.last_good
            if fix is None:
                logger.info("No position fix yet; navigation will begin on the first fix.")
                snapshot = self._build_snapshot()
                self._notify(snapshot)
                return ProgressResult(
                    status=RouteStatus.WAITING,
                    message="Waiting for a position fix.",
                    snapshot=snapshot,
                )

            return self._activate(fix)

    def stop(self) -> None:
        """End navigation. Any in-flight recalculation result will be ignored."""
        with self._lock:
            self._cancel_debounce()
            if self._session is not None:
                logger.info(f"Session {self._session.session_id} stopped.")
            self._session = None
            self._state = NavState.IDLE
            self._last_distance_to_next = None
            self._notify(self._build_snapshot())

    def _activate(self, fix: Position) -> ProgressResult:
        self._state = NavState.NAVIGATING
        self._session.started_at_ms = fix.captured_at_ms
        result = self._evaluate(fix)
        self._notify(result.snapshot)
        return result

    # ------------------------------------------------------------------
    # Core method: call on every GPS update
    # ------------------------------------------------------------------

    def handle_position(self, sample: Position) -> ProgressResult:
        """
        Run ingest -> match -> transition -> announce for one sample.

        Args:
            sample: Raw position from the location source.

        Returns:
            ProgressResult with status, message, and contextual data.
        """
        with self._lock:
            accepted = self.tracker.ingest(sample)

            if self._session is None:
                if self._state == NavState.ARRIVED:
                    return ProgressResult(status=RouteStatus.FINISHED, message=ARRIVAL_MESSAGE)
                return ProgressResult(
                    status=RouteStatus.INACTIVE,
                    message="Navigation is not active.",
                )

            if accepted is None:
                return ProgressResult(
                    status=RouteStatus.REJECTED,
                    message="Position sample ignored.",
                    distance_to_next=self._last_distance_to_next,
                    current_step=self._session.current_step,
                    snapshot=self._build_snapshot(),
                )

            if self._state == NavState.IDLE:
                return self._activate(accepted)

            result = self._evaluate(accepted)
            self._notify(result.snapshot)
            return result

    def snapshot(self) -> NavigationSnapshot:
        with self._lock:
            return self._build_snapshot()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _evaluate(self, position: Position) -> ProgressResult:
        session = self._session
        self._last_position = position

        advanced, arrived = self._advance_steps(position, session)
        if arrived:
            return self._declare_arrival()

        self._apply_match(session, match(position, session.route))
        dist_next = distance_to_next_maneuver(position, session)
        self._last_distance_to_next = dist_next

        if advanced:
            # Advancement wins; off-route evaluation waits for the next tick
            status = RouteStatus.WAYPOINT_HIT
            self.announcer.say(session.current_step.instruction_text)
        else:
            status = self._check_off_route(position, session)

        self.announcer.dispatch(session, dist_next)

        upcoming = session.route.steps[next_maneuver_index(session)]
        if status == RouteStatus.OFF_ROUTE:
            message = "You are off the route. Recalculating may be needed."
        elif status == RouteStatus.WAYPOINT_HIT:
            message = upcoming.instruction_text
        else:
            message = f"{format_distance(dist_next)} to next maneuver. ({upcoming.instruction_text})"

        return ProgressResult(
            status=status,
            message=message,
            distance_to_next=dist_next,
            current_step=session.current_step,
            snapshot=self._build_snapshot(),
        )

    def _advance_steps(self, position: Position, session: NavigationSession) -> Tuple[int, bool]:
        """Advance past every maneuver within the completion radius."""
        radius = self.config.completion_radius_for(position.accuracy_m)
        last = len(session.route.steps) - 1
        advanced = 0
        while distance_to_next_maneuver(position, session) < radius:
            session.current_step_index += 1
            advanced += 1
            if session.current_step_index > last:
                return advanced, True
            logger.info(f"Advanced to step {session.current_step_index}/{last}")
        return advanced, False

    def _apply_match(self, session: NavigationSession, matched: MatchResult) -> None:
        session.distance_to_route_m = matched.distance_to_route_m
        session.distance_along_route_m = matched.distance_along_route_m
        session.remaining_distance_m = max(
            0.0, session.route.total_distance_m - matched.distance_along_route_m
        )

    def _check_off_route(self, position: Position, session: NavigationSession) -> RouteStatus:
        threshold = self.config.off_route_threshold_for(position.accuracy_m)

        if session.distance_to_route_m <= threshold:
            if self._debounce is not None:
                logger.info("Back on route; pending recalculation cancelled.")
                self._cancel_debounce()
            if self._state == NavState.OFF_ROUTE:
                self._state = NavState.NAVIGATING
            return RouteStatus.PROGRESSING

        if self._state == NavState.NAVIGATING:
            logger.warning(f"Off route: {session.distance_to_route_m:.0f} m from the path.")
            self._state = NavState.OFF_ROUTE

        if not session.recalculation_in_flight and self._debounce is None:
            def fire() -> None:
                with self._lock:
                    self._on_debounce_elapsed(session, handle)

            # fire() needs the lock, so handle is bound before it can run
            handle = self.scheduler.call_later(self.config.off_route_debounce_s, fire)
            self._debounce = handle
        return RouteStatus.OFF_ROUTE

    def _declare_arrival(self) -> ProgressResult:
        session = self._session
        self._cancel_debounce()
        session.remaining_distance_m = 0.0
        session.current_step_index = len(session.route.steps) - 1
        self._state = NavState.ARRIVED
        logger.info(f"Session {session.session_id} arrived.")
        self.announcer.say(session.route.arrival_step.instruction_text)

        snapshot = self._build_snapshot()
        self._session = None
        self._last_distance_to_next = None
        return ProgressResult(
            status=RouteStatus.FINISHED,
            message=ARRIVAL_MESSAGE,
            distance_to_next=0.0,
            current_step=session.route.arrival_step,
            snapshot=snapshot,
        )

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    # ------------------------------------------------------------------
    # Recalculation
    # ------------------------------------------------------------------

    def _on_debounce_elapsed(self, session: NavigationSession, handle: TimerHandle) -> None:
        with self._lock:
            # A cancelled timer may still reach here after waiting on the lock
            if handle is not self._debounce or handle.cancelled or session is not self._session:
                return
            self._debounce = None
            if self._state != NavState.OFF_ROUTE or session.recalculation_in_flight:
                return

            if self.recalculator is None:
                logger.warning("Off route but no recalculator is configured.")
                return

            fix = self.tracker.last_good
            origin = Coord(fix.lat, fix.lon)
            session.recalculation_in_flight = True
            session.recalculation_count += 1
            logger.info(f"Requesting recalculation #{session.recalculation_count} from {origin}")
            self.announcer.say(RECALCULATING_MESSAGE)
            self._notify(self._build_snapshot())

            self.recalculator.request(
                origin,
                session.destination,
                session.travel_mode,
                partial(self._on_recalculated, session),
            )

    def _on_recalculated(
        self,
        session: NavigationSession,
        route: Optional[Route],
        error: Optional[Exception],
    ) -> None:
        with self._lock:
            if session is not self._session:
                logger.info("Ignoring recalculation result for a discarded session.")
                return

            session.recalculation_in_flight = False

            if error is not None or route is None:
                logger.warning(f"Recalculation failed, staying off route: {error}")
                self._notify(self._build_snapshot())
                return

            if self._state != NavState.OFF_ROUTE:
                logger.info("Traveler re-joined the route; recalculated route discarded.")
                self._notify(self._build_snapshot())
                return

            session.route = route
            session.current_step_index = 0
            self.announcer.reset(session)
            self._state = NavState.NAVIGATING
            logger.info(f"Route replaced: {len(route.steps)} steps, {format_distance(route.total_distance_m)}")

            fix = self._last_position or self.tracker.last_good
            if fix is not None:
                self._apply_match(session, match(fix, route))
                self._last_distance_to_next = distance_to_next_maneuver(fix, session)
            else:
                session.remaining_distance_m = route.total_distance_m

            self.announcer.say(route.steps[0].instruction_text)
            self._notify(self._build_snapshot())

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def _build_snapshot(self) -> NavigationSnapshot:
        session = self._session
        if session is None:
            return NavigationSnapshot(
                state=self._state,
                progress=1.0 if self._state == NavState.ARRIVED else 0.0,
            )

        steps = session.route.steps
        upcoming_index = next_maneuver_index(session)
        upcoming = steps[upcoming_index]
        after = steps[upcoming_index + 1] if upcoming_index + 1 < len(steps) else None

        total = session.route.total_distance_m
        remaining = session.remaining_distance_m
        progress = (total - remaining) / total if total > 0 else 0.0
        if self._state == NavState.ARRIVED:
            progress = 1.0

        return NavigationSnapshot(
            state=self._state,
            current_step_index=session.current_step_index,
            step_count=len(steps),
            remaining_distance_m=remaining,
            progress=min(1.0, max(0.0, progress)),
            active_instruction=upcoming.instruction_text,
            next_instruction=after.instruction_text if after else None,
            street_name=upcoming.street_name,
            distance_to_next_maneuver_m=self._last_distance_to_next,
            distance_to_route_m=session.distance_to_route_m,
            eta_seconds=estimate_eta_seconds(session.route, remaining),
            speed_kmh=self._last_position.speed_kmh if self._last_position else None,
            recalculating=session.recalculation_in_flight,
        )
