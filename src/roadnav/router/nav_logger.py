# nav_logger.py
# File persistence for confirmed routes and the per-update event trail.
# Failures are logged and reported through return values, never raised.

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from .models import NavigationSession, Position, ProgressResult, Route
from .nav_config import NavConfig

logger = logging.getLogger(__name__)

ROUTE_FILE_VERSION = 1


class NavLogger:
    """
    Writes the active route to JSON and navigation events to JSONL.

    Usage:
        nav_logger = NavLogger(config)
        nav_logger.save_route(route)
        nav_logger.log_event(result, sample)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        os.makedirs(self.config.log_dir, exist_ok=True)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def save_route(self, route: Route, session: Optional[NavigationSession] = None) -> bool:
        """
        Write a route (and optionally the session it belongs to) to disk.

        Returns:
            True when the file was written.
        """
        document: Dict[str, Any] = {
            "version": ROUTE_FILE_VERSION,
            "saved_at": datetime.now().isoformat(),
            "step_count": len(route.steps),
            "route": route.to_dict(),
        }
        if session is not None:
            document["session_id"] = session.session_id
            document["destination"] = session.destination.to_dict()
            document["travel_mode"] = session.travel_mode

        path = self.config.route_filepath
        try:
            with open(path, "w", encoding="utf-8") as fh:
                json.dump(document, fh, ensure_ascii=False, indent=2)
        except (OSError, TypeError) as e:
            logger.error(f"Could not write route file {path}: {e}")
            return False
        logger.info(f"Saved {len(route.steps)}-step route to {path}")
        return True

    def load_route(self, filepath: Optional[str] = None) -> Optional[Route]:
        """Read a route written by save_route(); None if missing or unreadable."""
        path = filepath or self.config.route_filepath
        try:
            with open(path, encoding="utf-8") as fh:
                route = Route.from_dict(json.load(fh)["route"])
        except (OSError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Could not read route file {path}: {e}")
            return None
        logger.info(f"Loaded {len(route.steps)}-step route from {path}")
        return route

    # ------------------------------------------------------------------
    # Event trail
    # ------------------------------------------------------------------

    def log_event(self, result: ProgressResult, position: Position) -> None:
        """Append one JSON line describing the outcome of a position update."""
        record: Dict[str, Any] = {
            "logged_at": datetime.now().isoformat(),
            "captured_at_ms": position.captured_at_ms,
            "lat": position.lat,
            "lon": position.lon,
            "accuracy_m": position.accuracy_m,
            "status": result.status.value,
            "message": result.message,
            "distance_to_next": result.distance_to_next,
        }
        snap = result.snapshot
        if snap is not None:
            record.update(
                state=snap.state.value,
                step_index=snap.current_step_index,
                remaining_m=round(snap.remaining_distance_m, 1),
                distance_to_route_m=snap.distance_to_route_m,
            )

        try:
            with open(self.config.events_filepath, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.error(f"Could not append to event log: {e}")
