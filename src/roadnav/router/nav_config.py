# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass, fields
from typing import Optional

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

TRAVEL_MODES: frozenset = frozenset({"driving", "walking", "cycling"})

DEFAULT_OSRM_URL: str = "https://router.project-osrm.org"

ENV_PREFIX: str = "ROADNAV_"


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Step advancement / arrival
    completion_radius_m: float = 20.0      # distance to mark a maneuver as reached

    # Off-route detection
    off_route_threshold_m: float = 50.0    # distance from the polyline → off-route
    off_route_debounce_s: float = 3.0      # deviation must persist this long

    # Voice
    announcement_radius_m: float = 200.0
    voice_enabled: bool = True

    # Position filtering
    accuracy_ceiling_m: float = 100.0
    min_displacement_m: float = 2.0

    # Widen radii when the fix is poor (off by default)
    scale_with_accuracy: bool = False
    accuracy_scale_factor: float = 1.5

    # Routing
    travel_mode: str = "driving"
    osrm_base_url: str = DEFAULT_OSRM_URL
    osrm_timeout_s: float = 5.0

    # Logging
    log_dir: str = "."                     # directory for saved JSON files
    route_filename: str = "active_route.json"
    events_filename: str = "nav_session.jsonl"

    @property
    def route_filepath(self) -> str:
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def events_filepath(self) -> str:
        return os.path.join(self.log_dir, self.events_filename)

    # ------------------------------------------------------------------
    # Accuracy-aware thresholds
    # ------------------------------------------------------------------

    def _scaled(self, base: float, accuracy_m: Optional[float]) -> float:
        if not self.scale_with_accuracy or accuracy_m is None:
            return base
        return max(base, accuracy_m * self.accuracy_scale_factor)

    def completion_radius_for(self, accuracy_m: Optional[float] = None) -> float:
        return self._scaled(self.completion_radius_m, accuracy_m)

    def off_route_threshold_for(self, accuracy_m: Optional[float] = None) -> float:
        return self._scaled(self.off_route_threshold_m, accuracy_m)

    # ------------------------------------------------------------------
    # Environment overrides
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides) -> "NavConfig":
        """
        Build a config from ROADNAV_* environment variables.

        A .env file is loaded first (existing variables win). Keyword
        overrides win over both.

        Example in .env:
            ROADNAV_OSRM_BASE_URL=http://localhost:5000
            ROADNAV_OFF_ROUTE_THRESHOLD_M=40
        """
        load_dotenv(dotenv_path)
        values = {}
        for f in fields(cls):
            raw = os.getenv(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.type in (bool, "bool"):
                values[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            elif f.type in (float, "float"):
                values[f.name] = float(raw)
            else:
                values[f.name] = raw
        values.update(overrides)
        config = cls(**values)
        if config.travel_mode not in TRAVEL_MODES:
            raise ValueError(f"Unknown travel mode: {config.travel_mode!r}")
        return config
