# position_tracker.py
# Filters raw location samples and keeps the last known good position.
# Purely a filter: the location source owns the read cadence.

import logging
import math
from typing import Optional

from .geo_utils import haversine_distance
from .models import Position
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class PositionTracker:
    """
    Accepts or rejects position samples.

    Usage:
        tracker = PositionTracker(config)
        accepted = tracker.ingest(sample)   # None when rejected
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._last_good: Optional[Position] = None
        self._best_accuracy_m: Optional[float] = None
        self.accepted_count: int = 0
        self.rejected_count: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def begin_session(self) -> None:
        """Forget the best accuracy seen; keep the last good fix."""
        self._best_accuracy_m = None

    def reset(self) -> None:
        self._last_good = None
        self._best_accuracy_m = None
        self.accepted_count = 0
        self.rejected_count = 0

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def last_good(self) -> Optional[Position]:
        return self._last_good

    @property
    def has_fix(self) -> bool:
        return self._last_good is not None

    # ------------------------------------------------------------------
    # Core method
    # ------------------------------------------------------------------

    def ingest(self, sample: Position) -> Optional[Position]:
        """
        Filter one sample.

        Args:
            sample: Raw position from the location source.

        Returns:
            The sample if accepted, None if rejected.
        """
        reason = self._rejection_reason(sample)
        if reason:
            self.rejected_count += 1
            logger.debug(f"Position rejected ({reason}): {sample.lat:.6f},{sample.lon:.6f}")
            return None

        self._last_good = sample
        if self._best_accuracy_m is None or sample.accuracy_m < self._best_accuracy_m:
            self._best_accuracy_m = sample.accuracy_m
        self.accepted_count += 1
        return sample

    def _rejection_reason(self, sample: Position) -> Optional[str]:
        if not (math.isfinite(sample.lat) and math.isfinite(sample.lon)):
            return "non-finite coordinate"
        if not (-90.0 <= sample.lat <= 90.0 and -180.0 <= sample.lon <= 180.0):
            return "coordinate out of range"
        if not math.isfinite(sample.accuracy_m) or sample.accuracy_m < 0:
            return "invalid accuracy"

        if (
            sample.accuracy_m > self.config.accuracy_ceiling_m
            and self._best_accuracy_m is not None
            and self._best_accuracy_m < sample.accuracy_m
        ):
            return f"accuracy {sample.accuracy_m:.0f} m above ceiling"

        last = self._last_good
        if last is None:
            return None

        if sample.captured_at_ms < last.captured_at_ms:
            return "out of order"

        moved = haversine_distance(last.lat, last.lon, sample.lat, sample.lon)
        if moved < self.config.min_displacement_m and not sample.accuracy_m < last.accuracy_m:
            return f"jitter ({moved:.1f} m)"

        return None
