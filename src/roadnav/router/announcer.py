# announcer.py
# Decides when an instruction is spoken, exactly once per step.
# Speech is best-effort and never blocks navigation.

import logging
from typing import Callable, Optional

from .map_matcher import next_maneuver_index
from .models import NavigationSession
from .nav_config import NavConfig
from .route_builder import format_distance

logger = logging.getLogger(__name__)

SpeakFn = Callable[[str], None]


def _silent(text: str) -> None:
    pass


class AnnouncementDispatcher:
    """
    Fires proximity announcements for the upcoming maneuver.

    Args:
        speak:  Speech capability; may raise or no-op.
        config: NavConfig instance for radius and voice toggle.
    """

    def __init__(self, speak: Optional[SpeakFn] = None, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._speak: SpeakFn = speak or _silent
        self.voice_enabled: bool = self.config.voice_enabled

    def should_announce(self, session: NavigationSession, distance_to_next: float) -> bool:
        if session.last_announced_step_index == session.current_step_index:
            return False
        return distance_to_next < self.config.announcement_radius_m

    def dispatch(self, session: NavigationSession, distance_to_next: float) -> Optional[str]:
        """
        Announce the upcoming maneuver if it is due.

        Returns:
            The text handed to the speech capability, or None.
        """
        if not self.should_announce(session, distance_to_next):
            return None

        session.last_announced_step_index = session.current_step_index
        step = session.route.steps[next_maneuver_index(session)]
        if step.is_arrival:
            text = f"In {format_distance(distance_to_next)}, you will arrive at your destination"
        else:
            text = f"In {format_distance(distance_to_next)}, {step.instruction_text}"
        self.say(text)
        return text

    def reset(self, session: NavigationSession) -> None:
        """Forget what was announced (route replaced)."""
        session.last_announced_step_index = -1

    def say(self, text: str) -> None:
        """Hand text to the speech capability, swallowing its failures."""
        if not self.voice_enabled or not text:
            return
        try:
            self._speak(text)
        except Exception as e:
            logger.warning(f"Speech unavailable, dropping '{text}': {e}")
