# interfaces.py
# Contracts with the collaborators that live outside the navigation core.

from abc import ABC, abstractmethod
from typing import Callable, Optional

from .models import Coord, Route


# on_done(route, error): exactly one of the two is set
RecalculationCallback = Callable[[Optional[Route], Optional[Exception]], None]


class RouteProvider(ABC):
    """Anything that can turn two coordinates into a Route."""

    @abstractmethod
    def request_route(self, origin: Coord, destination: Coord, travel_mode: str = "driving") -> Route:
        """Return a Route or raise RouteUnavailable / InvalidRoute."""
        pass


class Recalculator(ABC):
    """Fire-and-forget reroute request with a completion callback."""

    @abstractmethod
    def request(
        self,
        origin: Coord,
        destination: Coord,
        travel_mode: str,
        on_done: RecalculationCallback,
    ) -> None:
        """Start a reroute; on_done is called exactly once."""
        pass

    def shutdown(self) -> None:
        """Release any worker resources."""
        pass
