# osrm_client.py
# The OSRM route provider.
# Sole responsibility: talk to OSRM via HTTP and hand back normalized Routes.
# Coordinate order, URL construction and error mapping live here; no
# navigation rules do.

import logging
from typing import List, Optional

import requests

from .errors import RouteUnavailable
from .interfaces import RouteProvider
from .models import Coord, Route
from .nav_config import NavConfig
from .route_builder import build_route

logger = logging.getLogger(__name__)


class OSRMClient(RouteProvider):
    """
    OSRM adapter.

    - Convert internal (lat, lon) -> OSRM "lon,lat"
    - Request full GeoJSON geometry with steps
    - Map transport and provider failures to RouteUnavailable

    Args:
        config:  NavConfig providing base URL, timeout and default mode.
        session: Optional requests.Session (connection reuse, tests).
    """

    def __init__(self, config: Optional[NavConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or NavConfig()
        self.base_url = self.config.osrm_base_url.rstrip("/")
        self.timeout = self.config.osrm_timeout_s
        self._http = session or requests.Session()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def format_coordinates(coords: List[Coord]) -> str:
        """Convert coordinates to OSRM format 'lon,lat;lon,lat;...'"""
        return ";".join(f"{c.lon},{c.lat}" for c in coords)

    def _route_url(self, origin: Coord, destination: Coord, travel_mode: str) -> str:
        coordinates = self.format_coordinates([origin, destination])
        return f"{self.base_url}/route/v1/{travel_mode}/{coordinates}"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def request_routes(
        self,
        origin: Coord,
        destination: Coord,
        travel_mode: Optional[str] = None,
        alternatives: bool = False,
    ) -> List[Route]:
        """
        Call the OSRM /route endpoint.

        Returns:
            One Route per OSRM route, best first.

        Raises:
            RouteUnavailable: network failure, HTTP error or no route.
            InvalidRoute:     the response could not be normalized.
        """
        mode = travel_mode or self.config.travel_mode
        url = self._route_url(origin, destination, mode)
        params = {
            "overview": "full",
            "steps": "true",
            "geometries": "geojson",
            "alternatives": "true" if alternatives else "false",
        }

        try:
            response = self._http.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise RouteUnavailable(f"OSRM request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise RouteUnavailable(f"OSRM returned non-JSON (HTTP {response.status_code})") from e

        code = data.get("code") if isinstance(data, dict) else None
        if code != "Ok":
            message = data.get("message", "Unknown error") if isinstance(data, dict) else "Unknown error"
            raise RouteUnavailable(f"OSRM error {code}: {message}")

        routes = data.get("routes") or []
        if not routes:
            raise RouteUnavailable("OSRM found no route.")

        built = [build_route(r) for r in routes]
        logger.info(f"OSRM returned {len(built)} route(s) for {mode}.")
        return built

    def request_route(self, origin: Coord, destination: Coord, travel_mode: str = None) -> Route:
        """Best route between origin and destination."""
        return self.request_routes(origin, destination, travel_mode)[0]
