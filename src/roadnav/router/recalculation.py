# recalculation.py
# Adapters that run a RouteProvider request and report back through a callback.

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .errors import NavigationError, RecalculationFailed
from .interfaces import RecalculationCallback, Recalculator, RouteProvider
from .models import Coord

logger = logging.getLogger(__name__)


def _run(provider: RouteProvider, origin: Coord, destination: Coord,
         travel_mode: str, on_done: RecalculationCallback) -> None:
    try:
        route = provider.request_route(origin, destination, travel_mode)
    except NavigationError as e:
        logger.warning(f"Recalculation failed: {e}")
        on_done(None, RecalculationFailed(str(e), cause=e))
        return
    except Exception as e:
        logger.exception("Route provider raised an unexpected error")
        on_done(None, RecalculationFailed(f"Provider error: {e}", cause=e))
        return
    on_done(route, None)


class InlineRecalculator(Recalculator):
    """Calls the provider synchronously; the callback runs before request() returns."""

    def __init__(self, provider: RouteProvider) -> None:
        self.provider = provider

    def request(self, origin, destination, travel_mode, on_done) -> None:
        _run(self.provider, origin, destination, travel_mode, on_done)


class BackgroundRecalculator(Recalculator):
    """
    Runs provider calls on a single worker thread.

    The navigation lock serializes the callback with position updates.
    """

    def __init__(self, provider: RouteProvider, executor: Optional[ThreadPoolExecutor] = None) -> None:
        self.provider = provider
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="reroute")

    def request(self, origin, destination, travel_mode, on_done) -> None:
        future = self._executor.submit(_run, self.provider, origin, destination, travel_mode, on_done)
        future.add_done_callback(self._log_crash)

    @staticmethod
    def _log_crash(future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Recalculation worker crashed: {error!r}")

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
