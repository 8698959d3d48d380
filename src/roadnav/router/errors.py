# errors.py
# Exception taxonomy for the navigation core.


class NavigationError(Exception):
    """Base class for every error raised by roadnav."""
    pass


class InvalidRoute(NavigationError):
    """Provider payload is malformed; no session is created from it."""
    pass


class RouteUnavailable(NavigationError):
    """Provider or network failure. The caller may retry or fall back."""
    pass


class PositionUnavailable(NavigationError):
    """No position fix yet, so navigation cannot begin from here."""
    pass


class RecalculationFailed(NavigationError):
    """A reroute attempt failed. Recoverable; retried on the next off-route trigger."""

    def __init__(self, message: str, cause: Exception = None) -> None:
        super().__init__(message)
        self.cause = cause
