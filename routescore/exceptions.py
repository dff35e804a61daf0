"""Exceptions raised by the routescore core"""


class RoutescoreError(Exception):
    """Base class for routescore errors"""


class RouteNotFoundError(RoutescoreError, LookupError):
    """Requested route does not exist"""

    def __init__(self, route_id: str):
        self.route_id = route_id
        super().__init__(f"Route {route_id} not found")


class InvalidInputError(RoutescoreError, ValueError):
    """Caller supplied a malformed or out-of-range argument"""


class PassInProgressError(RoutescoreError):
    """A score recomputation pass is already running"""
