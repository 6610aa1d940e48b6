class RoutePlannerError(Exception):
    """Base exception for charge planning errors."""


class ExternalServiceError(RoutePlannerError):
    """Raised when an upstream API call fails."""


class InvalidLocationError(RoutePlannerError):
    """Raised when an input location is invalid or outside Cyprus."""


class NoRouteFoundError(RoutePlannerError):
    """Raised when the routing provider cannot produce a drivable route."""
