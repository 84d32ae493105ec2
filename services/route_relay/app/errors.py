"""Domain errors raised by the relay core and its integrations."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for route relay errors."""


class DecodeError(RelayError):
    """The encoded polyline is truncated or malformed."""


class InvalidInput(RelayError):
    """A coordinate lies outside the valid latitude/longitude range."""


class RouteUnavailable(RelayError):
    """The provider response carries no usable route."""

    def __init__(self, status: str, reason: str | None = None) -> None:
        self.status = status
        super().__init__(reason or f"Google API error: {status}")


class MapsProviderError(RelayError):
    """The maps provider could not be reached or rejected the request."""


class PlaceNotFound(RelayError):
    """No lookup strategy produced a result."""
