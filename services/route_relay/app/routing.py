"""Travel-mode selection and directions response normalization."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping

from pydantic import ValidationError

from .errors import InvalidInput, RouteUnavailable
from .polyline import decode_polyline
from .schemas import GeoPoint, RouteGeometry, RouteStep, RouteSummary, TravelMode

EARTH_RADIUS_M = 6371000.0

# Ordered policy table: the first row whose lower bound is exceeded wins.
MODE_POLICY: tuple[tuple[float, TravelMode], ...] = (
    (50000.0, TravelMode.transit),
    (5000.0, TravelMode.driving),
)
DEFAULT_MODE = TravelMode.walking

STATUS_OK = "OK"

_HTML_TAG = re.compile(r"<[^>]*>")


def _check_range(point: GeoPoint) -> None:
    if not -90.0 <= point.lat <= 90.0 or not -180.0 <= point.lng <= 180.0:
        raise InvalidInput(f"Coordinate out of range: {point.lat}, {point.lng}")


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters between two points."""

    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def mode_for_distance(distance_m: float) -> TravelMode:
    for threshold, mode in MODE_POLICY:
        if distance_m > threshold:
            return mode
    return DEFAULT_MODE


def select_mode(start: GeoPoint, end: GeoPoint) -> tuple[float, TravelMode]:
    """Return the distance between the points and the travel mode for it.

    Raises :class:`InvalidInput` when either point is outside the valid
    latitude/longitude range.
    """

    _check_range(start)
    _check_range(end)
    distance = haversine_distance(start, end)
    return distance, mode_for_distance(distance)


def strip_html(text: str) -> str:
    return _HTML_TAG.sub("", text)


def normalize_step(step: Mapping[str, Any], mode: TravelMode) -> RouteStep:
    return RouteStep(
        instruction=strip_html(step.get("html_instructions", "")),
        distance_meters=step["distance"]["value"],
        duration_seconds=step["duration"]["value"],
        # Provider tags are upper-case already; the fallback mirrors them.
        travel_mode=step.get("travel_mode") or mode.value.upper(),
    )


def normalize_route(raw: Mapping[str, Any], mode: TravelMode) -> RouteSummary:
    """Build a :class:`RouteSummary` from the first route and leg of ``raw``.

    Raises :class:`RouteUnavailable` if the response status is not ``OK`` or
    it has no routes or legs. Malformed geometry propagates
    :class:`~.errors.DecodeError`.
    """

    status = raw.get("status")
    if status != STATUS_OK:
        raise RouteUnavailable(str(status))
    routes = raw.get("routes") or []
    if not routes:
        raise RouteUnavailable(status, "Google API returned no routes")
    route = routes[0]
    legs = route.get("legs") or []
    if not legs:
        raise RouteUnavailable(status, "Google API returned a route without legs")
    leg = legs[0]

    try:
        points = route["overview_polyline"]["points"]
    except (KeyError, TypeError) as exc:
        raise RouteUnavailable(status, f"Malformed route payload: missing {exc}") from exc
    coordinates = decode_polyline(points)

    try:
        return RouteSummary(
            instructions=[normalize_step(step, mode) for step in leg.get("steps", [])],
            total_distance=leg["distance"]["value"],
            total_duration=leg["duration"]["value"],
            travel_mode=mode,
            start_address=leg.get("start_address", ""),
            end_address=leg.get("end_address", ""),
            geometry=RouteGeometry(coordinates=coordinates),
        )
    except (KeyError, TypeError, ValidationError) as exc:
        raise RouteUnavailable(status, f"Malformed route payload: {exc}") from exc
