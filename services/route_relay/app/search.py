"""Place search with an ordered chain of lookup strategies.

Strategies are tried in priority order; the first one to produce results
wins. A strategy that fails or finds nothing hands over to the next.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Protocol, Sequence

from src.common.metrics import SEARCH_FALLBACKS

from .errors import MapsProviderError, PlaceNotFound
from .maps import GoogleMapsClient
from .schemas import GeoPoint, PlaceResult

logger = logging.getLogger(__name__)

SERVICE_NAME = "route_relay"

MOCK_PLACES: dict[str, list[tuple[str, str]]] = {
    "school": [
        ("Government Higher Secondary School", "RS Puram, Coimbatore"),
        ("PSG College of Arts and Science", "Civil Aerodrome Post, Coimbatore"),
        ("Coimbatore Institute of Technology", "CIT Campus, Coimbatore"),
    ],
    "hospital": [
        (
            "Coimbatore Medical College Hospital",
            "Coimbatore Medical College, Coimbatore",
        ),
        ("PSG Hospitals", "Peelamedu, Coimbatore"),
        ("Kovai Medical Center", "Avinashi Road, Coimbatore"),
    ],
    "restaurant": [
        ("Annapoorna Restaurant", "RS Puram, Coimbatore"),
        ("Hotel Junior Kuppanna", "Race Course Road, Coimbatore"),
        ("Shree Anandhaas", "Cross Cut Road, Coimbatore"),
    ],
    "mall": [
        ("Brookefields Mall", "Dr Krishnasamy Mudaliar Road, Coimbatore"),
        ("Fun Republic Mall", "Avinashi Road, Coimbatore"),
        ("Prozone Mall", "Sathy Road, Coimbatore"),
    ],
}

# Half-width, in degrees, of the box mock results are scattered in.
MOCK_JITTER_DEG = 0.01


class SearchStrategy(Protocol):
    """A single way of turning a free-text query into places."""

    name: str

    def search(self, query: str, location: GeoPoint) -> list[PlaceResult]:
        """Return matching places, or an empty list."""


def _location(raw: dict[str, Any]) -> tuple[float, float]:
    loc = raw["geometry"]["location"]
    return loc["lat"], loc["lng"]


class PlacesTextSearch:
    name = "places"

    def __init__(self, client: GoogleMapsClient, radius: int, limit: int) -> None:
        self._client = client
        self._radius = radius
        self._limit = limit

    def search(self, query: str, location: GeoPoint) -> list[PlaceResult]:
        results = []
        places = self._client.text_search(query, location, self._radius)
        for place in places[: self._limit]:
            lat, lng = _location(place)
            results.append(
                PlaceResult(
                    lat=lat,
                    lng=lng,
                    name=place.get("name", ""),
                    address=place.get("formatted_address", ""),
                    rating=place.get("rating"),
                    types=place.get("types"),
                )
            )
        return results


class GeocodeSearch:
    name = "geocode"

    def __init__(self, client: GoogleMapsClient, limit: int) -> None:
        self._client = client
        self._limit = limit

    def search(self, query: str, location: GeoPoint) -> list[PlaceResult]:
        results = []
        for place in self._client.geocode(query)[: self._limit]:
            lat, lng = _location(place)
            address = place.get("formatted_address", "")
            results.append(PlaceResult(lat=lat, lng=lng, name=address, address=address))
        return results


class MockPlacesSearch:
    """Static places for common categories, scattered around the user."""

    name = "mock"

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def _jitter(self) -> float:
        return self._rng.uniform(-MOCK_JITTER_DEG, MOCK_JITTER_DEG)

    def search(self, query: str, location: GeoPoint) -> list[PlaceResult]:
        key = query.lower()
        for category, places in MOCK_PLACES.items():
            if category in key:
                return [
                    PlaceResult(
                        lat=location.lat + self._jitter(),
                        lng=location.lng + self._jitter(),
                        name=name,
                        address=address,
                    )
                    for name, address in places
                ]
        return []


def build_strategies(
    client: GoogleMapsClient | None,
    *,
    radius: int,
    places_limit: int,
    geocode_limit: int,
    rng: random.Random | None = None,
) -> list[SearchStrategy]:
    """Return the lookup chain; provider strategies need a configured client."""

    strategies: list[SearchStrategy] = []
    if client is not None:
        strategies.append(PlacesTextSearch(client, radius, places_limit))
        strategies.append(GeocodeSearch(client, geocode_limit))
    strategies.append(MockPlacesSearch(rng))
    return strategies


def search_places(
    query: str, location: GeoPoint, strategies: Sequence[SearchStrategy]
) -> list[PlaceResult]:
    """Run ``strategies`` in order and return the first non-empty result.

    Raises :class:`PlaceNotFound` when every strategy comes back empty.
    """

    for strategy in strategies:
        try:
            results = strategy.search(query, location)
        except MapsProviderError as exc:
            logger.info("Search strategy %s failed: %s", strategy.name, exc)
            results = []
        if results:
            logger.info("Search strategy %s found %d places", strategy.name, len(results))
            return results
        SEARCH_FALLBACKS.labels(SERVICE_NAME, strategy.name).inc()
    raise PlaceNotFound(f"No places found for {query!r}")
