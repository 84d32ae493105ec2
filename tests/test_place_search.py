import random

import pytest

from services.route_relay.app.errors import MapsProviderError, PlaceNotFound
from services.route_relay.app.search import (
    MOCK_JITTER_DEG,
    GeocodeSearch,
    MockPlacesSearch,
    PlacesTextSearch,
    build_strategies,
    search_places,
)
from services.route_relay.app.schemas import GeoPoint

USER = GeoPoint(lat=11.0168, lng=76.9558)


def _place(name: str, lat: float, lng: float, **extra):
    return {
        "name": name,
        "formatted_address": f"{name}, Coimbatore",
        "geometry": {"location": {"lat": lat, "lng": lng}},
        **extra,
    }


class FakeMapsClient:
    def __init__(self, places=None, geocoded=None, places_error=False) -> None:
        self.places = places or []
        self.geocoded = geocoded or []
        self.places_error = places_error
        self.calls: list[str] = []

    def text_search(self, query, location, radius):
        self.calls.append(f"places:{query}:{radius}")
        if self.places_error:
            raise MapsProviderError("Places API error: REQUEST_DENIED")
        return self.places

    def geocode(self, address):
        self.calls.append(f"geocode:{address}")
        return self.geocoded


def test_places_strategy_limits_and_maps_fields() -> None:
    places = [_place(f"Cafe {i}", 11.0 + i / 100, 76.9, rating=4.5, types=["cafe"]) for i in range(7)]
    client = FakeMapsClient(places=places)
    results = PlacesTextSearch(client, radius=50000, limit=5).search("cafe", USER)

    assert len(results) == 5
    assert results[0].name == "Cafe 0"
    assert results[0].address == "Cafe 0, Coimbatore"
    assert results[0].rating == 4.5
    assert results[0].types == ["cafe"]
    assert client.calls == ["places:cafe:50000"]


def test_geocode_strategy_uses_formatted_address_as_name() -> None:
    geocoded = [_place(f"Street {i}", 11.0, 76.9) for i in range(4)]
    results = GeocodeSearch(FakeMapsClient(geocoded=geocoded), limit=3).search("street", USER)

    assert len(results) == 3
    assert results[0].name == results[0].address == "Street 0, Coimbatore"
    assert results[0].rating is None


def test_mock_strategy_scatters_around_user() -> None:
    results = MockPlacesSearch(random.Random(7)).search("Nearest HOSPITAL please", USER)

    assert [r.name for r in results] == [
        "Coimbatore Medical College Hospital",
        "PSG Hospitals",
        "Kovai Medical Center",
    ]
    for r in results:
        assert abs(r.lat - USER.lat) <= MOCK_JITTER_DEG
        assert abs(r.lng - USER.lng) <= MOCK_JITTER_DEG


def test_mock_strategy_unknown_category() -> None:
    assert MockPlacesSearch().search("airport", USER) == []


def test_chain_prefers_places() -> None:
    client = FakeMapsClient(places=[_place("Brookefields Mall", 11.0, 76.9)])
    strategies = build_strategies(client, radius=50000, places_limit=5, geocode_limit=3)
    results = search_places("mall", USER, strategies)

    assert [r.name for r in results] == ["Brookefields Mall"]
    assert client.calls == ["places:mall:50000"]


def test_chain_falls_back_to_geocode_on_places_failure() -> None:
    client = FakeMapsClient(places_error=True, geocoded=[_place("Race Course", 11.0, 76.9)])
    strategies = build_strategies(client, radius=50000, places_limit=5, geocode_limit=3)
    results = search_places("race course", USER, strategies)

    assert [r.name for r in results] == ["Race Course, Coimbatore"]
    assert client.calls == ["places:race course:50000", "geocode:race course"]


def test_chain_falls_back_to_mock_data() -> None:
    strategies = build_strategies(
        FakeMapsClient(), radius=50000, places_limit=5, geocode_limit=3
    )
    results = search_places("school", USER, strategies)
    assert len(results) == 3


def test_chain_without_client_uses_only_mock() -> None:
    strategies = build_strategies(None, radius=50000, places_limit=5, geocode_limit=3)
    assert [s.name for s in strategies] == ["mock"]


def test_chain_exhausted_raises() -> None:
    strategies = build_strategies(
        FakeMapsClient(), radius=50000, places_limit=5, geocode_limit=3
    )
    with pytest.raises(PlaceNotFound):
        search_places("airport", USER, strategies)
