from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TravelMode(str, Enum):
    walking = "walking"
    driving = "driving"
    transit = "transit"


class GeoPoint(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class RouteRequest(BaseModel):
    start: GeoPoint
    end: GeoPoint


class RouteStep(_CamelModel):
    instruction: str
    distance_meters: int
    duration_seconds: int
    travel_mode: str


class RouteGeometry(BaseModel):
    coordinates: list[list[float]]


class RouteSummary(_CamelModel):
    instructions: list[RouteStep]
    total_distance: int
    total_duration: int
    travel_mode: TravelMode
    start_address: str
    end_address: str
    geometry: RouteGeometry


class GeocodeRequest(_CamelModel):
    destination: str = Field(min_length=1)
    user_location: GeoPoint


class PlaceResult(BaseModel):
    lat: float
    lng: float
    name: str
    address: str
    rating: float | None = None
    types: list[str] | None = None


class GeocodeResponse(BaseModel):
    results: list[PlaceResult]


class EmergencyRequest(_CamelModel):
    user_id: str | int
    location: GeoPoint
    message: str = ""


class EmergencyResponse(_CamelModel):
    success: bool
    message: str
    emergency_id: str
