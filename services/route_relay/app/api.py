from fastapi import APIRouter, Depends, HTTPException, status

from src.common.logging import get_logger
from src.common.metrics import ROUTE_REQUESTS

from . import deps, schemas
from .emergency import EmergencyNotifier, get_notifier
from .errors import (
    DecodeError,
    InvalidInput,
    MapsProviderError,
    PlaceNotFound,
    RouteUnavailable,
)
from .maps import GoogleMapsClient, get_maps_client
from .routing import normalize_route, select_mode
from .search import build_strategies, search_places

router = APIRouter(prefix="/api")

logger = get_logger(__name__)


@router.post("/route", response_model=schemas.RouteSummary)
def calculate_route(
    data: schemas.RouteRequest,
    client: GoogleMapsClient | None = Depends(get_maps_client),
) -> schemas.RouteSummary:
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Maps is not configured",
        )
    try:
        distance, mode = select_mode(data.start, data.end)
    except InvalidInput as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    ROUTE_REQUESTS.labels("route_relay", mode.value).inc()
    logger.info("route_requested", distance_m=round(distance), mode=mode.value)
    try:
        raw = client.directions(data.start, data.end, mode)
        return normalize_route(raw, mode)
    except (RouteUnavailable, MapsProviderError, DecodeError) as exc:
        logger.error("route_failed", error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Route calculation failed: {exc}",
        ) from exc


@router.post(
    "/geocode",
    response_model=schemas.GeocodeResponse,
    response_model_exclude_none=True,
)
def geocode(
    data: schemas.GeocodeRequest,
    client: GoogleMapsClient | None = Depends(get_maps_client),
) -> schemas.GeocodeResponse:
    settings = deps.get_settings()
    location = data.user_location
    logger.info(
        "place_search", query=data.destination, lat=location.lat, lng=location.lng
    )
    strategies = build_strategies(
        client,
        radius=settings.search_radius_m,
        places_limit=settings.places_limit,
        geocode_limit=settings.geocode_limit,
    )
    try:
        results = search_places(data.destination, location, strategies)
    except PlaceNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Location not found"
        ) from exc
    return schemas.GeocodeResponse(results=results)


@router.post("/emergency", response_model=schemas.EmergencyResponse)
async def emergency(
    data: schemas.EmergencyRequest,
    notifier: EmergencyNotifier = Depends(get_notifier),
) -> schemas.EmergencyResponse:
    return await notifier.raise_alert(data.user_id, data.location, data.message)
