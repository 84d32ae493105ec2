"""Интеграция с Google Maps: Directions, Places и Geocoding API."""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Callable, TypeVar

import googlemaps
from googlemaps.exceptions import ApiError, Timeout, TransportError
from opentelemetry import trace

from src.common.metrics import PROVIDER_ERRORS, PROVIDER_LATENCY

from . import deps
from .errors import MapsProviderError
from .schemas import GeoPoint, TravelMode

logger = logging.getLogger(__name__)

SERVICE_NAME = "route_relay"

_T = TypeVar("_T")


def _latlng(point: GeoPoint) -> str:
    return f"{point.lat},{point.lng}"


class GoogleMapsClient:
    """Обёртка над клиентом googlemaps с нужными настройками."""

    def __init__(self, settings: deps.Settings) -> None:
        if not settings.google_maps_api_key:
            raise MapsProviderError("Отсутствует API-ключ Google Maps")
        try:
            self._client = googlemaps.Client(
                key=settings.google_maps_api_key,
                timeout=settings.google_maps_timeout,
            )
        except ValueError as exc:
            raise MapsProviderError("Некорректный API-ключ Google Maps") from exc
        self._language = settings.google_maps_language
        self._region = settings.google_maps_region
        self._tracer = trace.get_tracer(__name__)

    def _call(self, operation: str, func: Callable[[], _T]) -> _T:
        """Выполнить запрос к Google Maps с трассировкой и метриками."""

        start = time.perf_counter()
        with self._tracer.start_as_current_span(f"maps.{operation}"):
            try:
                return func()
            except (TransportError, Timeout) as exc:
                PROVIDER_ERRORS.labels(SERVICE_NAME, operation).inc()
                logger.warning("Google Maps недоступен (%s): %s", operation, exc)
                raise MapsProviderError(f"Google Maps unavailable: {exc}") from exc
            finally:
                PROVIDER_LATENCY.labels(SERVICE_NAME, operation).observe(
                    time.perf_counter() - start
                )

    def directions(
        self, start: GeoPoint, end: GeoPoint, mode: TravelMode
    ) -> dict[str, Any]:
        """Запросить маршрут и вернуть ответ в форме ``{status, routes}``.

        Ошибка API (например, ``REQUEST_DENIED``) не выбрасывается, а
        возвращается в поле ``status`` с пустым списком маршрутов.
        """

        def request() -> dict[str, Any]:
            try:
                routes = self._client.directions(
                    origin=_latlng(start),
                    destination=_latlng(end),
                    mode=mode.value,
                    alternatives=True,
                    language=self._language,
                    region=self._region,
                )
            except ApiError as exc:
                PROVIDER_ERRORS.labels(SERVICE_NAME, "directions").inc()
                logger.warning("Google Directions вернул ошибку: %s", exc.status)
                return {"status": exc.status, "routes": []}
            return {"status": "OK" if routes else "ZERO_RESULTS", "routes": routes}

        return self._call("directions", request)

    def text_search(
        self, query: str, location: GeoPoint, radius: int
    ) -> list[dict[str, Any]]:
        """Текстовый поиск мест рядом с пользователем."""

        def request() -> list[dict[str, Any]]:
            try:
                response = self._client.places(
                    query=query,
                    location=_latlng(location),
                    radius=radius,
                    language=self._language,
                    region=self._region,
                )
            except ApiError as exc:
                PROVIDER_ERRORS.labels(SERVICE_NAME, "places").inc()
                raise MapsProviderError(f"Places API error: {exc.status}") from exc
            logger.info("Ответ Places API: %s", response.get("status"))
            return list(response.get("results", []))

        return self._call("places", request)

    def geocode(self, address: str) -> list[dict[str, Any]]:
        """Прямое геокодирование адреса."""

        def request() -> list[dict[str, Any]]:
            try:
                results = self._client.geocode(
                    address=address, language=self._language, region=self._region
                )
            except ApiError as exc:
                PROVIDER_ERRORS.labels(SERVICE_NAME, "geocode").inc()
                raise MapsProviderError(f"Geocoding API error: {exc.status}") from exc
            logger.info("Геокодирование вернуло %d результатов", len(results))
            return list(results)

        return self._call("geocode", request)


@lru_cache
def get_maps_client() -> GoogleMapsClient | None:
    """Вернуть закешированный клиент Google Maps либо `None`."""

    settings = deps.get_settings()
    if not settings.google_maps_api_key:
        return None
    try:
        return GoogleMapsClient(settings)
    except MapsProviderError as exc:
        logger.error("Не удалось инициализировать Google Maps: %s", exc)
        return None
