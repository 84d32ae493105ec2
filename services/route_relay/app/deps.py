from functools import lru_cache

from src.common.settings import Settings as CommonSettings


class Settings(CommonSettings):
    google_maps_api_key: str | None = None
    google_maps_language: str = "en"
    google_maps_region: str | None = None
    google_maps_timeout: float = 5.0
    search_radius_m: int = 50000
    places_limit: int = 5
    geocode_limit: int = 3
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_phone_number: str | None = None
    emergency_contact: str | None = None
    emergency_topic: str = "emergency.raised"


@lru_cache
def get_settings() -> Settings:
    return Settings()
