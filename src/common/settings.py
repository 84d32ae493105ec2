"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic._internal._model_construction import ModelMetaclass


class SettingsMeta(ModelMetaclass):
    """Metaclass to allow overriding fields without type annotations."""

    def __new__(mcls, name, bases, namespace, **kwargs):  # type: ignore[override]
        annotations = dict(namespace.get("__annotations__", {}))
        missing: dict[str, object] = {}
        for base in bases:
            for field, info in getattr(base, "model_fields", {}).items():
                if field in namespace and field not in annotations:
                    missing.setdefault(field, info.annotation)
        if missing:
            annotations.update(missing)
            namespace["__annotations__"] = annotations
        return super().__new__(mcls, name, bases, namespace, **kwargs)


class Settings(BaseSettings, metaclass=SettingsMeta):
    """Base settings shared by every service."""

    # Defaults keep modules importable in tests; deployments override them
    # through the environment.
    kafka_brokers: str | None = Field(default=None, alias="KAFKA_BROKERS")
    otel_exporter_otlp_endpoint: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "case_sensitive": False,
        "populate_by_name": True,
    }

