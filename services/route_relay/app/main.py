from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.common.logging import get_logger, setup_logging
from src.common.metrics import setup_metrics
from src.common.telemetry import setup_otel

from . import deps
from .api import router
from .presence import router as presence_router

settings = deps.get_settings()
setup_logging(settings.log_level)

app = FastAPI(title="route_relay")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
setup_metrics(app, "route_relay")
setup_otel(app, "route_relay", settings.otel_exporter_otlp_endpoint)

logger = get_logger(__name__)


@app.on_event("startup")
async def on_startup() -> None:
    logger.info(
        "service_started",
        google_maps_configured=bool(deps.get_settings().google_maps_api_key),
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
async def readyz() -> dict[str, str]:
    return {"status": "ready"}


app.include_router(router)
app.include_router(presence_router)
