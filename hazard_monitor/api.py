"""Hazard Monitor API - FastAPI service.

Thin HTTP surface over the ingestion pipeline, statistics, proximity
lookups, registry lookups and manual alerts. Deployed as a single Cloud
Run service; run locally with `uvicorn hazard_monitor.api:app`.
"""

import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hazard_monitor import __version__
from hazard_monitor.alert_service import AlertService
from hazard_monitor.core.config import Config
from hazard_monitor.core.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from hazard_monitor.core.models import (
    AlertDraft,
    AlertType,
    DeviceStatus,
    DeviceType,
    ResourceStatus,
)
from hazard_monitor.ingestion import IngestionPipeline
from hazard_monitor.proximity import (
    DEFAULT_ALERT_RADIUS_KM,
    DEFAULT_DEVICE_RADIUS_KM,
    DEFAULT_RESOURCE_RADIUS_KM,
    DEFAULT_SHELTER_RADIUS_KM,
    ProximityService,
)
from hazard_monitor.registry_service import RegistryService
from hazard_monitor.shell.config_loader import apply_log_level, get_config
from hazard_monitor.shell.storage import Store, create_store
from hazard_monitor.statistics_service import StatisticsService
from hazard_monitor.transaction import RetryPolicy


log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:3001"


# ===== Request Models =====

class DeviceDataCreate(BaseModel):
    device_id: int
    value: float


class AlertCreate(BaseModel):
    type: AlertType
    severity: int
    latitude: float
    longitude: float
    description: str
    timestamp: datetime | None = None


# ===== Error Mapping =====

def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def _register_error_handlers(app: FastAPI) -> None:
    """Map the error taxonomy to HTTP status codes."""

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument(request: Request, exc: InvalidArgumentError):
        return _error_response(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0]["msg"] if errors else "Invalid request"
        return _error_response(400, detail)

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return _error_response(404, str(exc))

    @app.exception_handler(InternalError)
    async def internal(request: Request, exc: InternalError):
        return _error_response(500, str(exc))


# ===== App Factory =====

def create_app(store: Store | None = None, config: Config | None = None) -> FastAPI:
    """Build the API application.

    Args:
        store: Storage port (default: built from configuration)
        config: Configuration (default: loaded via get_config())

    Returns:
        Configured FastAPI app
    """
    if config is None:
        config = get_config()
    apply_log_level(config)
    if store is None:
        store = create_store(config.storage)

    retry_policy = RetryPolicy.from_config(config.retry)
    pipeline = IngestionPipeline(store, retry_policy)
    statistics = StatisticsService(
        store,
        default_window_months=config.statistics.default_window_months,
        default_top_n=config.statistics.hotspot_top_n,
    )
    proximity = ProximityService(store)
    alerts = AlertService(store, retry_policy)
    registry = RegistryService(store)

    app = FastAPI(
        title="Hazard Monitor API",
        description="Sensor ingestion, hazard alerts and dashboard statistics",
        version=__version__,
    )

    # CORS configuration
    origins = os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # ===== Ingestion =====

    @app.post("/device-data", status_code=201)
    def post_device_data(body: DeviceDataCreate):
        """Ingest a sensor reading; may raise an alert."""
        result = pipeline.process(body.device_id, body.value)
        return result.to_dict()

    # ===== Statistics =====

    @app.get("/statistics/dashboard")
    def get_dashboard(
        from_date: datetime | None = Query(default=None, alias="from"),
        to_date: datetime | None = Query(default=None, alias="to"),
    ):
        return statistics.dashboard_statistics(from_date, to_date).to_dict()

    @app.get("/statistics/locations")
    def get_location_statistics(
        from_date: datetime = Query(alias="from"),
        to_date: datetime = Query(alias="to"),
        radius_km: float | None = Query(default=None),
        center_lat: float | None = Query(default=None),
        center_lng: float | None = Query(default=None),
    ):
        results = statistics.location_statistics(
            from_date, to_date, radius_km, center_lat, center_lng
        )
        return [s.to_dict() for s in results]

    @app.get("/statistics/device-types")
    def get_device_type_statistics(
        from_date: datetime = Query(alias="from"),
        to_date: datetime = Query(alias="to"),
    ):
        return [s.to_dict() for s in statistics.device_type_statistics(from_date, to_date)]

    @app.get("/statistics/trends")
    def get_alert_trends(
        from_date: datetime = Query(alias="from"),
        to_date: datetime = Query(alias="to"),
    ):
        return [t.to_dict() for t in statistics.alert_trends(from_date, to_date)]

    @app.get("/statistics/hotspots")
    def get_hotspots(
        from_date: datetime = Query(alias="from"),
        to_date: datetime = Query(alias="to"),
        top_n: int | None = Query(default=None),
    ):
        return [h.to_dict() for h in statistics.geographic_hotspots(from_date, to_date, top_n)]

    # ===== Proximity =====

    @app.get("/alerts/nearby")
    def get_alerts_nearby(
        latitude: float,
        longitude: float,
        radius_km: float = Query(default=DEFAULT_ALERT_RADIUS_KM),
    ):
        return [r.to_dict() for r in proximity.alerts_near(latitude, longitude, radius_km)]

    @app.get("/shelters/nearby")
    def get_shelters_nearby(
        latitude: float,
        longitude: float,
        radius_km: float = Query(default=DEFAULT_SHELTER_RADIUS_KM),
        available_only: bool = Query(default=False),
    ):
        results = proximity.shelters_near(latitude, longitude, radius_km, available_only)
        return [r.to_dict() for r in results]

    @app.get("/resources/nearby")
    def get_resources_nearby(
        latitude: float,
        longitude: float,
        radius_km: float = Query(default=DEFAULT_RESOURCE_RADIUS_KM),
    ):
        return [r.to_dict() for r in proximity.resources_near(latitude, longitude, radius_km)]

    @app.get("/devices/nearby")
    def get_devices_nearby(
        latitude: float,
        longitude: float,
        radius_km: float = Query(default=DEFAULT_DEVICE_RADIUS_KM),
    ):
        return [r.to_dict() for r in proximity.devices_near(latitude, longitude, radius_km)]

    # ===== Lookups =====

    @app.get("/alerts/type/{alert_type}")
    def get_alerts_by_type(alert_type: AlertType):
        return [a.to_dict() for a in registry.alerts_by_type(alert_type)]

    @app.get("/alerts/severity/{severity}")
    def get_alerts_by_severity(severity: int):
        return [a.to_dict() for a in registry.alerts_by_severity(severity)]

    @app.get("/alerts/recent")
    def get_recent_alerts(since: datetime):
        """Alerts since a point in time, newest first."""
        return [a.to_dict() for a in registry.recent_alerts(since)]

    @app.get("/devices/type/{device_type}")
    def get_devices_by_type(device_type: DeviceType):
        return [d.to_dict() for d in registry.devices_by_type(device_type)]

    @app.get("/devices/status/{status}")
    def get_devices_by_status(status: DeviceStatus):
        return [d.to_dict() for d in registry.devices_by_status(status)]

    @app.get("/resources/available")
    def get_available_resources():
        return [r.to_dict() for r in registry.available_resources()]

    @app.get("/resources/status/{status}")
    def get_resources_by_status(status: ResourceStatus):
        return [r.to_dict() for r in registry.resources_by_status(status)]

    # ===== Manual Alerts =====

    @app.post("/alerts", status_code=201)
    def post_alert(body: AlertCreate):
        """Create an alert by hand."""
        draft = AlertDraft(
            type=body.type,
            severity=body.severity,
            latitude=body.latitude,
            longitude=body.longitude,
            timestamp=body.timestamp,
            description=body.description,
        )
        return alerts.create_alert(draft).to_dict()

    @app.get("/health")
    def health_check():
        """Health check endpoint for Cloud Run."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
