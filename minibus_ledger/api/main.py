"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from minibus_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from minibus_ledger.api.v1 import daily_records, reports, settings as settings_api, settlement
from minibus_ledger.infrastructure.observability.logging import setup_logging
from minibus_ledger.config import settings

setup_logging(settings.log_level, settings.service_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Minibus Fleet Ledger",
        description="Daily revenue settlement and fleet anomaly reporting",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added = first executed
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(daily_records.router, prefix="/v1", tags=["daily-records"])
    app.include_router(settlement.router, prefix="/v1", tags=["settlement"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])
    app.include_router(settings_api.router, prefix="/v1", tags=["settings"])

    return app


app = create_app()
