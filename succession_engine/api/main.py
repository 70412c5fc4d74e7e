"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from succession_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from succession_engine.api.v1 import calculations, snapshot, history
from succession_engine.infrastructure.observability.logging import setup_logging
from succession_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Succession Engine",
        description="Kenyan intestate and customary-law estate distribution service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(calculations.router, prefix="/v1", tags=["calculations"])
    app.include_router(snapshot.router, prefix="/v1", tags=["calculations"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
