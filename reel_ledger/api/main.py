"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from reel_ledger.api.middleware import RequestIDMiddleware, MetricsMiddleware
from reel_ledger.api.v1 import budgets, categories, expenses
from reel_ledger.infrastructure.database.session import init_db
from reel_ledger.infrastructure.observability.logging import setup_logging
from reel_ledger.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Reel Ledger",
        description="Production budget ledger: categories, expenses and approvals",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
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
    app.include_router(budgets.router, prefix="/v1", tags=["budgets"])
    app.include_router(categories.router, prefix="/v1", tags=["categories"])
    app.include_router(expenses.router, prefix="/v1", tags=["expenses"])

    return app


app = create_app()
