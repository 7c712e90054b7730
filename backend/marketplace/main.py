# backend/marketplace/main.py
"""
FastAPI application for the vendor marketplace booking core.

Run with:
    uvicorn marketplace.main:app --app-dir backend
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.exceptions import DomainException
from .database import init_db
from .routes import bookings, prometheus
from .tasks import notification_tasks  # noqa: F401  registers Celery tasks

logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_TITLE = "Vendor Marketplace API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(f"Starting {API_TITLE} ({settings.environment})")
    if settings.environment == "development":
        init_db()
    yield
    logger.info(f"Shutting down {API_TITLE}")


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Fallback for domain exceptions that escape a route."""
    logger.warning(f"Unhandled {exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"message": exc.message, "code": exc.code, "details": exc.details}},
    )


def create_app() -> FastAPI:
    app = FastAPI(title=API_TITLE, version=API_VERSION, lifespan=app_lifespan)
    app.add_exception_handler(DomainException, domain_exception_handler)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(bookings.router, prefix="/bookings")
    app.include_router(api_v1)
    app.include_router(prometheus.router)

    @app.get("/health", tags=["monitoring"])
    async def health() -> dict:
        return {"status": "healthy", "environment": settings.environment}

    return app


app = create_app()
