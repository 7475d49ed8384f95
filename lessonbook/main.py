# lessonbook/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .core.config import settings
from .core.request_context import configure_logging
from .database import init_db
from .errors import register_error_handlers
from .middleware.request_id import RequestIdMiddleware
from .routes.v1 import health as health_routes
from .routes.v1 import lessons as lessons_v1
from .routes.v1 import orders as orders_v1

API_TITLE = "Lesson Booking API"
API_DESCRIPTION = "Browse lessons and place orders against live lesson capacity."

# Configure logging
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info("Lesson booking API starting up...")
    logger.info(f"Environment: {settings.environment}")
    init_db()
    yield
    logger.info("Lesson booking API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )

    # Register unified error envelope handlers
    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT"],
        allow_headers=["*"],
    )
    logger.info("CORS allow_origins=%s", settings.cors_origins)

    # Outermost so every log line of the request carries its id
    app.add_middleware(RequestIdMiddleware)

    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(lessons_v1.router, prefix="/lessons")
    api_v1.include_router(orders_v1.router, prefix="/orders")

    app.include_router(health_routes.router)
    app.include_router(api_v1)
    return app


app = create_app()
