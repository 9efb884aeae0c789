"""
GameRent API - Main Application Entry Point

Board and card game rental backend:
- Game catalog with a Redis-cached listing
- Per-date availability derived from active reservations and stock
- Reservation lifecycle with concurrency-safe slot claims
- Structured logging with request correlation and Prometheus metrics

Run with: uvicorn gamerent.main:app (from the backend/ directory)
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gamerent import __version__
from gamerent.api.middleware import RequestLoggingMiddleware
from gamerent.api.router import api_router
from gamerent.core.config import get_settings
from gamerent.core.exceptions import GameRentError
from gamerent.core.logging import get_logger, setup_logging
from gamerent.core.metrics import metrics_endpoint
from gamerent.db.session import engine, get_db
from gamerent.services.cache_service import close_redis, get_cache_stats, get_redis

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        timezone=settings.TIMEZONE,
    )

    if await get_redis() is None:
        logger.warning("catalog_cache_disabled", redis_enabled=settings.REDIS_ENABLED)

    yield

    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Board and card game rental API with date-based reservations",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(GameRentError)
async def gamerent_error_handler(request: Request, exc: GameRentError) -> JSONResponse:
    """Domain errors become `{"error": code, "detail": message}`."""
    logger.warning("request_rejected", error=exc.code, detail=exc.message, **exc.context)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus database and cache status. Redis being down is not unhealthy."""
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("health_database_error", error=str(e))
        database = "error"

    body = {
        "status": "healthy" if database == "connected" else "degraded",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "cache": await get_cache_stats(),
    }
    return JSONResponse(status_code=200 if database == "connected" else 503, content=body)


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": __version__,
        "docs": "/docs",
    }
