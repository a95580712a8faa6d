"""
Travel Booking API - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
import structlog

from app.config import settings
from app.core.errors import ReservationError, reservation_error_handler, unhandled_error_handler
from app.api import auth, reservations


def configure_logging() -> None:
    """Configure structured logging on top of the standard library"""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    if settings.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Travel Booking API", version="1.0.0", lock_backend=settings.reservation_lock_backend)
    yield
    logger.info("Shutting down Travel Booking API")


# Create FastAPI application
app = FastAPI(
    title="Travel Booking API",
    description="Reservations for restaurant tables and accommodation units",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ReservationError, reservation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from app.database import SessionLocal

    checks = {}

    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    if settings.reservation_lock_backend == "redis":
        redis = Redis.from_url(settings.redis_url)
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except RedisError as e:
            checks["redis"] = f"failed: {str(e)}"
        finally:
            await redis.aclose()

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(reservations.router, prefix="/reservations", tags=["Reservations"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
