import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import src.infrastructure.persistence.models  # noqa: F401  (register tables)
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import Base, engine, get_db
from src.presentation.api.dependencies import get_cache_service, set_cache_service
from src.presentation.api.errors import setup_exception_handlers
from src.presentation.api.v1.routes import records, schemas, tenants
from src.presentation.middleware.correlation import CorrelationIDMiddleware
from src.presentation.middleware.rate_limit import limiter
from src.shared.telemetry.logging import setup_logging
from src.shared.telemetry.telemetry import setup_tracing, shutdown_tracing

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    if settings.database_auto_create:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    tracer_provider = None
    if settings.telemetry_enabled:
        tracer_provider = setup_tracing(app, engine, settings)
    else:
        logger.info("Distributed tracing disabled in configuration")

    # Initialize Redis cache; connect() degrades to no cache on failure
    if settings.redis_enabled:
        cache_service = CacheService()
        await cache_service.connect()
        set_cache_service(cache_service)
    else:
        set_cache_service(None)
        logger.info("Redis cache disabled in configuration")

    yield

    shutdown_tracing(tracer_provider)

    if settings.redis_enabled:
        cache = await get_cache_service()
        await cache.disconnect()
        logger.info("Redis cache disconnected")

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
setup_exception_handlers(app)

# Correlation ID for request tracing
app.add_middleware(CorrelationIDMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
app.include_router(schemas.router, prefix="/schemas", tags=["schemas"])
app.include_router(records.router, prefix="/records", tags=["records"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Validates:
    - API is responsive
    - Database connectivity
    - Redis cache availability (optional)

    Returns:
    - 200 OK if healthy
    - 503 Service Unavailable if unhealthy
    """
    checks: dict[str, Any] = {
        "api": True,
        "database": False,
        "cache": None,  # None = not configured, True = healthy, False = unhealthy
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        checks["error"] = str(e)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})

    if settings.redis_enabled:
        cache = await get_cache_service()
        checks["cache"] = cache.is_available()

    return {"status": "healthy", "checks": checks}
