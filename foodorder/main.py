"""
FastAPI Application Entry Point

Food Ordering API - user profiles, restaurant management and search,
checkout through a hosted payment page, payment webhook.

Endpoints:
    - /api/my/user: Current user profile
    - /api/my/restaurant: Owner's restaurant and its orders
    - /api/restaurant: Public restaurant detail and search
    - /api/order: Customer orders, checkout, payment webhook
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodorder.core.config import get_settings, setup_logging
from foodorder.core.exceptions import AppError
from foodorder.database import engine, get_db, init_db
from foodorder.routers import my_restaurant, my_user, orders, restaurants
from foodorder.schemas import HealthResponse
from foodorder.services.payment import BasePaymentGateway, get_payment_gateway

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    gateway = get_payment_gateway()
    logger.info(f"Payment Gateway: {gateway.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready")

    yield

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food ordering backend: restaurants, menus, checkout through a "
        "hosted payment page and webhook-driven payment confirmation."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(my_user.router)
app.include_router(my_restaurant.router)
app.include_router(restaurants.router)
app.include_router(orders.router)


# =============================================================================
# HEALTH
# =============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
) -> HealthResponse:
    """Verify the database and payment gateway are reachable."""

    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {e}"
        logger.error(f"Database health check failed: {e}")

    gateway_status = "healthy" if await gateway.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [db_status, gateway_status]
    ) else "degraded"

    return HealthResponse(
        message="health OK!",
        status=overall,
        database=db_status,
        payment_gateway=gateway_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map application errors to their status code and a message body."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "message": str(exc) if settings.debug else "Something went wrong",
        },
    )
