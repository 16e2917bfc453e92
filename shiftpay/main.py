# shiftpay/main.py
"""
ASGI entry point: ``uvicorn shiftpay.main:app``.
"""

import os
import platform
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shiftpay.core.config import APP_VERSION, DEFAULT_CONFIG_FILE, IS_PRODUCTION, SERVICE_NAME
from shiftpay.core.logging_config import get_logger, setup_logging
from shiftpay.core.request_logging import REQUEST_ID_HEADER, RequestLoggingMiddleware
from shiftpay.core.sentry_config import init_sentry
from shiftpay.core.storage import load_default_config
from shiftpay.database.database import create_tables, get_db
from shiftpay.routes.calculator import router as calculator_router
from shiftpay.routes.calendar import router as calendar_router
from shiftpay.routes.config import router as config_router

# Logging must be configured before anything else logs
setup_logging()
logger = get_logger(__name__)

sentry_enabled = init_sentry()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_default_config()
    create_tables()
    logger.info(
        "%s %s ready: %d bonus rules from %s",
        SERVICE_NAME,
        APP_VERSION,
        len(config.rates.bonus_rules),
        DEFAULT_CONFIG_FILE.name,
        extra={
            "extra_fields": {
                "production": IS_PRODUCTION,
                "python_version": platform.python_version(),
                "sentry": sentry_enabled,
            }
        },
    )
    yield
    logger.info("%s shutting down", SERVICE_NAME)


def cors_settings() -> dict:
    """CORSMiddleware options: open in development, CORS_ORIGINS only in production."""
    if not IS_PRODUCTION:
        return {"allow_origins": ["*"], "allow_methods": ["*"]}

    origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "").split(",") if origin.strip()]
    if not origins:
        logger.warning("PRODUCTION is set without CORS_ORIGINS; browsers on other origins will be refused")
    return {"allow_origins": origins, "allow_methods": ["GET", "POST", "PUT", "PATCH", "DELETE"]}


def create_app() -> FastAPI:
    application = FastAPI(
        title="ShiftPay",
        description="Shift salary calculation with evening, night and weekend bonuses",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
        **cors_settings(),
    )
    application.add_middleware(RequestLoggingMiddleware)

    for router in (calculator_router, config_router, calendar_router):
        application.include_router(router)

    application.add_api_route("/health", health_check, methods=["GET"], tags=["health"])
    return application


async def health_check(db: Session = Depends(get_db)):
    """Liveness plus a database round trip; 503 when the database is unreachable."""
    body = {"service": SERVICE_NAME, "version": APP_VERSION}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={**body, "status": "unhealthy", "database": "disconnected"},
        )
    return {**body, "status": "healthy", "database": "connected"}


app = create_app()
