# main.py
import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fabquote.routers import (
    quotation_router,
    payment_router,
    file_router,
    profile_router,
    contact_router,
    activity_router,
)

from fabquote.constants.error_codes import ErrorCode
from fabquote.core.config import APP_ENV, ORPHAN_SWEEP_ENABLED
from fabquote.core.db import init_models, ping_database
from fabquote.core.scheduler import scheduler
from fabquote.core.exceptions import AppException
from fabquote.core.logging import setup_logging
from fabquote.middleware.request_logging import REQUEST_ID_HEADER, request_logging_middleware
from fabquote.utils.response import error_response
from fabquote.core.error_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    integrity_error_handler,
    unhandled_exception_handler,
)

APP_NAME = "Fabrication Quote Storefront API"
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

setup_logging()
logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# LIFESPAN
# ------------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application", extra={"environment": APP_ENV, "version": APP_VERSION})

    if APP_ENV == "development":
        await init_models()
        logger.info("Database tables created from models (development)")

    # orphan sweep: always in development, opt-in elsewhere
    sweep_enabled = APP_ENV == "development" or ORPHAN_SWEEP_ENABLED
    if sweep_enabled:
        scheduler.start()
    logger.info("Orphan sweep scheduler", extra={"enabled": sweep_enabled})

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Application stopped")


app = FastAPI(
    title=APP_NAME,
    description="Quotation lifecycle, settlement and cancellation API for PCB fabrication and assembly",
    version=APP_VERSION,
    docs_url="/docs" if APP_ENV != "production" else None,
    redoc_url=None,
    lifespan=lifespan,
)

# ------------------------------------------------------------------------------
# EXCEPTION HANDLERS
# ------------------------------------------------------------------------------
for exc_class, handler in (
    (AppException, app_exception_handler),
    (RequestValidationError, validation_exception_handler),
    (StarletteHTTPException, http_exception_handler),
    (IntegrityError, integrity_error_handler),
    (Exception, unhandled_exception_handler),
):
    app.add_exception_handler(exc_class, handler)

# ------------------------------------------------------------------------------
# MIDDLEWARE
# ------------------------------------------------------------------------------
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


# ------------------------------------------------------------------------------
# HEALTH
# ------------------------------------------------------------------------------
@app.get("/", tags=["Health"])
async def health_check():
    return {
        "status": "ok",
        "service": "fabquote-api",
        "environment": APP_ENV,
        "version": APP_VERSION,
    }


@app.get("/health/ready", tags=["Health"])
async def readiness_check():
    try:
        await ping_database()
    except SQLAlchemyError:
        logger.exception("Readiness check failed")
        return JSONResponse(
            status_code=503,
            content=error_response("Database unavailable", ErrorCode.STORAGE_UNAVAILABLE),
        )
    return {"status": "ready"}


for router in (
    file_router,
    quotation_router,
    payment_router,
    profile_router,
    contact_router,
    activity_router,
):
    app.include_router(router)
