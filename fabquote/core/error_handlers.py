import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fabquote.constants.error_codes import ErrorCode
from fabquote.core.exceptions import AppException
from fabquote.utils.response import error_response

logger = logging.getLogger(__name__)


def _caller(request: Request) -> str:
    principal = getattr(request.state, "principal", None)
    return principal.user_id if principal else "-"


# -------------------------
# ENGINE ERRORS
# -------------------------
async def app_exception_handler(request: Request, exc: AppException):
    context = {
        "path": request.url.path,
        "user_id": _caller(request),
        "error_code": exc.error_code.value,
    }

    if exc.status_code >= 500:
        # details may hold a payment reference that needs manual reconciliation
        logger.error("Dependency failure", extra={**context, "details": exc.details})
    elif exc.status_code in (403, 409):
        logger.warning(exc.detail, extra=context)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.detail, exc.error_code, exc.details),
    )


# -------------------------
# REQUEST BODY / QUERY VALIDATION
# -------------------------
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # no "input" echo: bodies can carry uploaded content or contact details
    errors = [
        {"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=error_response("Invalid request data", ErrorCode.VALIDATION_ERROR, errors),
    )


# -------------------------
# PLAIN HTTP ERRORS (auth, routing)
# -------------------------
HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_code = HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR)

    headers = getattr(exc, "headers", None)
    if exc.status_code == 401:
        headers = {**(headers or {}), "WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(str(exc.detail), error_code),
        headers=headers,
    )


# -------------------------
# CONSTRAINT VIOLATIONS NOT MAPPED BY A SERVICE
# -------------------------
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.exception("Unmapped integrity error", extra={"path": request.url.path})

    return JSONResponse(
        status_code=409,
        content=error_response("Database constraint violation", ErrorCode.CONFLICT),
    )


# -------------------------
# LAST RESORT
# -------------------------
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "user_id": _caller(request),
        },
    )

    return JSONResponse(
        status_code=500,
        content=error_response("Something went wrong. Please try again.", ErrorCode.INTERNAL_ERROR),
    )
