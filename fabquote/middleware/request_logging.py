import logging
import time
import uuid

from fastapi import Request

logger = logging.getLogger("access")

REQUEST_ID_HEADER = "X-Request-ID"


async def request_logging_middleware(request: Request, call_next):
    """One access line per request, tagged with the caller once auth has resolved them."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()

    response = await call_next(request)

    principal = getattr(request.state, "principal", None)
    response.headers[REQUEST_ID_HEADER] = request_id

    logger.info(
        request_id,
        extra={
            "client_addr": request.client.host if request.client else "unknown",
            "user_id": principal.user_id if principal else "-",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )

    return response
