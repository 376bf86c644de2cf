import time
import uuid

import sentry_sdk
import structlog
import structlog.contextvars
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

# Polled by uptime checks
_QUIET_PATHS = frozenset({"/health", "/api/health"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Request id plus one log line per served request.

    Handlers that serve restaurant data record how they served it in
    `request.state.data_source` ("hit", "miss", "refresh" or "snapshot"); that
    value is exposed as `X-Data-Source` and added to the log line.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

        structlog.contextvars.bind_contextvars(request_id=request_id)
        sentry_sdk.set_tag("request_id", request_id)

        start = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        elapsed_ms = round((time.monotonic() - start) * 1000, 1)
        data_source = getattr(request.state, "data_source", None)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(elapsed_ms)
        if data_source:
            response.headers["X-Data-Source"] = data_source

        if request.url.path in _QUIET_PATHS:
            return response

        if data_source:
            logger.info(
                "Served restaurants",
                request_id=request_id,
                source=data_source,
                refresh=request.query_params.get("refresh") == "true",
                status=response.status_code,
                elapsed_ms=elapsed_ms,
            )
        else:
            logger.info(
                "request",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                elapsed_ms=elapsed_ms,
            )
        return response
