"""
Request logging middleware: one "request started" and one "request completed"
line per request, tied together by a trace id.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

TRACE_ID_HEADER = "X-Request-ID"

_default_logger = logging.getLogger(__name__)


def _request_fields(request: Request, trace_id: str) -> dict[str, str]:
    return {
        "trace_id": trace_id,
        "web_method": request.method,
        "web_path": request.url.path,
        "web_remoteaddr": f"{request.client.host}:{request.client.port}"
        if request.client
        else "",
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, logger: logging.Logger | None = None) -> None:
        super().__init__(app)
        self.logger = logger or _default_logger

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = request.headers.get(TRACE_ID_HEADER) or uuid.uuid4().hex
        request.state.trace_id = trace_id
        fields = _request_fields(request, trace_id)
        start = time.perf_counter()

        self.logger.info("request started", extra=fields)

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[TRACE_ID_HEADER] = trace_id
            return response
        finally:
            self.logger.info(
                "request completed",
                extra={
                    **fields,
                    "web_status_code": status_code,
                    "web_latency_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
