"""Access log and request id correlation.

An inbound X-Request-ID (set by a proxy or the web client) is reused when it
looks sane, otherwise a fresh "req_<12 hex>" id is minted. The id is stored
on request.state for ApiResponse envelopes and echoed in the response header.

    INFO  [POST] /api/v1/purchases -> 201 (23ms) req_a1b2c3d4e5f6
    WARNING [GET] /api/v1/admin/stats -> 500 (4ms) req_0f9e8d7c6b5a
"""

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.cl_common.response import new_request_id

logger = logging.getLogger("cl.request")

_INBOUND_ID = re.compile(r"^[A-Za-z0-9_.-]{8,64}$")


def resolve_request_id(request: Request) -> str:
    inbound = request.headers.get("x-request-id", "")
    return inbound if _INBOUND_ID.match(inbound) else new_request_id()


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s -> %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response
