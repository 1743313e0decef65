"""ApiResponse envelope shared by every endpoint.

{
    "code": 0,              // 0 on success, AppError.code otherwise
    "message": "success",
    "data": { ... },        // null on error
    "timestamp": "...",
    "request_id": "req_..." // same value as the X-Request-ID header
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.cl_common.errors import AppError


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _request_id(request: Request | None) -> str:
    if request is None:
        return new_request_id()
    return getattr(request.state, "request_id", None) or new_request_id()


def respond(request: Request, data: Any = None) -> ApiResponse:
    """Success envelope carrying the id the request middleware assigned."""
    return ApiResponse(data=data, request_id=_request_id(request))


def error_body(exc: AppError, request: Request | None = None) -> dict[str, Any]:
    return ApiResponse(
        code=exc.code, message=exc.message, request_id=_request_id(request)
    ).model_dump()
