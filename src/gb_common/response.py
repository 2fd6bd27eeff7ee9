"""Unified API response wrappers.

Success:
{
    "code": 0,
    "message": "success",
    "data": { ... },
    "timestamp": "...",
    "request_id": "..."
}

Error (one human-readable message, the first violated rule):
{
    "error": "Insufficient points: required 500, available 120",
    "code": 4001,
    "request_id": "..."
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=_new_request_id)


class ErrorResponse(BaseModel):
    error: str
    code: int
    request_id: str = Field(default_factory=_new_request_id)


def success_response(
    data: Any = None,
    message: str = "success",
    request_id: str | None = None,
) -> ApiResponse:
    resp = ApiResponse(code=0, message=message, data=data)
    if request_id is not None:
        resp.request_id = request_id
    return resp


def error_response(code: int, message: str, request_id: str | None = None) -> ErrorResponse:
    resp = ErrorResponse(error=message, code=code)
    if request_id is not None:
        resp.request_id = request_id
    return resp


def request_id_of(request: Request) -> str | None:
    """request_id injected by RequestLogMiddleware, None if the middleware did not run."""
    return getattr(request.state, "request_id", None)
