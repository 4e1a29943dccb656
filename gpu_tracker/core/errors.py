from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("gpu_tracker.errors")


class GpuTrackerError(Exception):
    """Base class for failures that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal error"

    def __init__(self, error: str | None = None, **details: Any) -> None:
        self.error = error or self.error
        self.details = details
        super().__init__(self.error)

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, **self.details}


class ValidationError(GpuTrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid request"


class NotFoundError(GpuTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class StoreIOError(GpuTrackerError):
    """The JSON document could not be read or written.

    ``message`` keeps the underlying I/O or parse error so it can be surfaced
    to the caller.
    """

    error = "GPU database error"

    def __init__(self, message: str, *, error: str | None = None) -> None:
        self.message = message
        super().__init__(error, message=message)

    def __str__(self) -> str:
        return self.message


class StoreReadError(StoreIOError):
    error = "Failed to read GPU database"


class StoreWriteError(StoreIOError):
    error = "Failed to write GPU database"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        error: str,
        headers: dict[str, str] | None = None,
        **details: Any,
    ) -> None:
        payload: dict[str, Any] = {"error": error}
        payload.update(details)
        super().__init__(payload, status_code=status_code, headers=headers)


async def tracker_exception_handler(request: Request, exc: GpuTrackerError):
    if exc.status_code >= 500:
        logger.error("request.failed %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    payload = exc.to_payload()
    error = payload.pop("error")
    return ErrorEnvelope(status_code=exc.status_code, error=error, **payload)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        payload = dict(detail)
        error = str(payload.pop("error", "Error"))
        return ErrorEnvelope(status_code=exc.status_code, error=error, headers=exc.headers, **payload)
    return ErrorEnvelope(status_code=exc.status_code, error=str(detail or "Error"), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        error="Invalid request body",
        details=jsonable_errors(exc),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ``ctx`` may carry exception instances that JSONResponse cannot encode
    cleaned = []
    for err in exc.errors():
        item = {key: value for key, value in err.items() if key not in ("ctx", "url", "input")}
        cleaned.append(item)
    return cleaned
