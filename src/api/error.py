"""HTTP error mapping

Use case errors carry a ``kind``; the API turns it into a status code and
answers ``{"error": {"code", "message"}}``. The internal ``reason`` is only logged.
"""

import logging
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error
from src.app.errors import ErrorKind

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE.value: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION_FAILURE.value: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.EXTERNAL_PROCESSOR_FAILURE.value: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.CONCURRENCY_CONFLICT.value: status.HTTP_409_CONFLICT,
}


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or STATUS_BY_KIND.get(
            error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR
        )


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error.code} ({exc.error.reason})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.error.code, "message": exc.error.message}},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "Invalid request parameters"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": {"code": "VALIDATION_ERROR", "message": message}},
    )
