"""Map the error taxonomy onto HTTP status codes.

Every error response has the body ``{"error": <code>, "message": <text>}``.
Hook vetoes never reach this module: they are 200 responses.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from entitykit.errors import (
    ConfigurationError,
    EntityKitError,
    MalformedInputError,
    StorageError,
    TransportError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: list[tuple[type[EntityKitError], int]] = [
    (MalformedInputError, 400),
    (TransportError, 502),
    (StorageError, 500),
    (ConfigurationError, 500),
]


def status_for(error: EntityKitError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def error_response(status: int, code: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": code, "message": message},
        headers=headers,
    )


async def handle_entitykit_error(request: Request, exc: EntityKitError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(
            "%s %s failed with %s", request.method, request.url.path, exc.code, exc_info=exc
        )
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return error_response(status, exc.code, str(exc))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return error_response(400, MalformedInputError.code, details or "Invalid request")


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "unauthorized" if exc.status_code == 401 else "http_error"
    return error_response(exc.status_code, code, str(exc.detail), headers=exc.headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EntityKitError, handle_entitykit_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
