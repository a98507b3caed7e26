"""
Global exception handling configuration.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from digital_library.config import DEBUG
from digital_library.schemas.base import ErrorResponse
from digital_library.utils.exceptions import LibraryError


def _error_response(status_code: int, error: str, detail=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body),
        headers=headers,
    )


async def library_exception_handler(request: Request, exc: LibraryError) -> JSONResponse:
    """Map domain errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(
            "{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc
        )
    else:
        logger.warning(
            "{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc.message
        )
    return _error_response(exc.status_code, exc.message, headers=exc.headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("HTTP error {}: {}", exc.status_code, exc.detail)
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("Validation error: {}", exc.errors())
    return _error_response(422, "Validation Error", detail=jsonable_encoder(exc.errors()))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for uncaught exceptions."""
    logger.opt(exception=exc).error(
        "Unhandled exception: {} - Path: {} - Method: {}",
        exc,
        request.url.path,
        request.method,
    )
    return _error_response(
        500, "Internal server error", detail=str(exc) if DEBUG else None
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LibraryError, library_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
