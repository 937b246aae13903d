"""
Application exceptions and their HTTP mapping.

Services raise these; the handlers registered on the FastAPI app turn them
into JSON responses shaped like ``HTTPException`` (``{"detail": ...}``).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(AppError):
    """Missing or invalid input."""

    status_code = 400


class GeocodingError(ValidationError):
    """An address could not be resolved to a location."""


class NotFound(AppError):
    """A referenced record does not exist."""

    status_code = 404


class ConflictError(AppError):
    """The record was changed by another writer."""

    status_code = 409


class InternalError(AppError):
    """Store or upstream failure."""

    status_code = 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400, content={"detail": jsonable_encoder(exc.errors())}
    )


async def stale_data_handler(request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning(f"Concurrent write rejected on {request.url.path}")
    return await app_error_handler(
        request, ConflictError("Record was modified by another request")
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return await app_error_handler(request, InternalError("Internal database error"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return await app_error_handler(request, InternalError("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error taxonomy to a FastAPI app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    # StaleDataError subclasses SQLAlchemyError; the more specific handler wins
    app.add_exception_handler(StaleDataError, stale_data_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
