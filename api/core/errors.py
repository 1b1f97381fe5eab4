"""
Error types and the JSON error envelope.

Every error leaves the API as:

    {"success": false, "error": {"message": "..."}}
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(ApiError):
    status_code = 404


class ValidationFailure(ApiError):
    status_code = 400


class StorageUnavailable(ApiError):
    """
    The database could not be reached or rejected a statement.
    """


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"message": message}},
    )


@contextmanager
def handler_failure(message: str) -> Iterator[None]:
    """
    Wrap an endpoint body so server-side failures surface as `message`.

    Client errors (< 500) pass through untouched. Anything else is logged
    with its detail and replaced by a generic 500 carrying `message`.
    """
    try:
        yield
    except ApiError as exc:
        if exc.status_code < 500:
            raise
        logger.error("request_failed message=%r detail=%s", message, exc.message)
        raise ApiError(message) from exc
    except StarletteHTTPException:
        raise
    except Exception as exc:
        logger.exception("request_failed message=%r", message)
        raise ApiError(message) from exc


async def _api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    if isinstance(exc, StorageUnavailable):
        logger.error("storage_unavailable detail=%s", exc.message)
        return error_response(exc.status_code, "Internal server error")
    return error_response(exc.status_code, exc.message)


async def _http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown paths and unsupported methods share one envelope.
    if exc.status_code in (404, 405):
        return error_response(404, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("invalid_request errors=%s", exc.errors())
    return error_response(422, "Invalid request parameters")


async def _unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.error("server_error", exc_info=exc)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
