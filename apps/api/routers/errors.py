"""HTTP-facing error kinds and the handlers that render the status envelope."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schemas import StatusResponse
from services.errors import ServiceError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code: int = 500

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or HTTPStatus(self.status_code).phrase)
        self.detail = detail


class BadRequest(ApiError):
    status_code = 400


class Unauthorized(ApiError):
    status_code = 401


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409


class InternalServerError(ApiError):
    status_code = 500


def status_response(status_code: int, detail: Optional[str] = None) -> JSONResponse:
    """Render `{status, title, detail?}` with the matching HTTP status."""
    try:
        title = HTTPStatus(status_code).phrase
    except ValueError:
        title = "Unknown"
    body = StatusResponse(status=status_code, title=title, detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return status_response(exc.status_code)
    return status_response(exc.status_code, exc.detail)


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return status_response(500)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else None
    if detail == HTTPStatus(exc.status_code).phrase:
        detail = None
    return status_response(exc.status_code, detail)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = None
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg")
    return status_response(422, detail)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return status_response(500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
