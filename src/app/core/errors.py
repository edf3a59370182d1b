from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.settings import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error with an HTTP status that is safe to show to the client."""

    def __init__(
        self, status_code: int, message: str, errors: Optional[List[dict]] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors

    @classmethod
    def bad_request(cls, message: str, errors: Optional[List[dict]] = None):
        return cls(status.HTTP_400_BAD_REQUEST, message, errors)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized"):
        return cls(status.HTTP_401_UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str = "Forbidden"):
        return cls(status.HTTP_403_FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str = "Resource not found"):
        return cls(status.HTTP_404_NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str):
        return cls(status.HTTP_409_CONFLICT, message)


class StoreError(Exception):
    """The backing store could not answer a query."""

    def __init__(self, message: str = "Backing store failure"):
        super().__init__(message)
        self.message = message


def _field_name(loc: tuple) -> str:
    # ("query", "maxPrice") -> "maxPrice"; ("body", "price") -> "price"
    parts = [str(p) for p in loc if p not in ("query", "body", "path")]
    return ".".join(parts) or "request"


def format_validation_errors(errors: List[dict[str, Any]]) -> List[dict]:
    formatted = []
    for err in errors:
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        formatted.append({"field": _field_name(tuple(err.get("loc", ()))), "message": message})
    return formatted


def _body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


async def api_error_handler(_: Request, exc: ApiError):
    content = _body(exc.message)
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(_: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_body("Validation failed", errors=format_validation_errors(exc.errors())),
    )


async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    content = _body("Internal server error")
    if settings.APP_ENV == "development":
        content["error"] = str(exc.__cause__ or exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    content = _body("Internal server error")
    if settings.APP_ENV == "development":
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
