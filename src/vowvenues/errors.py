# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by services and request handlers.

Every error carries the HTTP status it maps to. Handlers never build error
responses by hand: they raise, and the exception handlers registered by
``install_error_handlers`` render the JSON body.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_body(self) -> dict:
        body = {"message": self.message}
        if self.detail:
            body["error"] = self.detail
        return body


class ClientInputError(AppError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class MethodNotSupportedError(AppError):
    status_code = 405
    default_message = "Method not allowed"


class ConfigurationError(AppError):
    """Required configuration is missing. Never recoverable per request."""

    status_code = 500
    default_message = "Server configuration error"


class InfrastructureError(AppError):
    status_code = 500
    default_message = "Internal server error"


def _json(err: AppError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_body())


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("{} {} -> {}: {}", request.method, request.url.path, exc.status_code, exc.detail or exc.message)
    else:
        logger.info("{} {} -> {}: {}", request.method, request.url.path, exc.status_code, exc.message)
    return _json(exc)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        err: AppError = MethodNotSupportedError()
    elif exc.status_code == 404:
        err = NotFoundError()
    else:
        err = AppError(str(exc.detail))
        err.status_code = exc.status_code
    return JSONResponse(status_code=err.status_code, content=err.to_body(), headers=getattr(exc, "headers", None))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({str(e.get("loc", ["?"])[-1]) for e in exc.errors()})
    err = ClientInputError("Invalid request parameters", detail=", ".join(fields) or None)
    return await _app_error_handler(request, err)


async def _error_boundary(request: Request, call_next):
    # Last line: anything the routes did not translate becomes a 500 body.
    try:
        return await call_next(request)
    except Exception as exc:
        logger.opt(exception=exc).error("Unhandled error in {} {}", request.method, request.url.path)
        return _json(InfrastructureError(detail=str(exc)))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.middleware("http")(_error_boundary)
