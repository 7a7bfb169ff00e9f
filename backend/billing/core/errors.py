"""Structured API errors.

Every business failure raised by the services is a ``BillingError`` carrying an
HTTP status, a machine-readable ``error_code``, a human message and an optional
``details`` payload. ``register_exception_handlers`` renders them (and request
validation failures / unexpected exceptions) as::

    {"error_code": "...", "message": "...", "details": {...}}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BillingError(Exception):
    status_code = 400
    error_code = "BAD_REQUEST"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(BillingError):
    status_code = 404
    error_code = "NOT_FOUND"


class UnprocessableError(BillingError):
    """Business rule violation (no charges, multi-currency, void state)."""

    status_code = 422
    error_code = "UNPROCESSABLE"


class IntegrityViolationError(BillingError):
    """Stored data contradicts an invariant. Always a bug, never user error."""

    status_code = 500
    error_code = "INTERNAL"


async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            {
                "error_code": "VALIDATION_ERROR",
                "message": "Invalid request",
                "details": {"issues": exc.errors()},
            }
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_SERVER_ERROR",
            "message": "Something went wrong",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, billing_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, validation_error_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_error_handler)
