"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CityCastError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(CityCastError):
    """A remote API failed, timed out, or returned a payload we cannot parse."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class NotFoundError(CityCastError):
    def __init__(self, city_id: str):
        super().__init__("City not found", status_code=404)
        self.city_id = city_id


class InvalidParameterError(CityCastError):
    def __init__(self, name: str, value: object, allowed: set[str] | None = None):
        message = f"Invalid {name}: {value!r}"
        if allowed:
            message += f". Allowed: {sorted(allowed)}"
        super().__init__(message, status_code=400)


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(CityCastError)
    async def handle_citycast_error(_request: Request, exc: CityCastError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
        )
