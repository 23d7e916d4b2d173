"""
Global exception handling for FastAPI.

Assigns a request id to every request, logs unhandled exceptions with
request context, and returns JSON error responses that never expose raw
backend errors outside debug mode.
"""

import logging
import traceback
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.exceptions import ChatAppError, NotAuthorizedError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _request_context(request: Request) -> dict:
    """Collect loggable request context."""
    context = {
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else "unknown",
    }
    if hasattr(request.state, "request_id"):
        context["request_id"] = request.state.request_id
    return context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Attach a request id to request state and echo it on the response.

    Reuses the caller's X-Request-ID when one is sent.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(NotAuthorizedError)
    async def not_authorized_handler(request: Request, exc: NotAuthorizedError) -> JSONResponse:
        logger.warning(
            f"Authorization denied in {request.method} {request.url.path}: "
            f"user={exc.user_id} chat={exc.chat_id}",
            extra=_request_context(request),
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": exc.message},
        )

    @app.exception_handler(ChatAppError)
    async def chat_app_error_handler(request: Request, exc: ChatAppError) -> JSONResponse:
        context = _request_context(request)
        logger.error(
            f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}",
            exc_info=True,
            extra=context,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An internal server error occurred. Please try again later.",
                "request_id": context.get("request_id"),
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """
        Handler for ValueError exceptions (400 Bad Request).

        These are typically validation errors that should not trigger alerts.
        """
        logger.warning(f"ValueError in {request.method} {request.url.path}: {exc}")

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "type": "ValidationError"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for all unhandled exceptions.
        """
        context = _request_context(request)
        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}",
            exc_info=True,
            extra=context,
        )

        error_detail = None
        if settings.debug:
            error_detail = {
                "type": type(exc).__name__,
                "traceback": traceback.format_exc(),
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An internal server error occurred. Please try again later.",
                "debug": error_detail,
                "request_id": context.get("request_id"),
            },
        )

    logger.info("Global exception handlers registered")


def setup_error_monitoring(app: FastAPI) -> None:
    """
    Setup request context tracking and exception handlers.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestContextMiddleware)
    setup_exception_handlers(app)

    logger.info("Error monitoring initialized")
