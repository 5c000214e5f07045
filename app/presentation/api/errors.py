"""Maps the domain error taxonomy onto HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...domain.errors import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    TokenError,
    ValidationError,
)
from .responses import error

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"
INTERNAL_ERROR_MESSAGE = "Internal server error"


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, TokenError):
        logger.info("Token rejected on %s: %s", request.url.path, exc.reason.value)
        return error(status.HTTP_400_BAD_REQUEST, exc.kind, INVALID_TOKEN_MESSAGE)
    if isinstance(exc, ValidationError):
        return error(status.HTTP_400_BAD_REQUEST, exc.kind, exc.message)
    if isinstance(exc, AuthenticationError):
        return error(
            status.HTTP_401_UNAUTHORIZED,
            exc.kind,
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, AuthorizationError):
        return error(status.HTTP_403_FORBIDDEN, exc.kind, exc.message)
    if isinstance(exc, NotFoundError):
        return error(status.HTTP_404_NOT_FOUND, exc.kind, exc.message)
    logger.error("Internal error on %s %s", request.method, request.url.path, exc_info=exc)
    return error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.kind, INTERNAL_ERROR_MESSAGE)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(item.get("loc", ())), "msg": item.get("msg", "")}
        for item in exc.errors()
    ]
    return error(status.HTTP_400_BAD_REQUEST, ValidationError.kind, "Invalid request", details)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal", INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
