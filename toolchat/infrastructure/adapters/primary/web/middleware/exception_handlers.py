"""
Centralized exception handlers for the FastAPI application.

Domain exceptions are mapped to HTTP responses with one consistent error body:

    {"error": {"type", "message", "error_id", "retryable", "details"?}}

Usage:
    app = FastAPI()
    configure_exception_handlers(app)
"""

import logging
import traceback
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from toolchat.domain.exceptions import (
    EntityNotFoundError,
    MCPError,
    RepositoryError,
    TurnConfigurationError,
)
from toolchat.domain.shared_kernel import DomainException

logger = logging.getLogger(__name__)


class ErrorResponse:
    """Standard error response format."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        message: str,
        error_id: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.message = message
        self.error_id = error_id or str(uuid.uuid4())
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        response: dict[str, Any] = {
            "error": {
                "type": self.error_type,
                "message": self.message,
                "error_id": self.error_id,
                "retryable": self.retryable,
            }
        }
        if self.details:
            response["error"]["details"] = self.details
        return response

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


def _reject(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    log_message: str,
    level: int = logging.WARNING,
    **kwargs: Any,
) -> JSONResponse:
    error_id = str(uuid.uuid4())
    logger.log(level, "%s - error_id=%s, path=%s", log_message, error_id, request.url.path)
    return ErrorResponse(status_code, error_type, message, error_id=error_id, **kwargs).to_response()


async def turn_configuration_handler(
    request: Request, exc: TurnConfigurationError
) -> JSONResponse:
    """Rejected turn requests - status taken from the exception class (400/401/403)."""
    return _reject(
        request,
        exc.status_code,
        type(exc).__name__.removesuffix("Error"),
        exc.message,
        f"Turn rejected: {exc.message}",
    )


async def entity_not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    """Handle entity not found errors - 404."""
    return _reject(
        request,
        404,
        "EntityNotFound",
        str(exc),
        f"Entity not found: {exc.entity_type}[{exc.entity_id}]",
        details={"entity_type": exc.entity_type, "entity_id": exc.entity_id},
    )


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Storage failures - 500, with the cause kept out of the response body."""
    return _reject(
        request,
        500,
        "RepositoryError",
        "A storage error occurred. Please try again.",
        f"Repository error: {exc}",
        level=logging.ERROR,
        retryable=True,
    )


async def mcp_error_handler(request: Request, exc: MCPError) -> JSONResponse:
    """Tool-server errors that escaped the turn - 502 Bad Gateway."""
    return _reject(
        request,
        502,
        "MCPError",
        exc.message,
        f"MCP error: {exc}",
        level=logging.ERROR,
        details=exc.details,
        retryable=True,
    )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Handle generic domain exceptions - 400 Bad Request."""
    return _reject(request, 400, "DomainError", str(exc), f"Domain exception: {exc}")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions - 500 Internal Server Error."""
    return _reject(
        request,
        500,
        "InternalServerError",
        "An unexpected error occurred.",
        f"Unhandled exception: {exc}\n{traceback.format_exc()}",
        level=logging.ERROR,
    )


HANDLERS: list[tuple[type[Exception], Any]] = [
    # Specific before generic
    (TurnConfigurationError, turn_configuration_handler),
    (EntityNotFoundError, entity_not_found_handler),
    (RepositoryError, repository_error_handler),
    (MCPError, mcp_error_handler),
    (DomainException, domain_exception_handler),
    (Exception, unhandled_exception_handler),
]


def configure_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the application."""
    for exc_class, handler in HANDLERS:
        app.add_exception_handler(exc_class, handler)

    logger.info("Configured %d exception handlers", len(HANDLERS))
