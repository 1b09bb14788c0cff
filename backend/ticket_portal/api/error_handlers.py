"""Error Handlers — global exception handlers for the portal API.

Invariants:
    - TicketPortalError → structured JSON with error code, message, severity
    - AuthenticationError responses carry WWW-Authenticate: Bearer
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (TicketPortalError), validation (Pydantic), catch-all (Exception)
    - Gate failures are ordinary TicketPortalErrors: the prefix gate renders them
      through portal_error_response, so every rejection shares one envelope
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ticket_portal.core.errors import (
    AuthenticationError, ErrorSeverity, TicketPortalError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_portal_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def portal_error_response(request: Request, exc: TicketPortalError) -> JSONResponse:
    """Render a TicketPortalError as the structured envelope for this request."""
    exc.context.path = request.url.path
    exc.context.route_group = getattr(request.state, "route_group", None)
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"TicketPortalError: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if isinstance(exc, AuthenticationError) else None
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_response(),
        headers=headers,
    )


def _register_portal_error_handler(app: FastAPI) -> None:
    """Register portal domain/infrastructure error handler."""

    @app.exception_handler(TicketPortalError)
    async def portal_error_handler(request: Request, exc: TicketPortalError):
        return portal_error_response(request, exc)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
