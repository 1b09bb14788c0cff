"""Request Middleware — CORS policy and route-group tagging for request logs.

Invariants:
    - CORS allows exactly one origin: FRONTEND_BASE_URL
    - Every request gets request.state.route_group (group name or None) before routing
    - Tagging never short-circuits: rejecting requests is api/auth_gate.py's job

Design Decisions:
    - Pure matcher from core/route_table.py so logs agree with mount order
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ticket_portal.core.route_table import match_route_group

logger = logging.getLogger(__name__)


def register_cors(app: FastAPI, allowed_origin: str) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[allowed_origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )


def register_request_logging(app: FastAPI) -> None:
    """Tag each request with its route group and log the outcome."""

    @app.middleware("http")
    async def tag_route_group(request: Request, call_next):
        group = match_route_group(request.url.path)
        request.state.route_group = group.name if group else None
        response = await call_next(request)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "route_group": request.state.route_group,
            },
        )
        return response
