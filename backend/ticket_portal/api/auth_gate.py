"""Auth Gate — two-stage prefix gate in front of the gated route groups.

Invariants:
    - Every request whose path falls under a gated prefix runs the gate, whether or
      not a route matches it (unknown sub-path, wrong method, bare prefix, SPA path)
    - Stage 1 (identity) ALWAYS runs before stage 2 (stats); a failing stage ends the request
    - Neither a route handler nor the SPA fallback sees a request the gate rejected
    - The verified Identity is request-scoped: attached to request.state.identity only

Design Decisions:
    - Prefix middleware over router-level Depends: dependencies only run once a route
      matched, the prefix gate runs before routing
    - Gate membership comes from core/route_table.py (gated_groups + match_route_group),
      the same first-match rule the request logs use
    - Rejections rendered by error_handlers.portal_error_response: same envelope and
      WWW-Authenticate header as errors raised inside handlers
    - Closures over module-level functions: each app gets its own stage callables,
      so tests compose apps with stub stages side by side
"""

import logging

from fastapi import FastAPI, Request

from ticket_portal.api.error_handlers import portal_error_response
from ticket_portal.core.collaborator_protocols import IdentityVerifier, StatsValidator
from ticket_portal.core.domain_types import Identity
from ticket_portal.core.errors import TicketPortalError
from ticket_portal.core.route_table import (
    ROUTE_GROUPS, RouteGroup, gated_groups, match_route_group,
)

logger = logging.getLogger(__name__)


def register_auth_gate(
    app: FastAPI,
    verify_identity: IdentityVerifier,
    validate_stats: StatsValidator,
    groups: tuple[RouteGroup, ...] = ROUTE_GROUPS,
) -> None:
    """Run identity then stats verification for every path under a gated prefix."""
    gated = gated_groups(groups)

    @app.middleware("http")
    async def auth_gate(request: Request, call_next):
        group = match_route_group(request.url.path, groups)
        if group not in gated:
            return await call_next(request)
        try:
            identity = await verify_identity(request)
            request.state.identity = identity
            await validate_stats(identity, request)
        except TicketPortalError as exc:
            return portal_error_response(request, exc)
        logger.debug(
            f"Gate passed for {identity.subject}",
            extra={"path": request.url.path, "route_group": group.name},
        )
        return await call_next(request)


def current_identity(request: Request) -> Identity:
    """Dependency for gated handlers that need the verified caller."""
    return request.state.identity
