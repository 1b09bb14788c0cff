"""Route Composer — mounts route groups in declared order behind the prefix gate.

Invariants:
    - Groups are included in ROUTE_GROUPS order; Starlette matches in inclusion order
    - The auth gate is registered for the same groups, so gating and mounting never disagree
    - The SPA fallback, when enabled, is mounted after every group
    - Must run before the logging and CORS middleware are registered: the gate has to
      sit innermost so preflights are answered and rejections are logged

Design Decisions:
    - One composition for both deployment modes: static_dir=None is the API-only mode
    - Health router is owned here; every other group's router comes from Collaborators
"""

import logging

from fastapi import FastAPI

from ticket_portal.api.auth_gate import register_auth_gate
from ticket_portal.api.collaborators import Collaborators
from ticket_portal.api.routes import health
from ticket_portal.api.static_fallback import mount_static_fallback
from ticket_portal.core.route_table import HEALTH, ROUTE_GROUPS, RouteGroup

logger = logging.getLogger(__name__)


def compose_routes(
    app: FastAPI,
    collaborators: Collaborators,
    static_dir: str | None = None,
    groups: tuple[RouteGroup, ...] = ROUTE_GROUPS,
) -> None:
    """Gate the gated prefixes, include every route group, then the optional SPA fallback."""
    register_auth_gate(
        app, collaborators.verify_identity, collaborators.validate_stats, groups,
    )
    for group in groups:
        router = health.router if group == HEALTH else collaborators.router_for(group)
        app.include_router(router, prefix=group.prefix)
        logger.info(
            f"Mounted {group.prefix} ({'gated' if group.gated else 'open'})",
            extra={"route_group": group.name},
        )
    if static_dir:
        mount_static_fallback(app, static_dir)
