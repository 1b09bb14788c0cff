"""Route Table — declared mount order and prefix matching for route groups.

Invariants:
    - ROUTE_GROUPS order IS the match precedence (first match wins)
    - Prefix match is segment-aware: /auth matches /auth and /auth/x, never /authors
    - /query is ungated on purpose (public queries) — do not add a gate here
    - All functions are PURE: no IO, no FastAPI imports

Design Decisions:
    - Table in core, routers in api/: the ordering rule is testable without an app
      (ADR: ExMA Functional Core)
    - Pure matcher mirrors Starlette's mount matching so request logs can name the
      group a request fell into, including None for fallback/404 paths
"""

from dataclasses import dataclass

from ticket_portal.core.domain_types import RoutePrefix


@dataclass(frozen=True)
class RouteGroup:
    """A path prefix bound to one handler and an optional gate."""
    name: str
    prefix: RoutePrefix
    gated: bool


AUTH = RouteGroup("auth", RoutePrefix("/auth"), gated=False)
OTP = RouteGroup("otp", RoutePrefix("/otp"), gated=True)
TICKET = RouteGroup("ticket", RoutePrefix("/ticket"), gated=True)
QUERY = RouteGroup("query", RoutePrefix("/query"), gated=False)
HEALTH = RouteGroup("health", RoutePrefix("/health-check"), gated=False)

ROUTE_GROUPS: tuple[RouteGroup, ...] = (AUTH, OTP, TICKET, QUERY, HEALTH)


def prefix_matches(prefix: str, path: str) -> bool:
    """True when path is the prefix itself or lies beneath it."""
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def match_route_group(
    path: str, groups: tuple[RouteGroup, ...] = ROUTE_GROUPS,
) -> RouteGroup | None:
    """Return the first group whose prefix matches, or None for fall-through paths."""
    for group in groups:
        if prefix_matches(group.prefix, path):
            return group
    return None


def gated_groups(
    groups: tuple[RouteGroup, ...] = ROUTE_GROUPS,
) -> tuple[RouteGroup, ...]:
    """Groups the auth gate stands in front of."""
    return tuple(g for g in groups if g.gated)
