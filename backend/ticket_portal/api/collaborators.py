"""Collaborators — the external routers and gate stages the portal composes.

Invariants:
    - Every route group except health resolves to exactly one external APIRouter
    - A configured import path that does not resolve to an APIRouter is a fatal ConfigurationError
    - Unconfigured groups get an empty router: the prefix is mounted, every sub-path 404s

Design Decisions:
    - "module:attribute" import paths (uvicorn convention) let a deployment plug in
      domain handlers through env vars without editing this package
    - Dataclass over registry: the full set of collaborators is visible in one place
"""

import importlib
import logging
from dataclasses import dataclass, field

from fastapi import APIRouter

from ticket_portal.api.identity import AccountStatsValidator, JWTIdentityVerifier
from ticket_portal.config import ServiceConfig
from ticket_portal.core.collaborator_protocols import IdentityVerifier, StatsValidator
from ticket_portal.core.errors import ConfigurationError
from ticket_portal.core.route_table import RouteGroup

logger = logging.getLogger(__name__)


def load_router(import_path: str, setting: str) -> APIRouter:
    """Resolve "package.module:router" to an APIRouter instance."""
    module_name, _, attribute = import_path.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"{setting} must look like 'module:attribute', got {import_path!r}",
            setting,
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(
            f"{setting}: cannot import {module_name!r} ({e})", setting,
        ) from e
    router = getattr(module, attribute, None)
    if not isinstance(router, APIRouter):
        raise ConfigurationError(
            f"{setting}: {import_path!r} is not an APIRouter", setting,
        )
    return router


@dataclass
class Collaborators:
    """External handlers per route group plus the two auth gate stages."""

    verify_identity: IdentityVerifier
    validate_stats: StatsValidator
    auth_router: APIRouter = field(default_factory=APIRouter)
    otp_router: APIRouter = field(default_factory=APIRouter)
    ticket_router: APIRouter = field(default_factory=APIRouter)
    query_router: APIRouter = field(default_factory=APIRouter)

    def router_for(self, group: RouteGroup) -> APIRouter:
        router = getattr(self, f"{group.name}_router", None)
        if router is None:
            raise ConfigurationError(
                f"No handler registered for route group {group.name!r}",
                f"{group.name}_router",
            )
        return router

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "Collaborators":
        routers = {}
        for setting in ("auth_router", "otp_router", "ticket_router", "query_router"):
            import_path = getattr(config, setting)
            if import_path:
                routers[setting] = load_router(import_path, setting)
            else:
                logger.warning(f"{setting} not configured; mounting empty router")
        return cls(
            verify_identity=JWTIdentityVerifier(
                config.jwt_secret, config.jwt_algorithm,
            ),
            validate_stats=AccountStatsValidator(),
            **routers,
        )
