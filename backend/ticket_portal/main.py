"""Ticket Portal API — FastAPI application factory.

Invariants:
    - Route groups registered explicitly, in declared order (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map TicketPortalError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Creating the app opens no connection: the StartupSequencer owns the datastore

Design Decisions:
    - Factory over module-level app: the sequencer builds the app before connecting,
      tests build apps with stub collaborators
    - Lifespan only closes the datastore on shutdown; it never connects, so uvicorn's
      startup cannot race the fail-fast sequence
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import ticket_portal.infrastructure.datastore as datastore_module
from ticket_portal.api.collaborators import Collaborators
from ticket_portal.api.error_handlers import register_error_handlers
from ticket_portal.api.middleware import register_cors, register_request_logging
from ticket_portal.api.route_composer import compose_routes
from ticket_portal.config import ServiceConfig, get_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info("Ticket Portal API started")
    yield
    logger.info("Ticket Portal API shutting down")
    if datastore_module.datastore:
        await datastore_module.datastore.close()


def create_app(
    config: ServiceConfig | None = None,
    collaborators: Collaborators | None = None,
) -> FastAPI:
    config = config or get_config()
    collaborators = collaborators or Collaborators.from_config(config)

    app = FastAPI(
        title="Ticket Portal API", version="1.0.0", lifespan=lifespan,
    )
    # Middleware added last runs first: CORS, then request logging, then the gate
    compose_routes(app, collaborators, static_dir=config.static_dir)
    register_request_logging(app)
    register_cors(app, config.frontend_base_url)
    register_error_handlers(app)
    return app
