"""Startup Sequencer — fail-fast bootstrap: config → datastore → listener.

Invariants:
    - The listener is never bound before the datastore acknowledged the connection
    - TransportSecurityPolicy is applied before the connection attempt
    - Any startup failure is logged at CRITICAL and exits the process with code 1
    - No retry, no backoff: FAILED is terminal (see core/startup_state.py)
    - "Server listening" is logged only after uvicorn bound the socket

Design Decisions:
    - Programmatic uvicorn.Server over uvicorn.run: serve() is awaited only after
      the connect succeeded, inside the same event loop
    - Collaborating factories injectable: tests drive every edge of the state
      machine without a network
    - Routes are registered on the app before connecting; they only go live when
      the listener binds
"""

import asyncio
import logging
import sys
from collections.abc import Callable
from typing import Any

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from ticket_portal.config import ServiceConfig, get_config
from ticket_portal.core.domain_types import StartupState
from ticket_portal.core.errors import (
    ConfigurationError, InvalidStartupTransitionError, TicketPortalError,
)
from ticket_portal.core.startup_state import StartupLifecycle
from ticket_portal.infrastructure.datastore import MongoDatastore, init_datastore
from ticket_portal.infrastructure.observability import setup_logging
from ticket_portal.infrastructure.transport_security import TransportSecurityPolicy
from ticket_portal.main import create_app

logger = logging.getLogger(__name__)

EXIT_STARTUP_FAILURE = 1


class PortalServer(uvicorn.Server):
    """uvicorn.Server that announces the port once the socket is actually bound."""

    async def startup(self, sockets=None) -> None:
        await super().startup(sockets=sockets)
        if self.started:
            logger.info(
                f"Server listening on port: {self.config.port}",
                extra={"port": self.config.port, "state": StartupState.LISTENING.value},
            )


def build_server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    return PortalServer(
        uvicorn.Config(app, host=host, port=port, log_config=None),
    )


class StartupSequencer:
    """Drives StartupLifecycle through its edges, doing the IO each edge needs."""

    def __init__(
        self,
        config: ServiceConfig,
        app_factory: Callable[[ServiceConfig], FastAPI] = create_app,
        datastore_factory: Callable[..., MongoDatastore] = init_datastore,
        server_factory: Callable[[FastAPI, str, int], Any] = build_server,
    ):
        self.config = config
        self.lifecycle = StartupLifecycle()
        self._app_factory = app_factory
        self._datastore_factory = datastore_factory
        self._server_factory = server_factory
        self.datastore: MongoDatastore | None = None

    @property
    def state(self) -> StartupState:
        return self.lifecycle.state

    async def run(self) -> None:
        """Run the sequence; exits the process on any startup failure."""
        try:
            await self._start()
        except TicketPortalError as e:
            if not self.lifecycle.is_terminal:
                self.lifecycle.fail()
            logger.critical(
                e.message,
                extra={"error_code": e.code, "state": StartupState.FAILED.value},
            )
            raise SystemExit(EXIT_STARTUP_FAILURE) from e

    async def _start(self) -> None:
        app = self._app_factory(self.config)
        uri = self._validate_config()
        self.lifecycle.advance(StartupState.CONFIG_VALIDATED)

        self.lifecycle.advance(StartupState.CONNECTING)
        policy = TransportSecurityPolicy.from_name(self.config.tls_min_version)
        policy.apply()
        self.datastore = self._datastore_factory(
            uri, self.config.mongodb_db_name, policy,
        )
        await self.datastore.connect()

        self.lifecycle.advance(StartupState.LISTENING)
        server = self._bind(app)
        await server.serve()

    def _bind(self, app: FastAPI) -> Any:
        if not self.lifecycle.may_bind_listener:
            raise InvalidStartupTransitionError(
                self.state.value, StartupState.LISTENING.value,
            )
        return self._server_factory(app, self.config.host, self.config.port)

    def _validate_config(self) -> str:
        if not self.config.mongodb_uri:
            raise ConfigurationError(
                "MONGODB_URI environment variable is not defined.",
                "MONGODB_URI",
            )
        return self.config.mongodb_uri


def main() -> None:
    """Console entry point: load config, then hand over to the sequencer."""
    try:
        config = get_config()
    except ValidationError as e:
        setup_logging()
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(EXIT_STARTUP_FAILURE)

    setup_logging(config.log_level, config.log_format)
    asyncio.run(StartupSequencer(config).run())


if __name__ == "__main__":
    main()
