"""Datastore Manager — MongoDB client lifecycle with fail-fast connect and health checks.

Invariants:
    - ConnectionState starts DISCONNECTED and only moves forward; connect() is single-shot
    - TransportSecurityPolicy is applied inside connect(), before the client is built
    - connect() resolves only after the server acknowledged a ping
    - All driver exceptions mapped to DatastoreConnectionError / DatastoreError (core/errors.py)

Design Decisions:
    - Singleton datastore initialized by the StartupSequencer, not at import time
      (ADR: no global import side effects)
    - pymongo AsyncMongoClient is lazy, so an explicit ping is the connection acknowledgement
    - No retry, no connect timeout of our own: the driver's server selection decides
"""

import logging
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from ticket_portal.core.collaborator_protocols import (
    DatastoreClient, DatastoreClientFactory,
)
from ticket_portal.core.domain_types import ConnectionState
from ticket_portal.core.errors import DatastoreConnectionError, DatastoreError
from ticket_portal.infrastructure.transport_security import TransportSecurityPolicy

logger = logging.getLogger(__name__)


class MongoDatastore:
    """Owns the single shared MongoDB client for the process."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        tls_policy: TransportSecurityPolicy,
        client_factory: DatastoreClientFactory = AsyncMongoClient,
    ):
        self.uri = uri
        self.db_name = db_name
        self.tls_policy = tls_policy
        self._client_factory = client_factory
        self.client: DatastoreClient | None = None
        self.state = ConnectionState.DISCONNECTED

    async def connect(self) -> None:
        """Apply the TLS floor, build the client and wait for the server's ack."""
        if self.state != ConnectionState.DISCONNECTED:
            raise DatastoreConnectionError(
                f"connect() called in state {self.state.value}",
            )
        self.state = ConnectionState.CONNECTING
        try:
            self.tls_policy.apply()
            self.client = self._client_factory(self.uri)
            await self.client.admin.command("ping")
        except PyMongoError as e:
            self.state = ConnectionState.FAILED
            logger.error(
                f"MongoDB connection error: {e}",
                extra={"db_name": self.db_name},
            )
            raise DatastoreConnectionError(str(e)) from e
        except Exception:
            self.state = ConnectionState.FAILED
            raise
        self.state = ConnectionState.CONNECTED
        logger.info(
            "MongoDB connected successfully", extra={"db_name": self.db_name},
        )

    @property
    def db(self) -> Any:
        if self.client is None or self.state != ConnectionState.CONNECTED:
            raise DatastoreError("Datastore not connected", "access")
        return self.client[self.db_name]

    async def health_check(self) -> bool:
        """Check datastore connectivity (for readiness probes)."""
        if self.client is None or self.state != ConnectionState.CONNECTED:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"Datastore health check failed: {e}")
            return False

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
            logger.info("MongoDB client closed", extra={"db_name": self.db_name})
        self.client = None


# Singleton (initialized on startup)
datastore: MongoDatastore | None = None


def init_datastore(
    uri: str, db_name: str, tls_policy: TransportSecurityPolicy, **kwargs,
) -> MongoDatastore:
    global datastore
    datastore = MongoDatastore(uri, db_name, tls_policy, **kwargs)
    return datastore


def get_datastore() -> MongoDatastore:
    """FastAPI dependency for the connected datastore."""
    if not datastore:
        raise DatastoreError("Datastore not initialized", "access")
    return datastore
