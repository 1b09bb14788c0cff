"""Boundary Protocols — contracts for the collaborators the portal composes.

Invariants:
    - Core NEVER imports from api/ or infrastructure/ — dependency arrows point inward only
    - Identity verification signals failure by raising AuthenticationError
    - Stats validation signals failure by raising AuthorizationError
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy (ADR: ExMA anti-pattern)
    - RequestLike instead of starlette.Request: keeps core free of framework imports
"""

from collections.abc import Mapping
from typing import Any, Protocol

from ticket_portal.core.domain_types import Identity


class RequestLike(Protocol):
    """The slice of an HTTP request a gate stage is allowed to read."""
    headers: Mapping[str, str]


class IdentityVerifier(Protocol):
    """Stage 1 of the auth gate — turns a bearer credential into an Identity."""
    async def __call__(self, request: RequestLike) -> Identity: ...


class StatsValidator(Protocol):
    """Stage 2 of the auth gate — authorization/quota predicate for an Identity."""
    async def __call__(self, identity: Identity, request: RequestLike) -> None: ...


class DatastoreClient(Protocol):
    """Structural contract for the async datastore client (pymongo AsyncMongoClient)."""
    admin: Any

    def __getitem__(self, name: str) -> Any: ...
    async def close(self) -> None: ...


class DatastoreClientFactory(Protocol):
    def __call__(self, uri: str, **options: Any) -> DatastoreClient: ...
