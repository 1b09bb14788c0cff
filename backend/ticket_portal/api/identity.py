"""Default Gate Stages — bearer JWT identity verifier and account stats validator.

Invariants:
    - Identity verifier reads ONLY the Authorization header; missing/invalid → AuthenticationError
    - Stats validator runs only with an Identity stage 1 produced
    - Neither stage writes to the datastore

Design Decisions:
    - PyJWT decode with a single pinned algorithm: no "alg" negotiation from the token
    - Both stages are callables matching core/collaborator_protocols.py, so a deployment
      can swap either without touching the gate wiring
"""

import logging
from collections.abc import Callable

import jwt
from bson import ObjectId

from ticket_portal.core.collaborator_protocols import RequestLike
from ticket_portal.core.domain_types import Identity
from ticket_portal.core.errors import AuthenticationError, AuthorizationError
from ticket_portal.infrastructure.datastore import MongoDatastore, get_datastore

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the credential from an "Authorization: Bearer <token>" header."""
    if not authorization:
        raise AuthenticationError("Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Malformed authorization header")
    return token.strip()


class JWTIdentityVerifier:
    """Stage 1: verify an HMAC-signed JWT and expose its subject as the Identity."""

    def __init__(self, secret: str | None, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    async def __call__(self, request: RequestLike) -> Identity:
        token = extract_bearer_token(request.headers.get("authorization"))
        if not self.secret:
            logger.error("JWT_SECRET not configured; rejecting bearer token")
            raise AuthenticationError("Identity verification unavailable")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token") from None

        subject = claims.get("sub") or claims.get("id") or claims.get("_id")
        if not subject:
            raise AuthenticationError("Token carries no subject")
        return Identity(subject=str(subject), claims=claims)


class AccountStatsValidator:
    """Stage 2: the identity must own an account that is not blocked."""

    def __init__(
        self,
        collection: str = "users",
        datastore_provider: Callable[[], MongoDatastore] = get_datastore,
    ):
        self.collection = collection
        self._datastore_provider = datastore_provider

    async def __call__(self, identity: Identity, request: RequestLike) -> None:
        users = self._datastore_provider().db[self.collection]
        key = identity.subject
        if ObjectId.is_valid(key):
            key = ObjectId(key)
        account = await users.find_one({"_id": key})
        if account is None:
            raise AuthorizationError("Account not found")
        if account.get("blocked"):
            logger.warning(f"Blocked account {identity.subject} denied")
            raise AuthorizationError("Account is blocked")
