"""API test fixtures — app with spy routers and stub gate stages + httpx client.

Invariants:
    - Every external router records each handler invocation in `calls`
    - Spy routers expose GET /ping and POST /drafts (body model); gated ones add GET /whoami
    - Stub identity accepts "Bearer good" and "Bearer denied"; anything else is 401
    - Stub stats check rejects the identity behind "Bearer denied" with 403
    - `stages` records which gate stages ran, in order

Design Decisions:
    - Spies on the routers, not mocks of FastAPI: the real gate wiring is exercised
    - ASGITransport: no socket, lifespan not run (the datastore is never touched)
"""

import pytest
from fastapi import APIRouter, Depends
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from ticket_portal.api.auth_gate import current_identity
from ticket_portal.api.collaborators import Collaborators
from ticket_portal.config import ServiceConfig
from ticket_portal.core.domain_types import Identity
from ticket_portal.core.errors import AuthenticationError, AuthorizationError
from ticket_portal.main import create_app

FRONTEND = "http://portal.test"

_TOKENS = {
    "good": Identity(subject="user-1", claims={"role": "agent"}),
    "denied": Identity(subject="user-over-quota"),
}


class _TicketDraft(BaseModel):
    subject: str
    priority: int


def _spy_router(name: str, calls: list, gated: bool) -> APIRouter:
    router = APIRouter()

    @router.get("/ping")
    async def ping():
        calls.append(name)
        return {"group": name}

    @router.post("/drafts")
    async def create_draft(draft: _TicketDraft):
        calls.append(name)
        return draft.model_dump()

    if gated:
        @router.get("/whoami")
        async def whoami(identity: Identity = Depends(current_identity)):
            calls.append(name)
            return {"subject": identity.subject}

    return router


@pytest.fixture
def calls():
    return []


@pytest.fixture
def stages():
    return []


@pytest.fixture
def collaborators(calls, stages):
    async def verify_identity(request):
        stages.append("identity")
        scheme, _, token = request.headers.get("authorization", "").partition(" ")
        if scheme != "Bearer" or token not in _TOKENS:
            raise AuthenticationError("Invalid token")
        return _TOKENS[token]

    async def validate_stats(identity, request):
        stages.append("stats")
        if identity.subject == "user-over-quota":
            raise AuthorizationError("Quota exceeded")

    return Collaborators(
        verify_identity=verify_identity,
        validate_stats=validate_stats,
        auth_router=_spy_router("auth", calls, gated=False),
        otp_router=_spy_router("otp", calls, gated=True),
        ticket_router=_spy_router("ticket", calls, gated=True),
        query_router=_spy_router("query", calls, gated=False),
    )


@pytest.fixture
def config():
    return ServiceConfig(_env_file=None, frontend_base_url=FRONTEND)


@pytest.fixture
def app(config, collaborators):
    return create_app(config, collaborators)


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
