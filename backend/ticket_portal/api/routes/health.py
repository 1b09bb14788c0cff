"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health-check always returns 200 with the fixed liveness payload, no auth
    - GET /health-check/ready returns 503 if the datastore does not answer a ping

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
    - No prefix on the router: the route table owns the /health-check mount point
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import ticket_portal.infrastructure.datastore as datastore_module

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])

LIVENESS_PAYLOAD = {"message": "Yeah, I'm Alive!!"}


@router.get("", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return LIVENESS_PAYLOAD


@router.get("/ready")
async def readiness_check():
    """Readiness probe — includes datastore connectivity."""
    store = datastore_module.datastore
    db_ok = await store.health_check() if store else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "datastore_unavailable",
            },
        )
    return {"status": "ready", "checks": {"datastore": "healthy"}}
