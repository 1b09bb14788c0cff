"""Readiness Probe — /health-check/ready reflects datastore connectivity."""

from unittest.mock import AsyncMock

import ticket_portal.infrastructure.datastore as datastore_module


class _FakeStore:
    def __init__(self, healthy: bool):
        self.health_check = AsyncMock(return_value=healthy)


async def test_ready_when_datastore_answers(client, monkeypatch):
    monkeypatch.setattr(datastore_module, "datastore", _FakeStore(True))
    res = await client.get("/health-check/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["datastore"] == "healthy"


async def test_not_ready_when_datastore_down(client, monkeypatch):
    monkeypatch.setattr(datastore_module, "datastore", _FakeStore(False))
    res = await client.get("/health-check/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "datastore_unavailable"


async def test_not_ready_before_startup(client):
    res = await client.get("/health-check/ready")
    assert res.status_code == 503
