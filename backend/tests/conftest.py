"""Root conftest — shared test configuration."""

import os

import pytest

# Ensure tests never pick up a real datastore or signing key from the shell
for _var in ("MONGODB_URI", "JWT_SECRET", "STATIC_DIR", "PORT", "FRONTEND_BASE_URL"):
    os.environ.pop(_var, None)


@pytest.fixture(autouse=True)
def _reset_datastore_singleton(monkeypatch):
    """Every test starts without a process-wide datastore."""
    import ticket_portal.infrastructure.datastore as datastore_module
    monkeypatch.setattr(datastore_module, "datastore", None)
