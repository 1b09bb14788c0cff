"""Startup Sequencer — fail-fast ordering of config, datastore and listener.

Tests cover:
    - Missing MONGODB_URI → exit 1, no connection attempt, no listener
    - Connection failure → exit 1, no listener
    - TLS policy failure → exit 1, no connection attempt
    - Success → listener built on the configured/default port only after connect
    - main() exits 1 on invalid configuration
    - Binding is refused unless the lifecycle reached LISTENING
    - "Server listening" is logged only after uvicorn bound the socket

Design Decisions:
    - Fake datastore/server factories record events into one list, so ordering
      is asserted directly instead of inferred
"""

import logging
import ssl
from types import SimpleNamespace

import pytest
import uvicorn
from fastapi import FastAPI

import ticket_portal.server as server_module
from ticket_portal.config import ServiceConfig, get_config
from ticket_portal.core.domain_types import StartupState
from ticket_portal.core.errors import (
    DatastoreConnectionError, InvalidStartupTransitionError, TransportSecurityError,
)
from ticket_portal.infrastructure.transport_security import (
    TLS_VERSIONS, TransportSecurityPolicy,
)
from ticket_portal.server import StartupSequencer

URI = "mongodb://db.test:27017"


class _FakeStore:
    def __init__(self, events, fail):
        self.events = events
        self.fail = fail

    async def connect(self):
        self.events.append("connect")
        if self.fail:
            raise DatastoreConnectionError("connection refused")
        self.events.append("connected")


class _FakeServer:
    def __init__(self, events):
        self.events = events

    async def serve(self):
        self.events.append("serve")


@pytest.fixture(autouse=True)
def _tls13_runtime(monkeypatch):
    """Pin the probed runtime floor so results do not depend on the local OpenSSL."""
    def from_name(cls, name):
        return cls(
            TLS_VERSIONS[name],
            context_factory=lambda: SimpleNamespace(
                minimum_version=ssl.TLSVersion.TLSv1_3,
            ),
        )

    monkeypatch.setattr(
        TransportSecurityPolicy, "from_name", classmethod(from_name),
    )


@pytest.fixture
def events():
    return []


def _sequencer(events, config, fail_connect=False):
    stores = []
    servers = []

    def datastore_factory(uri, db_name, policy):
        events.append(("datastore", uri, db_name, policy.applied))
        store = _FakeStore(events, fail_connect)
        stores.append(store)
        return store

    def server_factory(app, host, port):
        events.append(("bind", host, port))
        server = _FakeServer(events)
        servers.append(server)
        return server

    seq = StartupSequencer(
        config,
        app_factory=lambda cfg: FastAPI(),
        datastore_factory=datastore_factory,
        server_factory=server_factory,
    )
    return seq, stores, servers


async def test_missing_uri_exits_without_connecting_or_binding(events):
    seq, stores, servers = _sequencer(events, ServiceConfig(_env_file=None))
    with pytest.raises(SystemExit) as exc:
        await seq.run()
    assert exc.value.code == 1
    assert stores == []
    assert servers == []
    assert seq.state == StartupState.FAILED
    assert seq.lifecycle.history == [StartupState.INIT, StartupState.FAILED]


async def test_connection_failure_exits_without_binding(events):
    config = ServiceConfig(_env_file=None, mongodb_uri=URI)
    seq, stores, servers = _sequencer(events, config, fail_connect=True)
    with pytest.raises(SystemExit) as exc:
        await seq.run()
    assert exc.value.code == 1
    assert len(stores) == 1
    assert servers == []
    assert seq.state == StartupState.FAILED
    assert StartupState.LISTENING not in seq.lifecycle.history


async def test_tls_policy_failure_exits_before_connecting(events, monkeypatch):
    def refuse(self):
        raise TransportSecurityError("floor too low")

    monkeypatch.setattr(server_module.TransportSecurityPolicy, "apply", refuse)
    config = ServiceConfig(_env_file=None, mongodb_uri=URI)
    seq, stores, servers = _sequencer(events, config)
    with pytest.raises(SystemExit):
        await seq.run()
    assert stores == []
    assert servers == []
    assert seq.lifecycle.history[-2:] == [StartupState.CONNECTING, StartupState.FAILED]


async def test_success_binds_default_port_after_connect(events):
    config = ServiceConfig(_env_file=None, mongodb_uri=URI)
    seq, stores, servers = _sequencer(events, config)
    await seq.run()
    assert events == [
        ("datastore", URI, "ticketPortal", True),
        "connect",
        "connected",
        ("bind", "0.0.0.0", 3000),
        "serve",
    ]
    assert seq.state == StartupState.LISTENING


async def test_success_binds_configured_port(events):
    config = ServiceConfig(_env_file=None, mongodb_uri=URI, port=8080)
    seq, _, _ = _sequencer(events, config)
    await seq.run()
    assert ("bind", "0.0.0.0", 8080) in events


def test_main_exits_on_invalid_configuration(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setattr(server_module, "setup_logging", lambda *a, **kw: None)
    get_config.cache_clear()
    try:
        with pytest.raises(SystemExit) as exc:
            server_module.main()
        assert exc.value.code == 1
    finally:
        get_config.cache_clear()


def test_main_exits_when_uri_missing(monkeypatch):
    monkeypatch.setattr(server_module, "setup_logging", lambda *a, **kw: None)
    get_config.cache_clear()
    try:
        with pytest.raises(SystemExit) as exc:
            server_module.main()
        assert exc.value.code == 1
    finally:
        get_config.cache_clear()


def test_bind_refused_before_listening(events):
    config = ServiceConfig(_env_file=None, mongodb_uri=URI)
    seq, _, servers = _sequencer(events, config)
    seq.lifecycle.advance(StartupState.CONFIG_VALIDATED)
    seq.lifecycle.advance(StartupState.CONNECTING)
    with pytest.raises(InvalidStartupTransitionError):
        seq._bind(FastAPI())
    assert servers == []


# ─── PortalServer ────────────────────────────────────────────────

@pytest.mark.parametrize("bound", [True, False])
async def test_listening_logged_only_once_bound(monkeypatch, caplog, bound):
    async def fake_startup(self, sockets=None):
        self.started = bound

    monkeypatch.setattr(uvicorn.Server, "startup", fake_startup)
    caplog.set_level(logging.INFO, logger="ticket_portal.server")
    server = server_module.build_server(FastAPI(), "127.0.0.1", 3000)
    assert isinstance(server, server_module.PortalServer)
    await server.startup()
    logged = "Server listening on port: 3000" in caplog.messages
    assert logged is bound
