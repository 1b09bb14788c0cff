"""Domain Types — states and value types shared across the portal.

Invariants:
    - ConnectionState and StartupState encode every valid lifecycle state — no raw strings
    - Identity is request-scoped: created by the gate, never cached across requests

Design Decisions:
    - str Enums: serialize to JSON and log lines without custom encoders
    - Identity as frozen dataclass: handlers cannot mutate what the gate verified
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NewType


RoutePrefix = NewType("RoutePrefix", str)


class ConnectionState(str, Enum):
    """Datastore connection lifecycle. FAILED is terminal — there is no retry."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class StartupState(str, Enum):
    """Process startup lifecycle driven by the StartupSequencer."""
    INIT = "init"
    CONFIG_VALIDATED = "config_validated"
    CONNECTING = "connecting"
    LISTENING = "listening"
    FAILED = "failed"


@dataclass(frozen=True)
class Identity:
    """Verified caller, attached to request.state by the auth gate."""
    subject: str
    claims: dict[str, Any] = field(default_factory=dict)
