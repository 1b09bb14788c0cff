"""Startup State — pure state machine for the fail-fast startup lifecycle.

Invariants:
    - INIT → CONFIG_VALIDATED → CONNECTING → LISTENING is the only path to LISTENING
    - FAILED and LISTENING are terminal: no edge leaves them (no retry, no restart)
    - Every transition is recorded in history, in order

Design Decisions:
    - Dataclass with explicit edge table: pure, deterministic, testable without mocks
      (ADR: ExMA Functional Core)
    - Illegal edges raise instead of returning error dicts: a bad transition is a
      programming error in the sequencer, never a user-facing condition
"""

from dataclasses import dataclass, field

from ticket_portal.core.domain_types import StartupState
from ticket_portal.core.errors import InvalidStartupTransitionError

_ALLOWED: dict[StartupState, frozenset[StartupState]] = {
    StartupState.INIT: frozenset(
        {StartupState.CONFIG_VALIDATED, StartupState.FAILED},
    ),
    StartupState.CONFIG_VALIDATED: frozenset(
        {StartupState.CONNECTING, StartupState.FAILED},
    ),
    StartupState.CONNECTING: frozenset(
        {StartupState.LISTENING, StartupState.FAILED},
    ),
    StartupState.LISTENING: frozenset(),
    StartupState.FAILED: frozenset(),
}


def can_transition(current: StartupState, target: StartupState) -> bool:
    return target in _ALLOWED[current]


@dataclass
class StartupLifecycle:
    """Tracks where the process is in its startup sequence — no IO."""

    state: StartupState = StartupState.INIT
    history: list[StartupState] = field(
        default_factory=lambda: [StartupState.INIT],
    )

    @property
    def is_terminal(self) -> bool:
        return not _ALLOWED[self.state]

    @property
    def may_bind_listener(self) -> bool:
        """Listener binding is legal only after the datastore acknowledged the connection."""
        return self.state == StartupState.LISTENING

    def advance(self, target: StartupState) -> None:
        if not can_transition(self.state, target):
            raise InvalidStartupTransitionError(self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def fail(self) -> None:
        """Move to FAILED from any non-terminal state."""
        self.advance(StartupState.FAILED)
