"""Transport Security Policy — minimum TLS version for the outbound datastore connection.

Invariants:
    - apply() runs before the first datastore connection attempt, never after
    - apply() is idempotent: a second call re-checks nothing and mutates nothing
    - No process-wide state is mutated; the policy travels with the datastore client

Design Decisions:
    - Verify-the-floor over patch-the-floor: pymongo builds its TLS contexts from the
      interpreter's ssl defaults and exposes no minimum-version option, so the policy
      checks the runtime floor and fails startup when it is too low
      (ADR: no global agent mutation)
    - context_factory injectable: tests substitute a context with a lower floor
"""

import logging
import ssl
from collections.abc import Callable

from ticket_portal.core.errors import TransportSecurityError

logger = logging.getLogger(__name__)

TLS_VERSIONS: dict[str, ssl.TLSVersion] = {
    "TLSv1.2": ssl.TLSVersion.TLSv1_2,
    "TLSv1.3": ssl.TLSVersion.TLSv1_3,
}

_RUNTIME_SUPPORT: dict[ssl.TLSVersion, bool] = {
    ssl.TLSVersion.TLSv1_2: ssl.HAS_TLSv1_2,
    ssl.TLSVersion.TLSv1_3: ssl.HAS_TLSv1_3,
}


def _default_client_context() -> ssl.SSLContext:
    return ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)


class TransportSecurityPolicy:
    """Minimum TLS version every outbound secured datastore connection must use."""

    def __init__(
        self,
        minimum_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2,
        context_factory: Callable[[], ssl.SSLContext] = _default_client_context,
    ):
        self.minimum_version = minimum_version
        self._context_factory = context_factory
        self._applied = False

    @classmethod
    def from_name(cls, name: str) -> "TransportSecurityPolicy":
        """Build from a config value such as "TLSv1.2"."""
        try:
            return cls(TLS_VERSIONS[name])
        except KeyError:
            raise TransportSecurityError(
                f"Unsupported minimum TLS version: {name}",
            ) from None

    @property
    def applied(self) -> bool:
        return self._applied

    def apply(self) -> None:
        """Check the runtime can and will negotiate at least minimum_version."""
        if self._applied:
            return
        if not _RUNTIME_SUPPORT.get(self.minimum_version, False):
            raise TransportSecurityError(
                f"ssl runtime does not support {self.minimum_version.name}",
            )
        floor = self._context_factory().minimum_version
        if floor < self.minimum_version:
            raise TransportSecurityError(
                f"Runtime TLS floor {floor.name} is below required "
                f"{self.minimum_version.name}; raise MinProtocol in the OpenSSL "
                "config or lower TLS_MIN_VERSION",
            )
        self._applied = True
        logger.info(
            f"Transport security floor {floor.name} satisfies "
            f"{self.minimum_version.name}",
        )

