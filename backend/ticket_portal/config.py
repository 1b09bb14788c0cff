"""Service Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - MONGODB_URI has no default: absence surfaces as None so startup can fail fast
    - get_config() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box against a local frontend
    - static_dir toggles the SPA deployment mode instead of a second entry point
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_TLS_VERSIONS = ("TLSv1.2", "TLSv1.3")


class ServiceConfig(BaseSettings):
    """Service settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Listener
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS
    frontend_base_url: str = "http://localhost:3000"

    # Datastore
    mongodb_uri: str | None = None
    mongodb_db_name: str = "ticketPortal"
    # TLSv1.3 is verified, not enforced: it only passes where the OpenSSL config
    # already raises the default floor (MinProtocol = TLSv1.3), otherwise startup fails
    tls_min_version: str = "TLSv1.2"

    @field_validator("mongodb_uri", mode="before")
    @classmethod
    def blank_uri_is_absent(cls, v: str | None) -> str | None:
        """An empty MONGODB_URI counts as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("tls_min_version")
    @classmethod
    def check_tls_version(cls, v: str) -> str:
        if v not in SUPPORTED_TLS_VERSIONS:
            raise ValueError(
                f"tls_min_version must be one of {SUPPORTED_TLS_VERSIONS}, got {v!r}",
            )
        return v

    # SPA bundle — None means API-only deployment
    static_dir: str | None = None

    # Default identity verifier
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"

    # External route handlers as "module:attribute" import paths
    auth_router: str | None = None
    otp_router: str | None = None
    ticket_router: str | None = None
    query_router: str | None = None

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_config() -> ServiceConfig:
    return ServiceConfig()
