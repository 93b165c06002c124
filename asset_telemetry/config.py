"""
Service configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded URLs or credentials.

CHANGELOG:
- 2026-10-09: Add ASSET_LOCK_TTL_S / ASSET_LOCK_WAIT_S (STORY-108)
- 2026-10-06: Add CONNECTOR_TIMEOUT_S (STORY-104)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

from asset_telemetry.auth.bearer import parse_tenant_tokens


class ServiceSettings(BaseSettings):
    """Asset telemetry service configuration.

    Attributes:
        database_url: SQLAlchemy async URL (postgresql+asyncpg://...).
        redis_url: Redis URL used for per-asset retrieval locks.
        tenant_tokens: Comma-separated ``token:tenant_id`` pairs.
        connector_timeout_s: Upper bound in seconds for a single connector
            call (health check or consumption retrieval).
        asset_lock_ttl_s: Expiry of a per-asset retrieval lock in seconds.
        asset_lock_wait_s: How long a retrieval waits for a busy asset lock
            before giving up.
        log_level: Root log level name.
    """

    database_url: str
    redis_url: str
    tenant_tokens: str
    connector_timeout_s: float = 30.0
    asset_lock_ttl_s: float = 60.0
    asset_lock_wait_s: float = 5.0
    log_level: str = "INFO"

    @field_validator("tenant_tokens")
    @classmethod
    def tenant_tokens_must_parse(cls, v: str) -> str:
        """Reject a TENANT_TOKENS value without any usable entry."""
        if not parse_tenant_tokens(v):
            raise ValueError(
                "TENANT_TOKENS must contain at least one token:tenant_id entry"
            )
        return v

    @field_validator("connector_timeout_s", "asset_lock_ttl_s")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        """Timeouts and lock expiry must be strictly positive."""
        if v <= 0:
            raise ValueError("value must be > 0")
        return v

    @field_validator("asset_lock_wait_s")
    @classmethod
    def lock_wait_must_be_non_negative(cls, v: float) -> float:
        """Validate the lock wait is non-negative."""
        if v < 0:
            raise ValueError("ASSET_LOCK_WAIT_S must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate LOG_LEVEL names a stdlib logging level."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL '{v}' is not a logging level")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> ServiceSettings:
    """Build settings from the current environment.

    Not cached: tests and migrations rely on picking up the environment
    as it is at call time.
    """
    return ServiceSettings()
