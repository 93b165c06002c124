"""
FastAPI dependency injection providers.

Provides the database session, the authenticated tenant, service settings,
and the storage gateways, connector registry and services built on them,
for use with FastAPI's Depends() mechanism. FastAPI caches a dependency per
request, so every provider below shares the one session from get_db.

CHANGELOG:
- 2026-10-09: Add asset lock and retrieval service providers (STORY-108)
- 2026-10-06: Add connector registry provider (STORY-103)
- 2026-10-05: Initial creation (STORY-101)
"""

from collections.abc import AsyncGenerator
from functools import partial
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from asset_telemetry.cache.redis_client import asset_lock
from asset_telemetry.config import ServiceSettings
from asset_telemetry.connectors.registry import ConnectorRegistry
from asset_telemetry.db.session import get_async_session
from asset_telemetry.services.asset_storage import AssetStorage
from asset_telemetry.services.consumption_storage import ConsumptionStorage
from asset_telemetry.services.health_check import ConnectionHealthChecker
from asset_telemetry.services.retrieval import AssetLock, TelemetryRetrievalService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session.

    Yields:
        AsyncSession: An async SQLAlchemy session.
    """
    async for session in get_async_session():
        yield session


async def get_tenant_id(request: Request) -> str:
    """Extract the authenticated tenant_id via BearerAuth on app.state.

    Args:
        request: The incoming FastAPI request.

    Returns:
        str: The tenant_id the bearer token maps to.
    """
    return await request.app.state.auth.verify(request)


def get_service_settings(request: Request) -> ServiceSettings:
    """Return the settings loaded at startup."""
    return request.app.state.settings


DbSession = Annotated[AsyncSession, Depends(get_db)]
TenantId = Annotated[str, Depends(get_tenant_id)]
Settings = Annotated[ServiceSettings, Depends(get_service_settings)]


def get_asset_storage(db: DbSession) -> AssetStorage:
    return AssetStorage(db)


def get_consumption_storage(db: DbSession) -> ConsumptionStorage:
    return ConsumptionStorage(db)


def get_connector_registry(
    assets: Annotated[AssetStorage, Depends(get_asset_storage)],
    consumptions: Annotated[ConsumptionStorage, Depends(get_consumption_storage)],
    settings: Settings,
) -> ConnectorRegistry:
    """Build the connector registry of the request.

    Connection settings are looked up through the storage gateway and
    retrieved samples are recorded in the consumption store.
    """
    return ConnectorRegistry(
        assets.get_asset_connection,
        timeout_s=settings.connector_timeout_s,
        sink=consumptions,
    )


def get_health_checker() -> ConnectionHealthChecker:
    return ConnectionHealthChecker()


def get_asset_lock(settings: Settings) -> AssetLock:
    """Bind the per-asset Redis lock to the configured expiry and wait."""
    return partial(
        asset_lock,
        ttl_s=settings.asset_lock_ttl_s,
        wait_s=settings.asset_lock_wait_s,
    )


def get_retrieval_service(
    assets: Annotated[AssetStorage, Depends(get_asset_storage)],
    registry: Annotated[ConnectorRegistry, Depends(get_connector_registry)],
    lock: Annotated[AssetLock, Depends(get_asset_lock)],
) -> TelemetryRetrievalService:
    return TelemetryRetrievalService(assets, registry, lock=lock)
