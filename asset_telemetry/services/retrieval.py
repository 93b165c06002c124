"""
Live consumption retrieval for dynamic assets.

Pulls the latest consumption from an asset's connector and merges it into
the asset's live state. The read-modify-write runs under the asset's
retrieval lock, and the final save is additionally guarded by the asset's
optimistic version check.

CHANGELOG:
- 2026-10-11: Bound retrieval by the connection's effective timeout (STORY-111)
- 2026-10-09: Run retrieval under the per-asset lock (STORY-108)
- 2026-10-08: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from enum import StrEnum

from asset_telemetry.connectors.base import call_with_timeout
from asset_telemetry.connectors.registry import ConnectorRegistry
from asset_telemetry.errors import (
    AssetNotFoundError,
    AssetValidationError,
    ConnectorNotConfiguredError,
    InvalidAssetOperationError,
)
from asset_telemetry.services.asset_storage import AssetStorage
from asset_telemetry.services.merge import merge_consumption

logger = logging.getLogger(__name__)

AssetLock = Callable[[str, str], AbstractAsyncContextManager[None]]
"""``lock(tenant_id, asset_id)`` returning an async context manager."""


class RetrievalOutcome(StrEnum):
    """What a live retrieval did to the asset."""

    MERGED = "merged"
    NO_SAMPLE_AVAILABLE = "no_sample_available"


class TelemetryRetrievalService:
    """Retrieve and merge live consumption for one asset at a time.

    Args:
        assets: Storage gateway of the request.
        registry: Connector registry of the request.
        lock: Factory of the per-asset lock.
    """

    def __init__(
        self,
        assets: AssetStorage,
        registry: ConnectorRegistry,
        *,
        lock: AssetLock,
    ) -> None:
        self._assets = assets
        self._registry = registry
        self._lock = lock

    async def retrieve_and_merge(
        self,
        tenant_id: str,
        asset_id: str | None,
    ) -> RetrievalOutcome:
        """Pull the asset's latest consumption and merge it into its live state.

        Args:
            tenant_id: Tenant owning the asset.
            asset_id: Asset to refresh.

        Returns:
            RetrievalOutcome: ``MERGED`` if a sample was merged and saved,
            ``NO_SAMPLE_AVAILABLE`` if the connector had nothing to report.

        Raises:
            AssetValidationError: If ``asset_id`` is missing.
            AssetNotFoundError: If the asset does not exist.
            InvalidAssetOperationError: If the asset is not dynamic.
            ConnectorNotConfiguredError: If no connector resolves for it.
            ConnectorFailureError: If the connector call fails or times out.
            ConcurrentUpdateError: If the asset is locked or changed
                underneath the save.
        """
        if not asset_id:
            raise AssetValidationError("The Asset's ID must be provided")

        async with self._lock(tenant_id, asset_id):
            asset = await self._assets.get_asset(tenant_id, asset_id)
            if asset is None:
                raise AssetNotFoundError(f"Asset ID '{asset_id}' does not exist")

            if not asset.dynamic_asset:
                raise InvalidAssetOperationError(
                    "This Asset is not dynamic, no consumption can be retrieved",
                    detailed_messages={"assetID": asset_id},
                )

            connector = await self._registry.resolve(tenant_id, asset.connection_id)
            if connector is None:
                raise ConnectorNotConfiguredError(
                    "Asset service is not configured",
                    detailed_messages={
                        "assetID": asset_id,
                        "connectionID": asset.connection_id,
                    },
                )

            samples = await call_with_timeout(
                connector.retrieve_consumptions(asset, True),
                connector.timeout_s,
                operation="retrieve_consumptions",
                connection_id=connector.connection_id,
            )
            if not samples:
                logger.info(
                    "No consumption available for asset %s",
                    asset_id,
                    extra={
                        "tenant_id": tenant_id,
                        "asset_id": asset_id,
                        "action": "retrieve_consumption",
                    },
                )
                return RetrievalOutcome.NO_SAMPLE_AVAILABLE

            merge_consumption(asset, samples[0])
            await self._assets.save_asset(asset)

        logger.info(
            "Merged latest consumption into asset %s",
            asset_id,
            extra={
                "tenant_id": tenant_id,
                "asset_id": asset_id,
                "action": "retrieve_consumption",
            },
        )
        return RetrievalOutcome.MERGED
