"""
Bounded historical consumption query.

Validates the request (asset, then dates) before the consumption store is
touched, and attaches the stored values verbatim to the asset.

CHANGELOG:
- 2026-10-07: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from asset_telemetry.errors import AssetNotFoundError, AssetValidationError
from asset_telemetry.models import AssetConsumptions
from asset_telemetry.services.asset_storage import AssetStorage
from asset_telemetry.services.consumption_storage import ConsumptionStorage


def _as_utc(value: datetime) -> datetime:
    """Read naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class HistoricalConsumptionQuery:
    """Answer historical consumption queries for a single asset."""

    def __init__(self, assets: AssetStorage, consumptions: ConsumptionStorage) -> None:
        self._assets = assets
        self._consumptions = consumptions

    async def query(
        self,
        tenant_id: str,
        asset_id: str | None,
        start_date: datetime | None,
        end_date: datetime | None,
        fields: Sequence[str] | None = None,
    ) -> AssetConsumptions:
        """Return the asset with its consumption values between two dates.

        Raises:
            AssetValidationError: If the asset ID or a date is missing, or if
                the start date is after the end date.
            AssetNotFoundError: If the asset does not exist.
        """
        if not asset_id:
            raise AssetValidationError("The Asset's ID must be provided")

        asset = await self._assets.get_asset(tenant_id, asset_id)
        if asset is None:
            raise AssetNotFoundError(f"Asset ID '{asset_id}' does not exist")

        if start_date is None or end_date is None:
            raise AssetValidationError(
                "Start date and end date must be provided",
                detailed_messages={"assetID": asset_id},
            )

        start_date = _as_utc(start_date)
        end_date = _as_utc(end_date)
        if start_date > end_date:
            raise AssetValidationError(
                f"The requested start date '{start_date.isoformat()}' is after "
                f"the end date '{end_date.isoformat()}'",
                detailed_messages={"assetID": asset_id},
            )

        values = await self._consumptions.get_asset_consumptions(
            tenant_id, asset_id, start_date, end_date, fields
        )
        return AssetConsumptions(id=asset.id, name=asset.name, values=values)
