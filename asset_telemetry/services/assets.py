"""
Asset CRUD operations.

Reads, creates, updates and deletes assets through the storage gateway.
Create and update resolve the asset's site area (which determines its site)
and stamp the audit fields with the acting tenant. Mutations are logged at
info level as security-relevant events.

CHANGELOG:
- 2026-10-10: Initial creation (STORY-110)

TODO:
- None
"""

import logging
import uuid
from datetime import UTC, datetime

from asset_telemetry.db.models import Asset
from asset_telemetry.errors import AssetNotFoundError
from asset_telemetry.models import AssetCreate, AssetUpdate
from asset_telemetry.services.asset_storage import AssetStorage

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "name",
    "asset_type",
    "site_area_id",
    "dynamic_asset",
    "connection_id",
    "meter_id",
    "coordinates",
    "static_value_watt",
    "fluctuation_percent",
    "exclude_from_smart_charging",
)


async def get_asset(storage: AssetStorage, tenant_id: str, asset_id: str) -> Asset:
    """Return an asset or raise AssetNotFoundError."""
    asset = await storage.get_asset(tenant_id, asset_id)
    if asset is None:
        raise AssetNotFoundError(f"Asset ID '{asset_id}' does not exist")
    return asset


async def _resolve_site_id(
    storage: AssetStorage,
    tenant_id: str,
    site_area_id: str | None,
) -> str | None:
    if not site_area_id:
        return None
    site_area = await storage.get_site_area(tenant_id, site_area_id)
    if site_area is None:
        raise AssetNotFoundError(f"Site Area ID '{site_area_id}' does not exist")
    return site_area.site_id


def _apply(asset: Asset, body: AssetCreate) -> None:
    for name in _EDITABLE_FIELDS:
        setattr(asset, name, getattr(body, name))
    if not asset.site_area_id:
        asset.site_area_id = None


async def create_asset(storage: AssetStorage, tenant_id: str, body: AssetCreate) -> Asset:
    """Create an asset.

    Args:
        storage: Storage gateway.
        tenant_id: Acting tenant, also recorded as creator.
        body: Validated request body.

    Returns:
        Asset: The stored asset.

    Raises:
        AssetNotFoundError: If the referenced site area does not exist.
    """
    site_id = await _resolve_site_id(storage, tenant_id, body.site_area_id)
    asset = Asset(id=uuid.uuid4().hex, tenant_id=tenant_id)
    _apply(asset, body)
    asset.site_id = site_id
    asset.created_by = tenant_id
    asset.created_on = datetime.now(UTC)
    await storage.save_asset(asset)
    logger.info(
        "Asset '%s' has been created successfully",
        asset.name,
        extra={"tenant_id": tenant_id, "asset_id": asset.id, "action": "asset_create"},
    )
    return asset


async def update_asset(
    storage: AssetStorage,
    tenant_id: str,
    asset_id: str,
    body: AssetUpdate,
) -> Asset:
    """Replace the editable fields of an asset.

    The live-state group is left alone; only a consumption merge writes it.

    Raises:
        AssetNotFoundError: If the asset or its new site area does not exist.
        ConcurrentUpdateError: If the asset changed since it was read.
    """
    asset = await get_asset(storage, tenant_id, asset_id)
    site_id = await _resolve_site_id(storage, tenant_id, body.site_area_id)
    _apply(asset, body)
    asset.site_id = site_id
    asset.last_changed_by = tenant_id
    asset.last_changed_on = datetime.now(UTC)
    await storage.save_asset(asset)
    logger.info(
        "Asset '%s' has been updated successfully",
        asset.name,
        extra={"tenant_id": tenant_id, "asset_id": asset.id, "action": "asset_update"},
    )
    return asset


async def delete_asset(storage: AssetStorage, tenant_id: str, asset_id: str) -> None:
    """Delete an asset.

    Raises:
        AssetNotFoundError: If the asset does not exist.
    """
    asset = await get_asset(storage, tenant_id, asset_id)
    await storage.delete_asset(asset)
    logger.info(
        "Asset '%s' has been deleted successfully",
        asset.name,
        extra={"tenant_id": tenant_id, "asset_id": asset_id, "action": "asset_delete"},
    )
