"""
Asset CRUD endpoints.

- GET    /v1/assets: list assets (filters, paging, sort).
- POST   /v1/assets: create an asset.
- GET    /v1/assets/{asset_id}: read one asset.
- PUT    /v1/assets/{asset_id}: update an asset.
- DELETE /v1/assets/{asset_id}: delete an asset.

CHANGELOG:
- 2026-10-10: Initial creation (STORY-110)

TODO:
- None
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from asset_telemetry.api import REST_RESPONSE_SUCCESS
from asset_telemetry.api.deps import TenantId, get_asset_storage
from asset_telemetry.models import (
    AssetCreate,
    AssetFilters,
    AssetOut,
    AssetUpdate,
    DataResult,
    PagingOptions,
)
from asset_telemetry.services import assets as asset_service
from asset_telemetry.services.asset_storage import AssetStorage
from asset_telemetry.services.in_error import split_bar_list

router = APIRouter(prefix="/v1/assets", tags=["assets"])

Storage = Annotated[AssetStorage, Depends(get_asset_storage)]


@router.get("", response_model=DataResult)
async def list_assets(
    tenant_id: TenantId,
    storage: Storage,
    search: Annotated[str | None, Query(alias="Search")] = None,
    site_area_id: Annotated[str | None, Query(alias="SiteAreaID")] = None,
    site_id: Annotated[str | None, Query(alias="SiteID")] = None,
    with_no_site_area: Annotated[bool, Query(alias="WithNoSiteArea")] = False,
    dynamic_only: Annotated[bool, Query(alias="DynamicOnly")] = False,
    limit: Annotated[int | None, Query(alias="Limit", ge=0)] = None,
    skip: Annotated[int, Query(alias="Skip", ge=0)] = 0,
    sort_fields: Annotated[str | None, Query(alias="SortFields")] = None,
    only_record_count: Annotated[bool, Query(alias="OnlyRecordCount")] = False,
) -> DataResult:
    """List the tenant's assets."""
    filters = AssetFilters(
        search=search or None,
        site_ids=split_bar_list(site_id),
        site_area_ids=split_bar_list(site_area_id),
        with_no_site_area=with_no_site_area,
        dynamic_only=dynamic_only,
    )
    paging = PagingOptions(
        limit=limit,
        skip=skip,
        sort=split_bar_list(sort_fields) or [],
        only_record_count=only_record_count,
    )
    return await storage.get_assets(tenant_id, filters, paging)


@router.post("", response_model=AssetOut, status_code=201)
async def create_asset(
    body: AssetCreate,
    tenant_id: TenantId,
    storage: Storage,
) -> AssetOut:
    asset = await asset_service.create_asset(storage, tenant_id, body)
    return AssetOut.model_validate(asset)


@router.get("/{asset_id}", response_model=AssetOut)
async def get_asset(asset_id: str, tenant_id: TenantId, storage: Storage) -> AssetOut:
    asset = await asset_service.get_asset(storage, tenant_id, asset_id)
    return AssetOut.model_validate(asset)


@router.put("/{asset_id}", response_model=AssetOut)
async def update_asset(
    asset_id: str,
    body: AssetUpdate,
    tenant_id: TenantId,
    storage: Storage,
) -> AssetOut:
    """Replace the editable fields of an asset. Its live state is kept."""
    asset = await asset_service.update_asset(storage, tenant_id, asset_id, body)
    return AssetOut.model_validate(asset)


@router.delete("/{asset_id}")
async def delete_asset(asset_id: str, tenant_id: TenantId, storage: Storage) -> dict[str, str]:
    await asset_service.delete_asset(storage, tenant_id, asset_id)
    return REST_RESPONSE_SUCCESS
