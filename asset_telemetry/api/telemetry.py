"""
Asset telemetry endpoints.

- GET  /v1/assets/consumption: historical consumption of an asset.
- GET  /v1/assets/connection/check: check a connection's health.
- POST /v1/assets/consumption/retrieve: pull and merge live consumption.
- GET  /v1/assets/in-error: list assets exhibiting error categories.

Query parameters keep their external PascalCase names (``AssetID``,
``StartDate``...). Domain errors raised by the services are turned into
responses by the exception handler registered in main.py.

CHANGELOG:
- 2026-10-09: Retrieval runs through TelemetryRetrievalService (STORY-108)
- 2026-10-08: Add consumption retrieve and in-error endpoints (STORY-106, STORY-107)
- 2026-10-07: Add consumption and connection check endpoints (STORY-105)

TODO:
- None
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from asset_telemetry.api import REST_RESPONSE_SUCCESS
from asset_telemetry.api.deps import (
    TenantId,
    get_asset_storage,
    get_connector_registry,
    get_consumption_storage,
    get_health_checker,
    get_retrieval_service,
)
from asset_telemetry.connectors.registry import ConnectorRegistry
from asset_telemetry.errors import ConnectorNotConfiguredError
from asset_telemetry.models import AssetConsumptions, DataResult, PagingOptions
from asset_telemetry.services.asset_storage import AssetStorage
from asset_telemetry.services.consumption_storage import ConsumptionStorage
from asset_telemetry.services.health_check import ConnectionHealthChecker
from asset_telemetry.services.history import HistoricalConsumptionQuery
from asset_telemetry.services.in_error import AssetErrorClassifier, split_bar_list
from asset_telemetry.services.retrieval import TelemetryRetrievalService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/assets", tags=["telemetry"])


@router.get("/consumption", response_model=AssetConsumptions)
async def get_asset_consumption(
    tenant_id: TenantId,
    assets: Annotated[AssetStorage, Depends(get_asset_storage)],
    consumptions: Annotated[ConsumptionStorage, Depends(get_consumption_storage)],
    asset_id: Annotated[str | None, Query(alias="AssetID")] = None,
    start_date: Annotated[datetime | None, Query(alias="StartDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="EndDate")] = None,
) -> AssetConsumptions:
    """Return an asset with its consumption values between two dates."""
    query = HistoricalConsumptionQuery(assets, consumptions)
    return await query.query(tenant_id, asset_id, start_date, end_date)


@router.get("/connection/check")
async def check_asset_connection(
    tenant_id: TenantId,
    registry: Annotated[ConnectorRegistry, Depends(get_connector_registry)],
    checker: Annotated[ConnectionHealthChecker, Depends(get_health_checker)],
    connection_id: Annotated[str | None, Query(alias="ID")] = None,
) -> dict:
    """Check a connection.

    Answers HTTP 200 whatever the check outcome; a failed check is reported
    as ``connectionIsValid: false`` and logged with its diagnostic.

    Raises:
        ConnectorNotConfiguredError: If no connector resolves for the ID.
    """
    connector = await registry.resolve(tenant_id, connection_id)
    if connector is None:
        raise ConnectorNotConfiguredError(
            "Asset service is not configured",
            detailed_messages={"connectionID": connection_id},
        )
    result = await checker.check(connector, tenant_id=tenant_id)
    return {"connectionIsValid": result.healthy, **REST_RESPONSE_SUCCESS}


@router.post("/consumption/retrieve")
async def retrieve_asset_consumption(
    tenant_id: TenantId,
    service: Annotated[TelemetryRetrievalService, Depends(get_retrieval_service)],
    asset_id: Annotated[str | None, Query(alias="ID")] = None,
) -> dict[str, str]:
    """Pull the latest consumption of a dynamic asset into its live state."""
    await service.retrieve_and_merge(tenant_id, asset_id)
    return REST_RESPONSE_SUCCESS


@router.get("/in-error", response_model=DataResult)
async def get_assets_in_error(
    tenant_id: TenantId,
    assets: Annotated[AssetStorage, Depends(get_asset_storage)],
    error_type: Annotated[str | None, Query(alias="ErrorType")] = None,
    site_area_id: Annotated[str | None, Query(alias="SiteAreaID")] = None,
    site_id: Annotated[str | None, Query(alias="SiteID")] = None,
    search: Annotated[str | None, Query(alias="Search")] = None,
    limit: Annotated[int | None, Query(alias="Limit", ge=0)] = None,
    skip: Annotated[int, Query(alias="Skip", ge=0)] = 0,
    sort_fields: Annotated[str | None, Query(alias="SortFields")] = None,
    only_record_count: Annotated[bool, Query(alias="OnlyRecordCount")] = False,
) -> DataResult:
    """List assets in error, by default those without a site area."""
    classifier = AssetErrorClassifier(assets)
    return await classifier.list_in_error(
        tenant_id,
        error_type=error_type,
        search=search,
        site_id=site_id,
        site_area_id=site_area_id,
        paging=PagingOptions(
            limit=limit,
            skip=skip,
            sort=split_bar_list(sort_fields) or [],
            only_record_count=only_record_count,
        ),
    )
