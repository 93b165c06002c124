"""
Storage gateway for assets, site areas and asset connections.

All reads and writes of the asset tables go through AssetStorage, always
scoped by tenant. Saves rely on the Asset.version column: an UPDATE that
finds a different version than it read raises StaleDataError, which is
rolled back and surfaced as ConcurrentUpdateError.

The assets-in-error listing is computed in the database: one SELECT per
requested error category, combined with UNION ALL, so an asset with two
problems appears once per problem.

CHANGELOG:
- 2026-10-11: Match the search filter literally in ILIKE (STORY-111)
- 2026-10-10: Add get_assets listing and delete_asset (STORY-110)
- 2026-10-09: Map StaleDataError to ConcurrentUpdateError (STORY-108)
- 2026-10-08: Add get_assets_in_error (STORY-107)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

import logging
from typing import Any

from sqlalchemy import Select, and_, exists, func, literal, or_, select, union_all
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from asset_telemetry.db.models import Asset, AssetConnection, SiteArea
from asset_telemetry.errors import AssetValidationError, ConcurrentUpdateError
from asset_telemetry.models import (
    AssetErrorType,
    AssetFilters,
    AssetInErrorFilters,
    AssetOut,
    DataResult,
    PagingOptions,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Sort whitelists (API field name -> column key)
# ---------------------------------------------------------------------------

ASSET_SORT_FIELDS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "assetType": "asset_type",
    "siteAreaID": "site_area_id",
    "siteID": "site_id",
    "dynamicAsset": "dynamic_asset",
    "createdOn": "created_on",
    "lastChangedOn": "last_changed_on",
}

IN_ERROR_SORT_FIELDS: dict[str, str] = {
    "id": "id",
    "name": "name",
    "errorCode": "error_code",
}


def _order_by(columns: Any, sort: list[str], allowed: dict[str, str]) -> list[Any]:
    """Translate ``["-name", "id"]`` style sort keys into ORDER BY clauses.

    Raises:
        AssetValidationError: If a sort key is not whitelisted.
    """
    clauses = []
    for key in sort:
        descending = key.startswith("-")
        name = key.lstrip("-+")
        column_key = allowed.get(name)
        if column_key is None:
            raise AssetValidationError(
                f"Sort field '{name}' is not supported",
                detailed_messages={"allowed": sorted(allowed)},
            )
        column = columns[column_key]
        clauses.append(column.desc() if descending else column.asc())
    if not clauses:
        clauses = [columns["name"].asc(), columns["id"].asc()]
    return clauses


def _like_pattern(search: str) -> str:
    """Substring ILIKE pattern matching ``search`` literally."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _paged(stmt: Select, paging: PagingOptions) -> Select:
    if paging.skip:
        stmt = stmt.offset(paging.skip)
    if paging.limit is not None:
        stmt = stmt.limit(paging.limit)
    return stmt


class AssetStorage:
    """Tenant-scoped access to the asset tables.

    Args:
        session: The request's async database session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Single assets
    # ------------------------------------------------------------------

    async def get_asset(self, tenant_id: str, asset_id: str) -> Asset | None:
        stmt = select(Asset).where(Asset.tenant_id == tenant_id, Asset.id == asset_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def save_asset(self, asset: Asset) -> Asset:
        """Insert or update an asset in one commit.

        Raises:
            ConcurrentUpdateError: If the asset was changed by someone else
                since it was read.
        """
        self._session.add(asset)
        try:
            await self._session.commit()
        except StaleDataError as exc:
            await self._session.rollback()
            raise ConcurrentUpdateError(
                f"Asset ID '{asset.id}' was modified concurrently, try again",
                detailed_messages={"assetID": asset.id},
            ) from exc
        return asset

    async def delete_asset(self, asset: Asset) -> None:
        """Delete an asset.

        Raises:
            ConcurrentUpdateError: If the asset changed since it was read.
        """
        await self._session.delete(asset)
        try:
            await self._session.commit()
        except StaleDataError as exc:
            await self._session.rollback()
            raise ConcurrentUpdateError(
                f"Asset ID '{asset.id}' was modified concurrently, try again",
                detailed_messages={"assetID": asset.id},
            ) from exc

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def get_assets(
        self,
        tenant_id: str,
        filters: AssetFilters,
        paging: PagingOptions,
    ) -> DataResult:
        """List assets matching ``filters``.

        Returns:
            DataResult: Total count and the requested page of assets in
            their API representation.
        """
        conditions = [Asset.tenant_id == tenant_id]
        if filters.search:
            pattern = _like_pattern(filters.search)
            conditions.append(
                or_(Asset.name.ilike(pattern, escape="\\"), Asset.id == filters.search)
            )
        if filters.site_ids:
            conditions.append(Asset.site_id.in_(filters.site_ids))
        if filters.with_no_site_area:
            conditions.append(Asset.site_area_id.is_(None))
        elif filters.site_area_ids:
            conditions.append(Asset.site_area_id.in_(filters.site_area_ids))
        if filters.dynamic_only:
            conditions.append(Asset.dynamic_asset.is_(True))

        count_stmt = select(func.count()).select_from(Asset).where(*conditions)
        count = (await self._session.execute(count_stmt)).scalar_one()
        if paging.only_record_count:
            return DataResult(count=count, result=[])

        order = _order_by(Asset.__table__.c, paging.sort, ASSET_SORT_FIELDS)
        stmt = _paged(select(Asset).where(*conditions).order_by(*order), paging)
        assets = (await self._session.execute(stmt)).scalars().all()
        return DataResult(
            count=count,
            result=[
                AssetOut.model_validate(a).model_dump(mode="json", by_alias=True)
                for a in assets
            ],
        )

    async def get_assets_in_error(
        self,
        tenant_id: str,
        filters: AssetInErrorFilters,
        paging: PagingOptions,
    ) -> DataResult:
        """List assets matching any of the requested error categories.

        Returns:
            DataResult: Total count and projections
            ``{id, name, errorCode, errorCodeDetails}``.
        """
        base_conditions = [Asset.tenant_id == tenant_id]
        if filters.search:
            base_conditions.append(
                Asset.name.ilike(_like_pattern(filters.search), escape="\\")
            )
        if filters.site_ids:
            base_conditions.append(Asset.site_id.in_(filters.site_ids))
        if filters.site_area_ids:
            base_conditions.append(Asset.site_area_id.in_(filters.site_area_ids))

        selects = [
            select(
                Asset.id.label("id"),
                Asset.name.label("name"),
                Asset.site_area_id.label("site_area_id"),
                Asset.connection_id.label("connection_id"),
                literal(error_type.value).label("error_code"),
            ).where(*base_conditions, _error_condition(error_type))
            for error_type in dict.fromkeys(filters.error_types)
        ]
        if not selects:
            return DataResult(count=0, result=[])
        in_error = union_all(*selects).subquery("assets_in_error")

        count_stmt = select(func.count()).select_from(in_error)
        count = (await self._session.execute(count_stmt)).scalar_one()
        if paging.only_record_count:
            return DataResult(count=count, result=[])

        order = _order_by(in_error.c, paging.sort, IN_ERROR_SORT_FIELDS)
        stmt = _paged(select(in_error).order_by(*order), paging)
        rows = (await self._session.execute(stmt)).mappings().all()
        return DataResult(
            count=count,
            result=[
                {
                    "id": row["id"],
                    "name": row["name"],
                    "errorCode": row["error_code"],
                    "errorCodeDetails": _error_details(row),
                }
                for row in rows
            ],
        )

    # ------------------------------------------------------------------
    # Related records
    # ------------------------------------------------------------------

    async def get_site_area(self, tenant_id: str, site_area_id: str) -> SiteArea | None:
        stmt = select(SiteArea).where(
            SiteArea.tenant_id == tenant_id, SiteArea.id == site_area_id
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_asset_connection(
        self, tenant_id: str, connection_id: str
    ) -> AssetConnection | None:
        """Look up a tenant's stored connector settings by connection ID."""
        stmt = select(AssetConnection).where(
            AssetConnection.tenant_id == tenant_id,
            AssetConnection.id == connection_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Error category detection
# ---------------------------------------------------------------------------


def _error_condition(error_type: AssetErrorType) -> Any:
    """WHERE clause selecting the assets exhibiting ``error_type``."""
    if error_type is AssetErrorType.MISSING_SITE_AREA:
        return Asset.site_area_id.is_(None)
    if error_type is AssetErrorType.MISSING_CONNECTION:
        return and_(
            Asset.dynamic_asset.is_(True),
            or_(Asset.connection_id.is_(None), Asset.connection_id == ""),
        )
    known_connection = exists().where(
        AssetConnection.tenant_id == Asset.tenant_id,
        AssetConnection.id == Asset.connection_id,
    )
    return and_(
        Asset.dynamic_asset.is_(True),
        Asset.connection_id.is_not(None),
        Asset.connection_id != "",
        ~known_connection,
    )


def _error_details(row: Any) -> dict[str, Any]:
    if row["error_code"] == AssetErrorType.MISSING_SITE_AREA:
        return {"siteAreaID": row["site_area_id"]}
    return {"connectionID": row["connection_id"]}
