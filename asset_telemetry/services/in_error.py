"""
Assets-in-error listing.

Normalises the request filters (bar-delimited lists, default error category)
and delegates detection to the storage gateway.

CHANGELOG:
- 2026-10-08: Initial creation (STORY-107)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Sequence

from asset_telemetry.errors import AssetValidationError
from asset_telemetry.models import (
    AssetErrorType,
    AssetInErrorFilters,
    DataResult,
    PagingOptions,
)
from asset_telemetry.services.asset_storage import AssetStorage

DEFAULT_ERROR_TYPES: tuple[AssetErrorType, ...] = (AssetErrorType.MISSING_SITE_AREA,)


def split_bar_list(value: str | Sequence[str] | None) -> list[str] | None:
    """Split ``"a|b"`` into ``["a", "b"]``, dropping empty entries.

    Lists are passed through (minus empty entries). Returns ``None`` when
    nothing is left, meaning "no filter".
    """
    if value is None:
        return None
    parts = value.split("|") if isinstance(value, str) else list(value)
    items = [p.strip() for p in parts if p and p.strip()]
    return items or None


def parse_error_types(value: str | Sequence[str] | None) -> list[AssetErrorType]:
    """Parse error category tags, defaulting to missing_site_area.

    Raises:
        AssetValidationError: If a tag names no known category.
    """
    tags = split_bar_list(value)
    if tags is None:
        return list(DEFAULT_ERROR_TYPES)
    try:
        return [AssetErrorType(tag) for tag in tags]
    except ValueError:
        raise AssetValidationError(
            f"Unknown error type in '{'|'.join(tags)}'",
            detailed_messages={"allowed": [e.value for e in AssetErrorType]},
        ) from None


class AssetErrorClassifier:
    """List assets that exhibit one of the requested error categories."""

    def __init__(self, assets: AssetStorage) -> None:
        self._assets = assets

    async def list_in_error(
        self,
        tenant_id: str,
        *,
        error_type: str | Sequence[str] | None = None,
        search: str | None = None,
        site_id: str | Sequence[str] | None = None,
        site_area_id: str | Sequence[str] | None = None,
        paging: PagingOptions | None = None,
    ) -> DataResult:
        """List the tenant's assets in error.

        Args:
            tenant_id: Tenant whose assets are listed.
            error_type: Bar-delimited category tags; missing_site_area when
                omitted.
            search: Free-text name filter.
            site_id: Bar-delimited site IDs.
            site_area_id: Bar-delimited site area IDs.
            paging: Paging, sorting and record-count-only options, passed
                through unchanged.

        Returns:
            DataResult: Count and ``{id, name, errorCode, errorCodeDetails}``
            projections.
        """
        filters = AssetInErrorFilters(
            error_types=parse_error_types(error_type),
            search=search or None,
            site_ids=split_bar_list(site_id),
            site_area_ids=split_bar_list(site_area_id),
        )
        return await self._assets.get_assets_in_error(
            tenant_id, filters, paging or PagingOptions()
        )
