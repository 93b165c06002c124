"""
Pydantic models for asset telemetry.

Defines the consumption sample a connector produces, the projection of a
stored historical consumption row, the asset error categories, and the
request/response shapes shared by services and the API layer. JSON uses
camelCase (``currentInstantWatts``, ``connectionIsValid``); Python code
uses snake_case.

CHANGELOG:
- 2026-10-10: Add AssetCreate / AssetUpdate / AssetOut for CRUD (STORY-110)
- 2026-10-08: Add AssetErrorType, PagingOptions, DataResult (STORY-107)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to camelCase while accepting either case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Consumption
# ---------------------------------------------------------------------------


class LastConsumption(CamelModel):
    """Cumulative meter reading and when it was taken."""

    value: float | None = None
    timestamp: datetime | None = None


class ConsumptionSample(CamelModel):
    """A single reading produced by a connector.

    Immutable once produced. The ``current_*`` fields and ``last_consumption``
    form the live-state group that is merged into the asset.

    Attributes:
        started_at: Start of the interval the reading covers.
        ended_at: End of the interval (time of the reading).
        last_consumption: Cumulative meter value at ``ended_at``.
        current_consumption_wh: Energy over the interval in Wh.
        current_instant_amps: Total current in A (per phase in _l1.._l3).
        current_instant_volts: Voltage in V (per phase in _l1.._l3).
        current_instant_watts: Active power in W (per phase in _l1.._l3).
            Positive = consuming, negative = producing.
        current_state_of_charge: Battery state of charge in percent.
        limit_watts: Power limit in W applied to the asset, if any.
        limit_amps: Current limit in A applied to the asset, if any.
    """

    model_config = ConfigDict(frozen=True)

    started_at: datetime | None = None
    ended_at: datetime | None = None
    last_consumption: LastConsumption | None = None
    current_consumption_wh: float | None = None
    current_instant_amps: float | None = None
    current_instant_amps_l1: float | None = None
    current_instant_amps_l2: float | None = None
    current_instant_amps_l3: float | None = None
    current_instant_volts: float | None = None
    current_instant_volts_l1: float | None = None
    current_instant_volts_l2: float | None = None
    current_instant_volts_l3: float | None = None
    current_instant_watts: float | None = None
    current_instant_watts_l1: float | None = None
    current_instant_watts_l2: float | None = None
    current_instant_watts_l3: float | None = None
    current_state_of_charge: float | None = None
    limit_watts: float | None = None
    limit_amps: float | None = None


class ConsumptionValue(CamelModel):
    """Projection of one stored historical consumption row."""

    started_at: datetime
    ended_at: datetime | None = None
    instant_watts: float | None = None
    instant_amps: float | None = None
    limit_watts: float | None = None
    limit_amps: float | None = None
    state_of_charge: float | None = None


CONSUMPTION_VALUE_FIELDS: tuple[str, ...] = tuple(ConsumptionValue.model_fields)


class AssetConsumptions(CamelModel):
    """An asset with its historical consumption values attached."""

    id: str
    name: str
    values: list[ConsumptionValue]


# ---------------------------------------------------------------------------
# Errors / listing
# ---------------------------------------------------------------------------


class AssetErrorType(StrEnum):
    """Structurally detectable problems of an asset."""

    MISSING_SITE_AREA = "missing_site_area"
    MISSING_CONNECTION = "missing_connection"
    UNKNOWN_CONNECTION = "unknown_connection"


@dataclass(frozen=True)
class AssetInErrorFilters:
    """Normalised filter set for the assets-in-error listing."""

    error_types: list[AssetErrorType]
    search: str | None = None
    site_ids: list[str] | None = None
    site_area_ids: list[str] | None = None


@dataclass(frozen=True)
class AssetFilters:
    """Filter set for the plain asset listing."""

    search: str | None = None
    site_ids: list[str] | None = None
    site_area_ids: list[str] | None = None
    with_no_site_area: bool = False
    dynamic_only: bool = False


@dataclass(frozen=True)
class PagingOptions:
    """Paging and sorting passed through to the storage gateway.

    Attributes:
        limit: Maximum number of records, ``None`` for no limit.
        skip: Number of records to skip.
        sort: Sort keys, ``-`` prefix for descending (e.g. ``["-name"]``).
        only_record_count: Return the count only, no records.
    """

    limit: int | None = None
    skip: int = 0
    sort: list[str] = field(default_factory=list)
    only_record_count: bool = False


class DataResult(BaseModel):
    """Listing envelope: total count plus the (possibly paged) records."""

    count: int
    result: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Asset CRUD
# ---------------------------------------------------------------------------


class AssetOut(CamelModel):
    """Full asset representation returned by the API."""

    id: str
    name: str
    site_area_id: str | None = Field(default=None, alias="siteAreaID")
    site_id: str | None = Field(default=None, alias="siteID")
    asset_type: str
    dynamic_asset: bool = False
    connection_id: str | None = Field(default=None, alias="connectionID")
    meter_id: str | None = Field(default=None, alias="meterID")
    coordinates: list[float] | None = None
    static_value_watt: float | None = None
    fluctuation_percent: float | None = None
    exclude_from_smart_charging: bool = False
    last_consumption_value: float | None = None
    last_consumption_timestamp: datetime | None = None
    current_consumption_wh: float | None = None
    current_instant_amps: float | None = None
    current_instant_amps_l1: float | None = None
    current_instant_amps_l2: float | None = None
    current_instant_amps_l3: float | None = None
    current_instant_volts: float | None = None
    current_instant_volts_l1: float | None = None
    current_instant_volts_l2: float | None = None
    current_instant_volts_l3: float | None = None
    current_instant_watts: float | None = None
    current_instant_watts_l1: float | None = None
    current_instant_watts_l2: float | None = None
    current_instant_watts_l3: float | None = None
    current_state_of_charge: float | None = None
    created_by: str | None = None
    created_on: datetime | None = None
    last_changed_by: str | None = None
    last_changed_on: datetime | None = None


class AssetCreate(CamelModel):
    """Request body for creating an asset."""

    name: str = Field(min_length=1)
    asset_type: str = Field(min_length=1)
    site_area_id: str | None = Field(default=None, alias="siteAreaID")
    dynamic_asset: bool = False
    connection_id: str | None = Field(default=None, alias="connectionID")
    meter_id: str | None = Field(default=None, alias="meterID")
    coordinates: list[float] | None = Field(default=None, min_length=2, max_length=2)
    static_value_watt: float | None = None
    fluctuation_percent: float | None = Field(default=None, ge=0, le=100)
    exclude_from_smart_charging: bool = False

    @model_validator(mode="after")
    def _dynamic_asset_needs_connection(self) -> AssetCreate:
        """A dynamic asset cannot be polled without a connection id."""
        if self.dynamic_asset and not self.connection_id:
            raise ValueError("A dynamic asset requires a connection ID")
        return self


class AssetUpdate(AssetCreate):
    """Request body for updating an asset (full replace of editable fields)."""
