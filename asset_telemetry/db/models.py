"""
SQLAlchemy ORM models for the asset database.

Defines the Asset, SiteArea and AssetConnection models plus the Consumption
model stored in a TimescaleDB hypertable. Every row carries its tenant_id;
all queries are scoped by it.

Asset carries an integer ``version`` column registered as the mapper's
version_id_col, so every UPDATE checks the version read and a concurrent
writer surfaces as StaleDataError instead of a silent lost update.

CHANGELOG:
- 2026-10-09: Add Asset.version optimistic concurrency column (STORY-108)
- 2026-10-06: Add AssetConnection (STORY-103)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

import datetime
import uuid

from sqlalchemy import JSON, Boolean, DateTime, Double, Integer, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all asset ORM models."""

    pass


def _new_id() -> str:
    return uuid.uuid4().hex


class SiteArea(Base):
    """A site area assets can be attached to.

    Attributes:
        id: Site area identifier.
        tenant_id: Owning tenant.
        site_id: Parent site identifier.
        name: Display name.
    """

    __tablename__ = "site_areas"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    site_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the SiteArea."""
        return f"SiteArea(id={self.id!r}, site_id={self.site_id!r})"


class AssetConnection(Base):
    """Connector settings of a tenant, referenced by Asset.connection_id.

    Attributes:
        id: Connection identifier (the asset's ``connection_id``).
        tenant_id: Owning tenant.
        name: Display name.
        connection_type: Connector variant key (``"modbus"`` or ``"http"``).
        url: Base URL for HTTP connectors.
        host: Hostname / IP for Modbus TCP connectors.
        port: TCP port for Modbus TCP connectors.
        unit_id: Modbus unit (slave) identifier.
        token: Bearer token for HTTP connectors.
        timeout_s: Per-connection timeout override in seconds.
    """

    __tablename__ = "asset_connections"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    connection_type: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    host: Mapped[str | None] = mapped_column(Text, nullable=True)
    port: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    token: Mapped[str | None] = mapped_column(Text, nullable=True)
    timeout_s: Mapped[float | None] = mapped_column(Double, nullable=True)

    def __repr__(self) -> str:
        """Return string representation of the AssetConnection."""
        return (
            f"AssetConnection(id={self.id!r}, "
            f"connection_type={self.connection_type!r})"
        )


class Asset(Base):
    """A physical energy asset (meter, battery, production or consumption device).

    The ``last_consumption_*`` and ``current_*`` columns hold the most recent
    reading merged from the asset's connector; they are only written as one
    group (see :mod:`asset_telemetry.services.merge`).
    """

    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    site_area_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    site_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    asset_type: Mapped[str] = mapped_column(Text, nullable=False)
    dynamic_asset: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    connection_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    meter_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    coordinates: Mapped[list[float] | None] = mapped_column(JSON, nullable=True)
    static_value_watt: Mapped[float | None] = mapped_column(Double, nullable=True)
    fluctuation_percent: Mapped[float | None] = mapped_column(Double, nullable=True)
    exclude_from_smart_charging: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # Live state
    last_consumption_value: Mapped[float | None] = mapped_column(Double, nullable=True)
    last_consumption_timestamp: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    current_consumption_wh: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_amps: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_amps_l1: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_amps_l2: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_amps_l3: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_volts: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_volts_l1: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_volts_l2: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_volts_l3: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_watts: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_watts_l1: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_watts_l2: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_instant_watts_l3: Mapped[float | None] = mapped_column(Double, nullable=True)
    current_state_of_charge: Mapped[float | None] = mapped_column(Double, nullable=True)

    # Audit
    created_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_on: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_changed_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_changed_on: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """Return string representation of the Asset."""
        return (
            f"Asset(id={self.id!r}, tenant_id={self.tenant_id!r}, "
            f"name={self.name!r}, dynamic_asset={self.dynamic_asset!r})"
        )


class Consumption(Base):
    """Historical consumption value of an asset.

    Stored in the consumptions TimescaleDB hypertable with a composite
    primary key on (tenant_id, asset_id, started_at) so that re-recording the
    same reading is idempotent.
    """

    __tablename__ = "consumptions"

    tenant_id: Mapped[str] = mapped_column(Text, primary_key=True, nullable=False)
    asset_id: Mapped[str] = mapped_column(Text, primary_key=True, nullable=False)
    started_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), primary_key=True, nullable=False
    )
    ended_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    instant_watts: Mapped[float | None] = mapped_column(Double, nullable=True)
    instant_amps: Mapped[float | None] = mapped_column(Double, nullable=True)
    limit_watts: Mapped[float | None] = mapped_column(Double, nullable=True)
    limit_amps: Mapped[float | None] = mapped_column(Double, nullable=True)
    state_of_charge: Mapped[float | None] = mapped_column(Double, nullable=True)

    def __repr__(self) -> str:
        """Return string representation of the Consumption."""
        return (
            f"Consumption(asset_id={self.asset_id!r}, "
            f"started_at={self.started_at!r}, instant_watts={self.instant_watts!r})"
        )
