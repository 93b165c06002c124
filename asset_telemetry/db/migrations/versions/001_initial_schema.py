"""
Initial schema: site areas, asset connections, assets and consumptions.

Enables the TimescaleDB extension, creates the tenant-scoped site_areas,
asset_connections and assets tables, then creates the consumptions table
with composite primary key (tenant_id, asset_id, started_at) and converts
it to a TimescaleDB hypertable partitioned on started_at with a 7-day
chunk interval.

Revision ID: 001
Revises: None
Create Date: 2026-10-05

CHANGELOG:
- 2026-10-09: Add assets.version for optimistic concurrency (STORY-108)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# Revision identifiers used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_LIVE_STATE_COLUMNS = (
    "last_consumption_value",
    "current_consumption_wh",
    "current_instant_amps",
    "current_instant_amps_l1",
    "current_instant_amps_l2",
    "current_instant_amps_l3",
    "current_instant_volts",
    "current_instant_volts_l1",
    "current_instant_volts_l2",
    "current_instant_volts_l3",
    "current_instant_watts",
    "current_instant_watts_l1",
    "current_instant_watts_l2",
    "current_instant_watts_l3",
    "current_state_of_charge",
)


def upgrade() -> None:
    """Create all tables and the consumptions hypertable."""
    op.execute("CREATE EXTENSION IF NOT EXISTS timescaledb")

    op.create_table(
        "site_areas",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("site_id", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
    )
    op.create_index("ix_site_areas_tenant_id", "site_areas", ["tenant_id"])

    op.create_table(
        "asset_connections",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("connection_type", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("host", sa.Text(), nullable=True),
        sa.Column("port", sa.Integer(), nullable=True),
        sa.Column("unit_id", sa.Integer(), nullable=True),
        sa.Column("token", sa.Text(), nullable=True),
        sa.Column("timeout_s", sa.Double(), nullable=True),
    )
    op.create_index(
        "ix_asset_connections_tenant_id", "asset_connections", ["tenant_id"]
    )

    op.create_table(
        "assets",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("site_area_id", sa.Text(), nullable=True),
        sa.Column("site_id", sa.Text(), nullable=True),
        sa.Column("asset_type", sa.Text(), nullable=False),
        sa.Column(
            "dynamic_asset",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("connection_id", sa.Text(), nullable=True),
        sa.Column("meter_id", sa.Text(), nullable=True),
        sa.Column("coordinates", sa.JSON(), nullable=True),
        sa.Column("static_value_watt", sa.Double(), nullable=True),
        sa.Column("fluctuation_percent", sa.Double(), nullable=True),
        sa.Column(
            "exclude_from_smart_charging",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "last_consumption_timestamp", sa.DateTime(timezone=True), nullable=True
        ),
        *(sa.Column(name, sa.Double(), nullable=True) for name in _LIVE_STATE_COLUMNS),
        sa.Column("created_by", sa.Text(), nullable=True),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_changed_by", sa.Text(), nullable=True),
        sa.Column("last_changed_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_assets_tenant_id", "assets", ["tenant_id"])
    op.create_index("ix_assets_site_area_id", "assets", ["site_area_id"])

    op.create_table(
        "consumptions",
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("asset_id", sa.Text(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("instant_watts", sa.Double(), nullable=True),
        sa.Column("instant_amps", sa.Double(), nullable=True),
        sa.Column("limit_watts", sa.Double(), nullable=True),
        sa.Column("limit_amps", sa.Double(), nullable=True),
        sa.Column("state_of_charge", sa.Double(), nullable=True),
        sa.PrimaryKeyConstraint("tenant_id", "asset_id", "started_at"),
    )

    op.execute(
        "SELECT create_hypertable("
        "'consumptions', 'started_at', "
        "chunk_time_interval => INTERVAL '7 days', "
        "if_not_exists => TRUE"
        ")"
    )


def downgrade() -> None:
    """Drop all tables.

    Note: Does not drop the timescaledb extension as other tables may use it.
    """
    op.drop_table("consumptions")
    op.drop_table("assets")
    op.drop_table("asset_connections")
    op.drop_table("site_areas")
