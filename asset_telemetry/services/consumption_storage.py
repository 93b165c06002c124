"""
Consumption store backed by the consumptions hypertable.

Reads historical consumption rows of an asset for a date range, projected to
the requested fields, and records connector samples with idempotent conflict
handling via ON CONFLICT (tenant_id, asset_id, started_at) DO NOTHING.

CHANGELOG:
- 2026-10-08: Add save_consumptions as the connectors' consumption sink (STORY-106)
- 2026-10-07: Initial creation (STORY-105)

TODO:
- None
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from asset_telemetry.db.models import Consumption
from asset_telemetry.errors import AssetValidationError
from asset_telemetry.models import (
    CONSUMPTION_VALUE_FIELDS,
    ConsumptionSample,
    ConsumptionValue,
)

logger = logging.getLogger(__name__)


def consumption_row(tenant_id: str, asset_id: str, sample: ConsumptionSample) -> dict | None:
    """Map a connector sample onto a consumptions row.

    Returns ``None`` for a sample without any timestamp, which cannot be
    keyed in the hypertable.
    """
    started_at = sample.started_at or sample.ended_at
    if started_at is None:
        return None
    return {
        "tenant_id": tenant_id,
        "asset_id": asset_id,
        "started_at": started_at,
        "ended_at": sample.ended_at,
        "instant_watts": sample.current_instant_watts,
        "instant_amps": sample.current_instant_amps,
        "limit_watts": sample.limit_watts,
        "limit_amps": sample.limit_amps,
        "state_of_charge": sample.current_state_of_charge,
    }


class ConsumptionStorage:
    """Tenant-scoped access to historical consumption.

    Args:
        session: The request's async database session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_asset_consumptions(
        self,
        tenant_id: str,
        asset_id: str,
        start_date: datetime,
        end_date: datetime,
        fields: Sequence[str] | None = None,
    ) -> list[ConsumptionValue]:
        """Fetch consumption rows with ``start_date <= started_at <= end_date``.

        Args:
            tenant_id: Owning tenant.
            asset_id: Asset whose history is read.
            start_date: Inclusive lower bound.
            end_date: Inclusive upper bound.
            fields: Projection; ``started_at`` is always included. All fields
                when omitted.

        Returns:
            Values ordered by ascending ``started_at``.

        Raises:
            AssetValidationError: If a requested field does not exist.
        """
        wanted = list(fields) if fields else list(CONSUMPTION_VALUE_FIELDS)
        unknown = [f for f in wanted if f not in CONSUMPTION_VALUE_FIELDS]
        if unknown:
            raise AssetValidationError(
                f"Unknown consumption field(s): {', '.join(unknown)}",
                detailed_messages={"allowed": list(CONSUMPTION_VALUE_FIELDS)},
            )
        if "started_at" not in wanted:
            wanted.insert(0, "started_at")

        columns = [getattr(Consumption, name) for name in wanted]
        stmt = (
            select(*columns)
            .where(
                Consumption.tenant_id == tenant_id,
                Consumption.asset_id == asset_id,
                Consumption.started_at >= start_date,
                Consumption.started_at <= end_date,
            )
            .order_by(Consumption.started_at.asc())
        )
        result = await self._session.execute(stmt)
        return [ConsumptionValue.model_validate(dict(row)) for row in result.mappings().all()]

    async def save_consumptions(
        self,
        tenant_id: str,
        asset_id: str,
        samples: Sequence[ConsumptionSample],
    ) -> int:
        """Record connector samples as history, skipping duplicates.

        Returns:
            int: Number of rows actually inserted.
        """
        rows = [
            row
            for row in (consumption_row(tenant_id, asset_id, s) for s in samples)
            if row is not None
        ]
        if not rows:
            return 0

        stmt = (
            pg_insert(Consumption)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["tenant_id", "asset_id", "started_at"])
        )
        result = await self._session.execute(stmt)
        await self._session.commit()

        inserted = result.rowcount
        logger.info(
            "Recorded %d/%d consumption(s) for asset %s",
            inserted,
            len(rows),
            asset_id,
            extra={"tenant_id": tenant_id, "asset_id": asset_id},
        )
        return inserted
