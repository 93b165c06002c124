"""
Connector contract shared by every connector variant.

Defines the connection settings a connector is built from, the abstract
AssetConnector handle (health check plus consumption retrieval), the sink
protocol used when samples must be persisted, and ``call_with_timeout``
which bounds any connector call.

CHANGELOG:
- 2026-10-07: Add call_with_timeout, per-connection timeout override (STORY-104)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, ClassVar, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict

from asset_telemetry.errors import ConnectorFailureError
from asset_telemetry.models import ConsumptionSample

if TYPE_CHECKING:
    from asset_telemetry.db.models import Asset

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConnectionSettings(BaseModel):
    """Connector settings of one stored asset connection.

    Built from an :class:`~asset_telemetry.db.models.AssetConnection` row.
    Which fields matter depends on ``connection_type``: Modbus connectors use
    host/port/unit_id, HTTP connectors use url/token.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str = ""
    connection_type: str
    url: str | None = None
    host: str | None = None
    port: int | None = None
    unit_id: int | None = None
    token: str | None = None
    timeout_s: float | None = None


class ConsumptionSink(Protocol):
    """Anything that can record retrieved samples as asset history."""

    async def save_consumptions(
        self,
        tenant_id: str,
        asset_id: str,
        samples: Sequence[ConsumptionSample],
    ) -> int: ...


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout_s: float,
    *,
    operation: str,
    connection_id: str,
) -> T:
    """Await a connector call, converting a timeout into ConnectorFailureError.

    Args:
        awaitable: The connector coroutine to run.
        timeout_s: Upper bound in seconds.
        operation: Short name of the call, used in the error message.
        connection_id: Connection the call targets, for diagnostics.

    Returns:
        Whatever the awaitable returns.

    Raises:
        ConnectorFailureError: If the call does not finish within ``timeout_s``.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_s)
    except TimeoutError:
        raise ConnectorFailureError(
            f"Connector {operation} timed out after {timeout_s:g}s",
            detailed_messages={
                "connectionID": connection_id,
                "operation": operation,
                "timeoutS": timeout_s,
            },
        ) from None


class AssetConnector(ABC):
    """Handle to the external system behind an asset.

    Subclasses set ``connection_type`` (the key they are registered under)
    and implement :meth:`check_connection` and :meth:`read_consumptions`.

    Args:
        tenant_id: Tenant the connection belongs to.
        settings: Stored connection settings.
        timeout_s: Default timeout for a single call, overridden by
            ``settings.timeout_s`` when set.
        sink: Where samples go when a retrieval asks for persistence.
    """

    connection_type: ClassVar[str]

    def __init__(
        self,
        tenant_id: str,
        settings: ConnectionSettings,
        *,
        timeout_s: float,
        sink: ConsumptionSink | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.settings = settings
        self._default_timeout_s = timeout_s
        self._sink = sink

    @property
    def connection_id(self) -> str:
        return self.settings.id

    @property
    def timeout_s(self) -> float:
        """Effective per-call timeout in seconds."""
        if self.settings.timeout_s is not None and self.settings.timeout_s > 0:
            return self.settings.timeout_s
        return self._default_timeout_s

    @abstractmethod
    async def check_connection(self) -> None:
        """Check the external system.

        Raises:
            ConnectorFailureError: If the system cannot be reached or answers
                with an error.
        """

    @abstractmethod
    async def read_consumptions(self, asset: Asset) -> list[ConsumptionSample]:
        """Read the latest consumption samples of an asset, newest first."""

    async def retrieve_consumptions(
        self,
        asset: Asset,
        persist: bool,
    ) -> list[ConsumptionSample]:
        """Read samples and, when ``persist`` is set, record them as history.

        Args:
            asset: The asset to read for.
            persist: Hand the samples to the consumption sink.

        Returns:
            The samples read, possibly empty.
        """
        samples = await self.read_consumptions(asset)
        if persist and samples and self._sink is not None:
            saved = await self._sink.save_consumptions(self.tenant_id, asset.id, samples)
            logger.debug(
                "Recorded %d of %d sample(s) for asset %s",
                saved,
                len(samples),
                asset.id,
            )
        return samples
