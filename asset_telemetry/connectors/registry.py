"""
Connector registry: resolves the connector of an asset.

Maps a connection type to the connector class implementing it and builds a
connector from the tenant's stored connection settings. The settings lookup
is injected (in the service it is AssetStorage.get_asset_connection), so the
registry itself performs no I/O and is trivially replaceable in tests.

Absence is a value: a missing reference, an unknown connection ID, an
unregistered connection type, malformed stored settings or settings the
connector rejects all resolve to ``None``. Callers decide whether that is
an error.

CHANGELOG:
- 2026-10-11: Malformed stored settings resolve to None (STORY-111)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from asset_telemetry.connectors.base import (
    AssetConnector,
    ConnectionSettings,
    ConsumptionSink,
)
from asset_telemetry.connectors.http import HttpMeterConnector
from asset_telemetry.connectors.modbus import ModbusMeterConnector

logger = logging.getLogger(__name__)

ConnectionLookup = Callable[[str, str], Awaitable[Any | None]]
"""``lookup(tenant_id, connection_id)`` returning stored settings or None."""

DEFAULT_CONNECTOR_TYPES: dict[str, type[AssetConnector]] = {
    ModbusMeterConnector.connection_type: ModbusMeterConnector,
    HttpMeterConnector.connection_type: HttpMeterConnector,
}

_REF_KEYS = ("ID", "id", "connectionID", "connection_id")


def connection_id_from_ref(connection_ref: str | Mapping[str, Any] | None) -> str | None:
    """Extract the connection ID from a bare ID or a filter mapping.

    Args:
        connection_ref: Either the connection ID itself or a mapping carrying
            it under ``ID``, ``id``, ``connectionID`` or ``connection_id``.

    Returns:
        The connection ID, or ``None`` if none is present.
    """
    if connection_ref is None:
        return None
    if isinstance(connection_ref, str):
        return connection_ref or None
    for key in _REF_KEYS:
        value = connection_ref.get(key)
        if value:
            return str(value)
    return None


class ConnectorRegistry:
    """Resolve connectors by connection reference.

    Args:
        lookup: Async callable returning the stored settings (any object with
            the ConnectionSettings attributes) of a tenant's connection.
        connector_types: Connection type to connector class mapping,
            :data:`DEFAULT_CONNECTOR_TYPES` when omitted.
        timeout_s: Default per-call timeout given to every connector.
        sink: Consumption sink given to every connector.
    """

    def __init__(
        self,
        lookup: ConnectionLookup,
        *,
        connector_types: Mapping[str, type[AssetConnector]] | None = None,
        timeout_s: float,
        sink: ConsumptionSink | None = None,
    ) -> None:
        self._lookup = lookup
        self._connector_types = dict(
            DEFAULT_CONNECTOR_TYPES if connector_types is None else connector_types
        )
        self._timeout_s = timeout_s
        self._sink = sink

    async def resolve(
        self,
        tenant_id: str,
        connection_ref: str | Mapping[str, Any] | None,
    ) -> AssetConnector | None:
        """Build the connector for a connection reference.

        Args:
            tenant_id: Tenant owning the connection.
            connection_ref: Connection ID or filter mapping carrying it.

        Returns:
            A ready connector, or ``None`` if none can be resolved.
        """
        connection_id = connection_id_from_ref(connection_ref)
        if connection_id is None:
            logger.debug("No connection reference given for tenant %s", tenant_id)
            return None

        stored = await self._lookup(tenant_id, connection_id)
        if stored is None:
            logger.debug(
                "Connection %s not found for tenant %s", connection_id, tenant_id
            )
            return None

        try:
            settings = ConnectionSettings.model_validate(stored)
            connector_cls = self._connector_types.get(settings.connection_type)
            if connector_cls is None:
                logger.warning(
                    "Connection %s has unregistered type '%s'",
                    connection_id,
                    settings.connection_type,
                )
                return None
            return connector_cls(
                tenant_id,
                settings,
                timeout_s=self._timeout_s,
                sink=self._sink,
            )
        except ValueError as exc:
            logger.warning(
                "Connection %s has unusable settings: %s", connection_id, exc
            )
            return None
