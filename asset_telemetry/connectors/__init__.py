"""
Pluggable asset connectors.

A connector talks to the external system behind an asset (a Modbus meter,
an HTTP meter gateway) and produces ConsumptionSample readings. Connectors
are resolved per asset by the ConnectorRegistry from the tenant's stored
connection settings.

CHANGELOG:
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from asset_telemetry.connectors.base import (
    AssetConnector,
    ConnectionSettings,
    ConsumptionSink,
    call_with_timeout,
)
from asset_telemetry.connectors.registry import (
    DEFAULT_CONNECTOR_TYPES,
    ConnectorRegistry,
    connection_id_from_ref,
)

__all__ = [
    "DEFAULT_CONNECTOR_TYPES",
    "AssetConnector",
    "ConnectionSettings",
    "ConnectorRegistry",
    "ConsumptionSink",
    "call_with_timeout",
    "connection_id_from_ref",
]
