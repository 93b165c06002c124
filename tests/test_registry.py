"""
Tests for the connector registry.

CHANGELOG:
- 2026-10-11: Malformed stored settings resolve to None (STORY-111)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from asset_telemetry.connectors.http import HttpMeterConnector
from asset_telemetry.connectors.modbus import ModbusMeterConnector
from asset_telemetry.connectors.registry import (
    DEFAULT_CONNECTOR_TYPES,
    ConnectorRegistry,
    connection_id_from_ref,
)
from tests.conftest import TENANT_ID, FakeConnector


def _stored(**overrides: object) -> SimpleNamespace:
    """Mimic an AssetConnection row."""
    values = {
        "id": "conn-1",
        "name": "Gateway",
        "connection_type": "http",
        "url": "https://meters.example.com",
        "host": None,
        "port": None,
        "unit_id": None,
        "token": "secret",
        "timeout_s": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestConnectionIdFromRef:
    """Both reference forms resolve the same ID."""

    @pytest.mark.parametrize(
        "ref",
        [
            "conn-1",
            {"ID": "conn-1"},
            {"id": "conn-1"},
            {"connectionID": "conn-1"},
            {"connection_id": "conn-1"},
        ],
    )
    def test_forms(self, ref: object) -> None:
        assert connection_id_from_ref(ref) == "conn-1"  # type: ignore[arg-type]

    @pytest.mark.parametrize("ref", [None, "", {}, {"ID": ""}, {"other": "x"}])
    def test_absent(self, ref: object) -> None:
        assert connection_id_from_ref(ref) is None  # type: ignore[arg-type]


class TestDefaultConnectorTypes:
    def test_registered_types(self) -> None:
        assert DEFAULT_CONNECTOR_TYPES == {
            "modbus": ModbusMeterConnector,
            "http": HttpMeterConnector,
        }


class TestResolve:
    """ConnectorRegistry.resolve."""

    @pytest.mark.asyncio
    async def test_resolves_http_connector(self) -> None:
        lookup = AsyncMock(return_value=_stored())
        sink = AsyncMock()
        registry = ConnectorRegistry(lookup, timeout_s=12.0, sink=sink)

        connector = await registry.resolve(TENANT_ID, "conn-1")

        assert isinstance(connector, HttpMeterConnector)
        assert connector.tenant_id == TENANT_ID
        assert connector.connection_id == "conn-1"
        assert connector.timeout_s == 12.0
        lookup.assert_awaited_once_with(TENANT_ID, "conn-1")

    @pytest.mark.asyncio
    async def test_mapping_reference_uses_same_lookup(self) -> None:
        lookup = AsyncMock(return_value=_stored())
        registry = ConnectorRegistry(lookup, timeout_s=5.0)

        connector = await registry.resolve(TENANT_ID, {"ID": "conn-1"})

        assert connector is not None
        lookup.assert_awaited_once_with(TENANT_ID, "conn-1")

    @pytest.mark.asyncio
    async def test_resolves_modbus_connector(self) -> None:
        lookup = AsyncMock(
            return_value=_stored(
                connection_type="modbus", url=None, host="10.0.0.5", port=502, unit_id=3
            )
        )
        registry = ConnectorRegistry(lookup, timeout_s=5.0)

        connector = await registry.resolve(TENANT_ID, "conn-1")

        assert isinstance(connector, ModbusMeterConnector)

    @pytest.mark.asyncio
    async def test_custom_connector_types(self) -> None:
        lookup = AsyncMock(return_value=_stored(connection_type="fake"))
        registry = ConnectorRegistry(
            lookup, connector_types={"fake": FakeConnector}, timeout_s=5.0
        )

        connector = await registry.resolve(TENANT_ID, "conn-1")

        assert isinstance(connector, FakeConnector)

    @pytest.mark.asyncio
    async def test_missing_reference_returns_none_without_lookup(self) -> None:
        lookup = AsyncMock()
        registry = ConnectorRegistry(lookup, timeout_s=5.0)

        assert await registry.resolve(TENANT_ID, None) is None
        lookup.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_connection_returns_none(self) -> None:
        registry = ConnectorRegistry(AsyncMock(return_value=None), timeout_s=5.0)

        assert await registry.resolve(TENANT_ID, "conn-404") is None

    @pytest.mark.asyncio
    async def test_unregistered_type_returns_none(self) -> None:
        lookup = AsyncMock(return_value=_stored(connection_type="ocpp"))
        registry = ConnectorRegistry(lookup, timeout_s=5.0)

        assert await registry.resolve(TENANT_ID, "conn-1") is None

    @pytest.mark.asyncio
    async def test_rejected_settings_return_none(self) -> None:
        lookup = AsyncMock(return_value=_stored(url="http://insecure.example.com"))
        registry = ConnectorRegistry(lookup, timeout_s=5.0)

        assert await registry.resolve(TENANT_ID, "conn-1") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [{"port": "not-a-port"}, {"connection_type": None}, {"timeout_s": "soon"}],
    )
    async def test_malformed_stored_settings_return_none(self, overrides: dict) -> None:
        lookup = AsyncMock(return_value=_stored(**overrides))
        registry = ConnectorRegistry(lookup, timeout_s=5.0)

        assert await registry.resolve(TENANT_ID, "conn-1") is None
        lookup.assert_awaited_once_with(TENANT_ID, "conn-1")

    @pytest.mark.asyncio
    async def test_per_connection_timeout_overrides_default(self) -> None:
        lookup = AsyncMock(return_value=_stored(timeout_s=3.0))
        registry = ConnectorRegistry(lookup, timeout_s=30.0)

        connector = await registry.resolve(TENANT_ID, "conn-1")

        assert connector is not None
        assert connector.timeout_s == 3.0
