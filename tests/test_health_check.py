"""
Tests for the connector health check.

CHANGELOG:
- 2026-10-11: Per-connection timeout bounds the check (STORY-111)
- 2026-10-07: Cover check timeout (STORY-104)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

import asyncio
import logging

import pytest

from asset_telemetry.errors import ConnectorFailureError
from asset_telemetry.services.health_check import ConnectionHealthChecker
from tests.conftest import TENANT_ID, FakeConnector, make_settings


class _SlowConnector(FakeConnector):
    async def check_connection(self) -> None:
        await asyncio.sleep(5)


class _BriefConnector(FakeConnector):
    async def check_connection(self) -> None:
        await asyncio.sleep(0.2)


class TestConnectionHealthChecker:
    """ConnectionHealthChecker.check converts every outcome into a value."""

    @pytest.mark.asyncio
    async def test_healthy_check(self) -> None:
        result = await ConnectionHealthChecker().check(
            FakeConnector(), tenant_id=TENANT_ID
        )

        assert result.healthy is True
        assert result.error is None
        assert result.details == {}

    @pytest.mark.asyncio
    async def test_connector_failure_becomes_unhealthy(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        error = ConnectorFailureError(
            "Meter gateway answered HTTP 503", detailed_messages={"statusCode": 503}
        )
        connector = FakeConnector(check_error=error)

        with caplog.at_level(logging.ERROR, logger="asset_telemetry.services.health_check"):
            result = await ConnectionHealthChecker().check(connector, tenant_id=TENANT_ID)

        assert result.healthy is False
        assert result.error == "Meter gateway answered HTTP 503"
        assert result.details["connectionID"] == "conn-1"
        assert result.details["error"] == "ConnectorFailureError"
        assert result.details["statusCode"] == 503

        records = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(records) == 1
        assert records[0].tenant_id == TENANT_ID
        assert records[0].exc_info is not None

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_unhealthy(self) -> None:
        connector = FakeConnector(check_error=RuntimeError("boom"))

        result = await ConnectionHealthChecker().check(connector, tenant_id=TENANT_ID)

        assert result.healthy is False
        assert result.details["error"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_timeout_becomes_unhealthy(self) -> None:
        result = await ConnectionHealthChecker().check(
            _SlowConnector(timeout_s=0.01), tenant_id=TENANT_ID
        )

        assert result.healthy is False
        assert "timed out" in (result.error or "")

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        connector = FakeConnector(check_error=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await ConnectionHealthChecker().check(connector, tenant_id=TENANT_ID)

    @pytest.mark.asyncio
    async def test_connection_timeout_override_extends_check(self) -> None:
        connector = _BriefConnector(settings=make_settings(timeout_s=2.0), timeout_s=0.05)

        result = await ConnectionHealthChecker().check(connector, tenant_id=TENANT_ID)

        assert result.healthy is True

    @pytest.mark.asyncio
    async def test_connection_timeout_override_shortens_check(self) -> None:
        connector = _SlowConnector(settings=make_settings(timeout_s=0.01), timeout_s=30.0)

        result = await ConnectionHealthChecker().check(connector, tenant_id=TENANT_ID)

        assert result.healthy is False
        assert result.details["timeoutS"] == 0.01
