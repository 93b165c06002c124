"""
HTTPS connector for meter gateways exposing a JSON API.

``check_connection`` is a GET on the configured base URL expecting a 2xx.
Retrieval is ``GET {url}/meters/{meter_id}/consumption``, which answers with
one camelCase sample object or a list of them (newest first). 204 and an
empty list both mean no reading is available.

The base URL must use HTTPS and TLS certificate verification is always on.
When the connection carries a token it is sent as a Bearer credential.

CHANGELOG:
- 2026-10-07: Bound every call by the connection timeout (STORY-104)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import TypeAdapter, ValidationError

from asset_telemetry.connectors.base import (
    AssetConnector,
    ConnectionSettings,
    ConsumptionSink,
    call_with_timeout,
)
from asset_telemetry.errors import ConnectorFailureError, InvalidAssetOperationError
from asset_telemetry.models import ConsumptionSample

if TYPE_CHECKING:
    from asset_telemetry.db.models import Asset

logger = logging.getLogger(__name__)

_SAMPLES_ADAPTER = TypeAdapter(list[ConsumptionSample])


class HttpMeterConnector(AssetConnector):
    """Connector reading consumption from an HTTPS meter gateway.

    Raises:
        ValueError: If the connection has no URL or it is not ``https://``.
    """

    connection_type = "http"

    def __init__(
        self,
        tenant_id: str,
        settings: ConnectionSettings,
        *,
        timeout_s: float,
        sink: ConsumptionSink | None = None,
    ) -> None:
        super().__init__(tenant_id, settings, timeout_s=timeout_s, sink=sink)
        url = settings.url or ""
        if not url.lower().startswith("https://"):
            raise ValueError(
                f"HTTP connection '{settings.id}' must use an HTTPS URL (got: '{url}')"
            )
        self._base_url = url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def _get(self, url: str, operation: str) -> httpx.Response:
        """GET ``url`` under the connection timeout, mapping failures."""

        async def _request() -> httpx.Response:
            async with httpx.AsyncClient(
                verify=True,
                timeout=httpx.Timeout(self.timeout_s),
            ) as client:
                return await client.get(url, headers=self._headers())

        try:
            response = await call_with_timeout(
                _request(),
                self.timeout_s,
                operation=operation,
                connection_id=self.connection_id,
            )
        except httpx.HTTPError as exc:
            raise ConnectorFailureError(
                f"Request to meter gateway failed: {exc}",
                detailed_messages={
                    "connectionID": self.connection_id,
                    "url": url,
                    "error": type(exc).__name__,
                },
            ) from exc

        if not response.is_success:
            raise ConnectorFailureError(
                f"Meter gateway answered HTTP {response.status_code}",
                detailed_messages={
                    "connectionID": self.connection_id,
                    "url": url,
                    "statusCode": response.status_code,
                },
            )
        return response

    async def check_connection(self) -> None:
        await self._get(self._base_url, "check_connection")

    async def read_consumptions(self, asset: Asset) -> list[ConsumptionSample]:
        """Fetch the latest readings of the asset's meter.

        Raises:
            InvalidAssetOperationError: If the asset has no meter ID.
            ConnectorFailureError: On transport errors, non-2xx answers or a
                body that is not a sample object or list.
        """
        if not asset.meter_id:
            raise InvalidAssetOperationError(
                f"Asset ID '{asset.id}' has no meter ID",
                detailed_messages={"connectionID": self.connection_id},
            )
        url = f"{self._base_url}/meters/{asset.meter_id}/consumption"
        response = await self._get(url, "retrieve_consumptions")
        if response.status_code == 204 or not response.content:
            return []

        try:
            body: Any = response.json()
            if isinstance(body, dict):
                body = [body]
            return _SAMPLES_ADAPTER.validate_python(body)
        except (ValueError, ValidationError) as exc:
            raise ConnectorFailureError(
                "Meter gateway returned a malformed consumption body",
                detailed_messages={
                    "connectionID": self.connection_id,
                    "url": url,
                    "error": str(exc),
                },
            ) from exc
