"""
Connector health check.

Runs a connector's check under that connector's own timeout and reports
the outcome as a value. Every failure, whatever its type, becomes
``healthy=False`` plus a diagnostic payload and is logged at error level with
its traceback; only task cancellation passes through.

CHANGELOG:
- 2026-10-11: Bound the check by the connection's effective timeout (STORY-111)
- 2026-10-07: Bound the check by CONNECTOR_TIMEOUT_S (STORY-104)
- 2026-10-06: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from asset_telemetry.connectors.base import AssetConnector, call_with_timeout
from asset_telemetry.errors import AssetServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HealthCheckResult:
    """Outcome of a connector check.

    Attributes:
        healthy: Whether the check succeeded.
        error: Message of the failure, ``None`` when healthy.
        details: Diagnostic context of the failure.
    """

    healthy: bool
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class ConnectionHealthChecker:
    """Check connectors and turn failures into HealthCheckResult values.

    Each check is bounded by ``connector.timeout_s``: the per-connection
    override when set, CONNECTOR_TIMEOUT_S otherwise.
    """

    async def check(self, connector: AssetConnector, *, tenant_id: str) -> HealthCheckResult:
        """Run ``connector.check_connection()`` and report the outcome.

        Args:
            connector: The resolved connector to check.
            tenant_id: Tenant the check runs for, logged on failure.

        Returns:
            HealthCheckResult: ``healthy=True`` on success, otherwise the
            error message and diagnostic details.
        """
        try:
            await call_with_timeout(
                connector.check_connection(),
                connector.timeout_s,
                operation="check_connection",
                connection_id=connector.connection_id,
            )
        except Exception as exc:
            details: dict[str, Any] = (
                dict(exc.detailed_messages) if isinstance(exc, AssetServiceError) else {}
            )
            details.update(
                connectionID=connector.connection_id,
                connectionType=connector.connection_type,
                error=type(exc).__name__,
                message=str(exc),
            )
            logger.error(
                "Connection check of %s failed: %s",
                connector.connection_id,
                exc,
                exc_info=True,
                extra={
                    "tenant_id": tenant_id,
                    "action": "check_connection",
                    "detailed_messages": details,
                },
            )
            return HealthCheckResult(healthy=False, error=str(exc), details=details)

        return HealthCheckResult(healthy=True)
