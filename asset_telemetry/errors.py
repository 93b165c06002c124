"""
Domain errors raised by the asset telemetry core.

Each error carries the HTTP status and machine-readable code the API layer
returns, so services raise domain errors and never build HTTP responses.

CHANGELOG:
- 2026-10-09: Add ConcurrentUpdateError (STORY-108)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

from typing import Any


class AssetServiceError(Exception):
    """Base class for errors surfaced to API callers.

    Attributes:
        message: Human-readable description returned as ``detail``.
        detailed_messages: Extra diagnostic context for the logs only.
    """

    status_code: int = 500
    error_code: str = "general_error"

    def __init__(
        self,
        message: str,
        *,
        detailed_messages: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detailed_messages = detailed_messages or {}


class AssetValidationError(AssetServiceError):
    """Missing or contradictory request input."""

    status_code = 422
    error_code = "validation_error"


class AssetNotFoundError(AssetServiceError):
    """The asset (or a site area it references) does not exist."""

    status_code = 404
    error_code = "not_found"


class ConnectorNotConfiguredError(AssetServiceError):
    """No connector resolves for the asset's connection reference."""

    status_code = 409
    error_code = "not_configured"


class InvalidAssetOperationError(AssetServiceError):
    """The asset structurally cannot support the requested action."""

    status_code = 400
    error_code = "invalid_operation"


class ConnectorFailureError(AssetServiceError):
    """A connector check or retrieval failed at transport or protocol level."""

    status_code = 502
    error_code = "connection_failure"


class ConcurrentUpdateError(AssetServiceError):
    """The asset changed underneath a read-modify-write, or is locked."""

    status_code = 409
    error_code = "concurrent_update"
