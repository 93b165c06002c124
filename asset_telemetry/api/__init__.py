"""HTTP API of the asset telemetry service."""

REST_RESPONSE_SUCCESS: dict[str, str] = {"status": "Success"}
"""Generic acknowledgment body of operations that return no data."""
