"""Business services of the asset telemetry core."""
