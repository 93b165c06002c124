"""
Asset telemetry service package.

Multi-tenant REST service for asset records (meters, batteries, production
and consumption devices). Resolves a pluggable connector per asset, checks
connector health, merges live consumption readings into the asset snapshot,
serves historical consumption and lists assets in error.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""
