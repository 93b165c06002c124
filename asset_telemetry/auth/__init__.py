"""
Authentication package.

Exports the BearerAuth dependency class and token parsing utilities
for use by FastAPI route handlers.

CHANGELOG:
- 2026-10-05: Export BearerAuth, parse_tenant_tokens, verify_bearer_token (STORY-102)

TODO:
- None
"""

from asset_telemetry.auth.bearer import BearerAuth, parse_tenant_tokens, verify_bearer_token

__all__ = ["BearerAuth", "parse_tenant_tokens", "verify_bearer_token"]
