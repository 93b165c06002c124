"""
Tenant bearer tokens for the asset API.

Every request carries ``Authorization: Bearer {token}``; the token maps to
the tenant whose assets the request reads or changes. The mapping comes from
TENANT_TOKENS (``token:tenant_id`` pairs, comma-separated). Tokens are
compared with secrets.compare_digest against every registered token.

CHANGELOG:
- 2026-10-09: Log rejected requests, compare against all tokens (STORY-108)
- 2026-10-05: Initial creation (STORY-102)

TODO:
- None
"""

import logging
import secrets

from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)


def parse_tenant_tokens(raw: str) -> dict[str, str]:
    """Parse TENANT_TOKENS into a token -> tenant_id map.

    The tenant ID is everything after the first colon, so it may itself
    contain colons. Entries missing either half are skipped.

    Args:
        raw: ``"token1:tenant1,token2:tenant2"``.

    Returns:
        dict[str, str]: token -> tenant_id, empty if nothing usable.
    """
    token_map: dict[str, str] = {}
    skipped = 0
    for entry in (raw or "").split(","):
        if not entry.strip():
            continue
        token, sep, tenant_id = (part.strip() for part in entry.partition(":"))
        if not sep or not token or not tenant_id:
            skipped += 1
            continue
        token_map[token] = tenant_id
    if skipped:
        logger.warning("Skipped %d malformed TENANT_TOKENS entr(y/ies)", skipped)
    return token_map


def verify_bearer_token(token: str, token_map: dict[str, str]) -> str | None:
    """Return the tenant of ``token``, or None if it is not registered.

    Every registered token is compared, whether or not a match was
    already found.
    """
    if not token:
        return None
    presented = token.encode("utf-8")
    tenant: str | None = None
    for registered, tenant_id in token_map.items():
        if secrets.compare_digest(presented, registered.encode("utf-8")):
            tenant = tenant_id
    return tenant


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class BearerAuth:
    """Resolves the tenant of a request from its bearer token.

    Attributes:
        token_map: token -> tenant_id.
        scheme: HTTPBearer scheme, so the OpenAPI docs show the security
            requirement.
    """

    def __init__(self, token_map: dict[str, str]) -> None:
        self.token_map = token_map
        self.scheme = HTTPBearer(auto_error=False)

    async def verify(self, request: Request) -> str:
        """FastAPI dependency returning the tenant_id of the request.

        Raises:
            HTTPException: 401 if the token is missing or unknown.
        """
        credentials: HTTPAuthorizationCredentials | None = await self.scheme(request)
        if credentials is None:
            raise _unauthorized("Missing authorization credentials.")

        tenant_id = verify_bearer_token(credentials.credentials, self.token_map)
        if tenant_id is None:
            logger.warning(
                "Rejected %s %s: unknown bearer token",
                request.method,
                request.url.path,
                extra={"action": "auth_rejected"},
            )
            raise _unauthorized("Invalid or expired token.")
        return tenant_id
