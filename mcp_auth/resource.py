"""
Protected-resource side: Bearer token dependency for MCP routes, and GET /me.
Every verification failure collapses to the same 401 invalid_token.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mcp_auth.deps import get_context
from mcp_auth.errors import Unauthorized
from mcp_auth.models import AccessTokenInfo
from mcp_auth.server import AuthContext

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def _www_authenticate(ctx: AuthContext, error: str | None = None, description: str | None = None) -> str:
    parts = []
    if error:
        parts.append(f'error="{error}"')
    if description:
        parts.append(f'error_description="{description}"')
    parts.append(f'resource_metadata="{ctx.settings.audience}/.well-known/oauth-protected-resource"')
    return "Bearer " + ", ".join(parts)


def require_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    ctx: Annotated[AuthContext, Depends(get_context)],
) -> AccessTokenInfo:
    """Dependency: valid Bearer token -> AccessTokenInfo. Raises 401 otherwise."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "invalid_token", "error_description": "Missing Authorization header"},
            headers={"WWW-Authenticate": _www_authenticate(ctx, "invalid_token", "Missing Authorization header")},
        )
    try:
        return ctx.server.verify_access_token(credentials.credentials)
    except Unauthorized as exc:
        raise HTTPException(
            status_code=exc.status_code,
            detail=exc.to_dict(),
            headers={"WWW-Authenticate": _www_authenticate(ctx, exc.error, exc.description)},
        )


@router.get("/me")
def me(info: Annotated[AccessTokenInfo, Depends(require_access_token)]):
    """Return what the presented access token grants."""
    return {"client_id": info.client_id, "scopes": info.scopes, "expires_at": info.expires_at}
