"""
Well-known metadata: authorization server (RFC 8414) and protected resource (RFC 9728).
"""
from fastapi import APIRouter, Depends

from mcp_auth.deps import get_context
from mcp_auth.pkce import SUPPORTED_METHODS
from mcp_auth.server import AuthContext

router = APIRouter()


@router.get("/.well-known/oauth-authorization-server")
def authorization_server_metadata(ctx: AuthContext = Depends(get_context)):
    issuer = ctx.settings.issuer
    return {
        "issuer": issuer,
        "authorization_endpoint": f"{issuer}/authorize",
        "token_endpoint": f"{issuer}/token",
        "registration_endpoint": f"{issuer}/register",
        "response_types_supported": ["code"],
        "grant_types_supported": ["authorization_code", "refresh_token"],
        "code_challenge_methods_supported": list(SUPPORTED_METHODS),
        "token_endpoint_auth_methods_supported": ["none"],
        "scopes_supported": list(ctx.settings.scopes_supported),
    }


@router.get("/.well-known/oauth-protected-resource")
def protected_resource_metadata(ctx: AuthContext = Depends(get_context)):
    return {
        "resource": ctx.settings.audience,
        "authorization_servers": [ctx.settings.issuer],
        "scopes_supported": list(ctx.settings.scopes_supported),
        "bearer_methods_supported": ["header"],
        "resource_name": ctx.settings.resource_name,
    }
