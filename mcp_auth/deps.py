"""
FastAPI dependencies shared by the routers.
"""
from fastapi import HTTPException, Request

from mcp_auth.errors import OAuthError
from mcp_auth.server import AuthContext


def get_context(request: Request) -> AuthContext:
    return request.app.state.auth


def oauth_http_error(exc: OAuthError, headers: dict | None = None) -> HTTPException:
    """Map a core error onto an HTTPException with an {"error", "error_description"} detail."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict(), headers=headers)
