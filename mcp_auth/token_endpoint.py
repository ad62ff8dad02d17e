"""
Token endpoint (POST /token). Authorization code exchange and refresh_token grant with rotation.
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import JSONResponse

from mcp_auth.audit import (
    EVENT_TOKEN_FAIL,
    EVENT_TOKEN_ISSUED,
    EVENT_TOKEN_REFRESHED,
    get_client_ip,
    log_audit,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
)
from mcp_auth.deps import get_context, oauth_http_error
from mcp_auth.errors import InvalidRequest, OAuthError
from mcp_auth.models import TokenBundle
from mcp_auth.server import AuthContext, split_scope

logger = logging.getLogger(__name__)
router = APIRouter()

_NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}


def _token_response(bundle: TokenBundle) -> JSONResponse:
    return JSONResponse(bundle.to_dict(), headers=_NO_STORE)


@router.post("/token")
def token(
    request: Request,
    grant_type: str = Form(...),
    client_id: str | None = Form(None),
    code: str | None = Form(None),
    code_verifier: str | None = Form(None),
    redirect_uri: str | None = Form(None),
    refresh_token: str | None = Form(None),
    scope: str | None = Form(None),
    resource: str | None = Form(None),
    ctx: AuthContext = Depends(get_context),
):
    """
    authorization_code: exchange code + PKCE verifier for access_token and refresh_token.
    refresh_token: exchange refresh_token for a new pair; the presented token is rotated out.
    """
    ip = get_client_ip(request, ctx.settings.trust_proxy)
    request.app.state.token_limiter.enforce(ip)

    if grant_type not in ("authorization_code", "refresh_token"):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "unsupported_grant_type",
                "error_description": "Only authorization_code and refresh_token are supported",
            },
        )

    try:
        client = ctx.server.get_client(client_id)
        if grant_type == "authorization_code":
            if not code or not code_verifier:
                raise InvalidRequest("code and code_verifier are required for authorization_code grant")
            bundle = ctx.server.exchange_code(
                client,
                code,
                code_verifier,
                redirect_uri=redirect_uri or None,
                resource=resource or None,
            )
            event = EVENT_TOKEN_ISSUED
        else:
            if not refresh_token:
                raise InvalidRequest("refresh_token is required")
            bundle = ctx.server.refresh(
                client,
                refresh_token,
                requested_scopes=split_scope(scope),
                resource=resource or None,
            )
            event = EVENT_TOKEN_REFRESHED
    except OAuthError as exc:
        log_audit(EVENT_TOKEN_FAIL, client_id=client_id, ip=ip, outcome=OUTCOME_FAIL)
        raise oauth_http_error(exc, headers=_NO_STORE)

    log_audit(event, client_id=client.client_id, ip=ip, outcome=OUTCOME_SUCCESS)
    return _token_response(bundle)
