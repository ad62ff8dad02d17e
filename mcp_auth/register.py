"""
Dynamic client registration (POST /register, RFC 7591).
Unauthenticated: only expose behind a trusted network boundary.
"""
import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from mcp_auth.audit import EVENT_CLIENT_REGISTERED, get_client_ip, log_audit, OUTCOME_FAIL, OUTCOME_SUCCESS
from mcp_auth.deps import get_context, oauth_http_error
from mcp_auth.errors import InvalidClientMetadata, OAuthError
from mcp_auth.server import AuthContext

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", status_code=201)
async def register(request: Request, ctx: AuthContext = Depends(get_context)):
    ip = get_client_ip(request, ctx.settings.trust_proxy)
    try:
        try:
            metadata = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise InvalidClientMetadata("Request body must be JSON")
        if not isinstance(metadata, dict):
            raise InvalidClientMetadata("Request body must be a JSON object")
        client = ctx.server.register_client(metadata)
    except OAuthError as exc:
        log_audit(EVENT_CLIENT_REGISTERED, ip=ip, outcome=OUTCOME_FAIL)
        raise oauth_http_error(exc)

    log_audit(EVENT_CLIENT_REGISTERED, client_id=client.client_id, ip=ip, outcome=OUTCOME_SUCCESS)
    return JSONResponse(client.to_dict(), status_code=201, headers={"Cache-Control": "no-store"})
