"""
Authorization endpoint and consent step.
GET /authorize: validate the request, render the consent page. POST /consent: check the
consent password, issue a code, redirect back to the client.
"""
import html
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from mcp_auth.audit import (
    EVENT_CODE_ISSUED,
    EVENT_CONSENT_ALLOW,
    EVENT_CONSENT_FAIL,
    get_client_ip,
    log_audit,
    OUTCOME_FAIL,
    OUTCOME_SUCCESS,
)
from mcp_auth.deps import get_context
from mcp_auth.errors import AccessDenied, OAuthError
from mcp_auth.models import AuthorizationRequest
from mcp_auth.server import AuthContext, split_scope

logger = logging.getLogger(__name__)
router = APIRouter()


def e(s: str | None) -> str:
    return html.escape(s or "")


def _error_page(title: str, message: str, status_code: int) -> HTMLResponse:
    body = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{e(title)}</title></head>
<body><main><h1>{e(title)}</h1><p>{e(message)}</p></main></body>
</html>"""
    return HTMLResponse(body, status_code=status_code)


def render_consent_page(auth_request: AuthorizationRequest, resource_name: str) -> str:
    client = auth_request.client
    scope = " ".join(auth_request.scopes or [])
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{e(resource_name)} - Authorize</title>
</head>
<body>
  <main>
    <h1>{e(resource_name)}</h1>
    <p>An application wants to connect to your {e(resource_name)} server.</p>
    <p><strong>Client:</strong> {e(client.client_name or client.client_id)}</p>
    <p><strong>Scopes:</strong> {e(scope or "(none)")}</p>
    <form method="post" action="/consent">
      <input type="hidden" name="client_id" value="{e(client.client_id)}"/>
      <input type="hidden" name="redirect_uri" value="{e(auth_request.redirect_uri)}"/>
      <input type="hidden" name="state" value="{e(auth_request.state)}"/>
      <input type="hidden" name="code_challenge" value="{e(auth_request.code_challenge)}"/>
      <input type="hidden" name="code_challenge_method" value="{e(auth_request.code_challenge_method)}"/>
      <input type="hidden" name="scope" value="{e(scope)}"/>
      <input type="hidden" name="resource" value="{e(auth_request.resource)}"/>
      <label for="password">Enter the consent password:</label>
      <input type="password" id="password" name="password" required autofocus/>
      <button type="submit">Authorize</button>
    </form>
  </main>
</body>
</html>"""


@router.get("/authorize", response_class=HTMLResponse)
def authorize_get(
    response_type: str | None = None,
    client_id: str | None = None,
    redirect_uri: str | None = None,
    scope: str | None = None,
    state: str | None = None,
    code_challenge: str | None = None,
    code_challenge_method: str | None = None,
    resource: str | None = None,
    ctx: AuthContext = Depends(get_context),
):
    """
    OAuth 2.1 authorization endpoint. Requires response_type=code, a registered
    client and redirect_uri, and a PKCE code_challenge. Renders the consent form.
    """
    if response_type != "code":
        return _error_page("Invalid request", "response_type must be 'code'.", 400)

    try:
        auth_request = ctx.server.begin_authorization(
            client_id,
            redirect_uri=redirect_uri,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
            state=state,
            scopes=split_scope(scope),
            resource=resource,
        )
    except OAuthError as exc:
        return _error_page("Invalid request", exc.description, 400)

    return HTMLResponse(render_consent_page(auth_request, ctx.settings.resource_name))


@router.post("/consent")
def consent_post(
    request: Request,
    client_id: str = Form(""),
    redirect_uri: str = Form(""),
    state: str = Form(""),
    code_challenge: str = Form(""),
    code_challenge_method: str = Form(""),
    scope: str = Form(""),
    resource: str = Form(""),
    password: str = Form(""),
    ctx: AuthContext = Depends(get_context),
):
    """
    Consent submission. Wrong password -> 403 with no hint about the rest of the request.
    Right password -> 302 to redirect_uri?code=...&state=...
    """
    ip = get_client_ip(request, ctx.settings.trust_proxy)
    request.app.state.consent_limiter.enforce(ip)

    form = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": code_challenge_method,
        "scope": scope,
        "resource": resource,
        "password": password,
    }
    try:
        location = ctx.server.submit_consent(form)
    except AccessDenied:
        log_audit(EVENT_CONSENT_FAIL, client_id=client_id, ip=ip, outcome=OUTCOME_FAIL)
        return _error_page("Access Denied", "Incorrect password.", 403)
    except OAuthError as exc:
        log_audit(EVENT_CONSENT_ALLOW, client_id=client_id, ip=ip, outcome=OUTCOME_FAIL)
        return _error_page("Invalid request", exc.description, 400)

    log_audit(EVENT_CONSENT_ALLOW, client_id=client_id, ip=ip, outcome=OUTCOME_SUCCESS)
    log_audit(EVENT_CODE_ISSUED, client_id=client_id, ip=ip, outcome=OUTCOME_SUCCESS)
    return RedirectResponse(url=location, status_code=302)
