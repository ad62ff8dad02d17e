"""
Authorization server core: consent -> code -> token -> refresh -> verify.

Code lifecycle: Issued -> Consumed | Expired (both terminal).
Refresh token lifecycle: Active -> Rotated (terminal per value; a new Active token is issued alongside).

The server owns its stores and never touches HTTP; routes call the five
operations below through the AuthContext attached to the app.
"""
import logging
from dataclasses import dataclass
from typing import Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from mcp_auth.clients import ClientRegistry
from mcp_auth.config import ACCESS_TOKEN_EXPIRES, Settings
from mcp_auth.consent import ConsentGate
from mcp_auth.errors import (
    AccessDenied,
    ClientMismatch,
    InvalidGrant,
    InvalidRequest,
    ResourceMismatch,
    Unauthorized,
    UnknownClient,
)
from mcp_auth.models import (
    AccessTokenInfo,
    AuthorizationCodeEntry,
    AuthorizationRequest,
    RegisteredClient,
    TokenBundle,
)
from mcp_auth.pkce import SUPPORTED_METHODS, is_valid_pkce_value, verify_pkce
from mcp_auth.stores import AuthorizationCodeStore, RefreshTokenStore
from mcp_auth.tokens import AccessTokenCodec, AccessTokenError

logger = logging.getLogger(__name__)


def split_scope(scope: str | None) -> list[str] | None:
    """Space-separated scope string -> list, or None when empty."""
    if not scope or not scope.strip():
        return None
    return scope.split()


def _append_query(url: str, params: dict) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True) + list(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


class AuthorizationServer:
    def __init__(
        self,
        *,
        clients: ClientRegistry,
        codes: AuthorizationCodeStore,
        refresh_tokens: RefreshTokenStore,
        codec: AccessTokenCodec,
        consent: ConsentGate,
        access_token_expires: int = ACCESS_TOKEN_EXPIRES,
    ):
        self._clients = clients
        self._codes = codes
        self._refresh_tokens = refresh_tokens
        self._codec = codec
        self._consent = consent
        self._access_token_expires = access_token_expires

    # --- clients ---

    def register_client(self, metadata: dict) -> RegisteredClient:
        return self._clients.register(metadata)

    def get_client(self, client_id: str | None) -> RegisteredClient:
        client = self._clients.lookup(client_id)
        if client is None:
            raise UnknownClient()
        return client

    def purge_expired_codes(self) -> int:
        return self._codes.purge_expired()

    # --- authorization ---

    def _validate_request(
        self,
        client: RegisteredClient,
        redirect_uri: str | None,
        code_challenge: str | None,
        code_challenge_method: str,
    ) -> None:
        if not redirect_uri or not client.redirect_uri_allowed(redirect_uri):
            raise InvalidRequest("redirect_uri not registered for this client")
        if not code_challenge:
            raise InvalidRequest("code_challenge is required")
        if not is_valid_pkce_value(code_challenge):
            raise InvalidRequest("code_challenge must be 43-128 unreserved characters")
        if code_challenge_method not in SUPPORTED_METHODS:
            raise InvalidRequest("code_challenge_method must be S256 or plain")

    def begin_authorization(
        self,
        client_id: str | None,
        *,
        redirect_uri: str | None,
        code_challenge: str | None,
        code_challenge_method: str | None = None,
        state: str | None = None,
        scopes: list[str] | None = None,
        resource: str | None = None,
    ) -> AuthorizationRequest:
        """Validate an authorization request and return the context for the consent page. No mutation."""
        client = self.get_client(client_id)
        method = code_challenge_method or "S256"
        self._validate_request(client, redirect_uri, code_challenge, method)
        return AuthorizationRequest(
            client=client,
            redirect_uri=redirect_uri,
            code_challenge=code_challenge,
            code_challenge_method=method,
            state=state or None,
            scopes=scopes or None,
            resource=resource or None,
        )

    def submit_consent(self, form: Mapping[str, str]) -> str:
        """
        Check the consent password first; only then look at the rest of the form.
        Returns the redirect URL carrying the new code and the echoed state.
        """
        if not self._consent.check(form.get("password")):
            raise AccessDenied("Incorrect password")

        client = self.get_client(form.get("client_id"))
        redirect_uri = form.get("redirect_uri")
        code_challenge = form.get("code_challenge")
        method = form.get("code_challenge_method") or "S256"
        self._validate_request(client, redirect_uri, code_challenge, method)

        code = self._codes.issue(
            AuthorizationCodeEntry(
                client_id=client.client_id,
                code_challenge=code_challenge,
                code_challenge_method=method,
                redirect_uri=redirect_uri,
                resource=form.get("resource") or None,
                scopes=split_scope(form.get("scope")),
            )
        )
        params = {"code": code}
        state = form.get("state")
        if state:
            params["state"] = state
        return _append_query(redirect_uri, params)

    # --- token endpoint ---

    def _issue_tokens(self, client_id: str, scopes: list[str] | None) -> TokenBundle:
        # Access token first: the refresh binding is stored only once signing succeeded
        access_token = self._codec.sign(client_id, scopes, ttl=self._access_token_expires)
        refresh_token = self._refresh_tokens.issue(client_id, scopes)
        return TokenBundle(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._access_token_expires,
            scopes=scopes,
        )

    def exchange_code(
        self,
        client: RegisteredClient,
        code: str | None,
        code_verifier: str | None,
        redirect_uri: str | None = None,
        resource: str | None = None,
    ) -> TokenBundle:
        """
        Single use: the code is consumed before any check, so a failed exchange
        cannot be retried (not even by the right client).
        """
        entry = self._codes.consume(code)
        if entry is None:
            raise InvalidGrant("Invalid or expired authorization code")
        if entry.client_id != client.client_id:
            logger.warning("Code presented by client %s was issued to another client", client.client_id)
            raise ClientMismatch()
        if not verify_pkce(code_verifier, entry.code_challenge, entry.code_challenge_method):
            raise InvalidGrant("PKCE verification failed")
        if entry.resource is not None and resource != entry.resource:
            raise ResourceMismatch()
        if redirect_uri is not None and redirect_uri != entry.redirect_uri:
            raise InvalidGrant("redirect_uri mismatch")

        bundle = self._issue_tokens(client.client_id, entry.scopes)
        logger.info("authorization_code grant: tokens issued for client_id=%s", client.client_id)
        return bundle

    def refresh(
        self,
        client: RegisteredClient,
        refresh_token: str | None,
        requested_scopes: list[str] | None = None,
        resource: str | None = None,
    ) -> TokenBundle:
        """
        Rotate refresh_token. The old binding is removed atomically; if anything
        after removal fails it is reinstated, so the client keeps a usable token.
        resource is accepted for interface parity; tokens are always minted for the server URL.
        """
        binding = self._refresh_tokens.rotate(refresh_token)
        if binding is None:
            raise InvalidGrant("Invalid refresh token")
        try:
            if binding.client_id != client.client_id:
                raise InvalidGrant("Invalid refresh token")
            scopes = binding.scopes
            if requested_scopes:
                granted = set(binding.scopes or [])
                if not set(requested_scopes) <= granted:
                    raise InvalidGrant("Requested scope exceeds the original grant")
                scopes = list(requested_scopes)
            bundle = self._issue_tokens(client.client_id, scopes)
        except Exception:
            self._refresh_tokens.reinstate(refresh_token, binding)
            raise
        logger.info("refresh_token grant: tokens issued for client_id=%s (refresh token rotated)", client.client_id)
        return bundle

    # --- resource side ---

    def verify_access_token(self, token: str | None) -> AccessTokenInfo:
        if not token:
            raise Unauthorized()
        try:
            claims = self._codec.verify(token)
        except AccessTokenError as e:
            logger.debug("Access token rejected: %s", type(e).__name__)
            raise Unauthorized()
        return AccessTokenInfo(
            client_id=claims["sub"],
            scopes=list(claims.get("scopes", [])),
            expires_at=claims.get("exp"),
            token=token,
        )


@dataclass
class AuthContext:
    """Per-process state handed to request handlers via app.state."""

    settings: Settings
    server: AuthorizationServer


def build_context(settings: Settings) -> AuthContext:
    server = AuthorizationServer(
        clients=ClientRegistry(),
        codes=AuthorizationCodeStore(ttl_seconds=settings.code_ttl_seconds),
        refresh_tokens=RefreshTokenStore(),
        codec=AccessTokenCodec(settings.jwt_secret, audience=settings.audience, issuer=settings.issuer),
        consent=ConsentGate.from_settings(settings),
        access_token_expires=settings.access_token_expires,
    )
    return AuthContext(settings=settings, server=server)
