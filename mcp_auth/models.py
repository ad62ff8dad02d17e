"""
In-memory records for the authorization server: registered clients, pending
authorization requests, code and refresh-token bindings, issued token bundles.
"""
import time
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RegisteredClient:
    client_id: str
    redirect_uris: tuple[str, ...]
    client_id_issued_at: int
    client_name: str | None = None
    grant_types: tuple[str, ...] = ("authorization_code", "refresh_token")
    response_types: tuple[str, ...] = ("code",)
    token_endpoint_auth_method: str = "none"
    scope: str | None = None

    def redirect_uri_allowed(self, uri: str) -> bool:
        return uri in self.redirect_uris

    def to_dict(self) -> dict:
        """RFC 7591 client information response."""
        info = {
            "client_id": self.client_id,
            "client_id_issued_at": self.client_id_issued_at,
            "redirect_uris": list(self.redirect_uris),
            "grant_types": list(self.grant_types),
            "response_types": list(self.response_types),
            "token_endpoint_auth_method": self.token_endpoint_auth_method,
        }
        if self.client_name:
            info["client_name"] = self.client_name
        if self.scope:
            info["scope"] = self.scope
        return info


@dataclass
class AuthorizationRequest:
    """What the consent page needs to render; never stored."""

    client: RegisteredClient
    redirect_uri: str
    code_challenge: str
    code_challenge_method: str = "S256"
    state: str | None = None
    scopes: list[str] | None = None
    resource: str | None = None


@dataclass
class AuthorizationCodeEntry:
    client_id: str
    code_challenge: str
    code_challenge_method: str
    redirect_uri: str
    resource: str | None = None
    scopes: list[str] | None = None
    expires_at: float = 0.0

    def expired(self, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return self.expires_at <= now


@dataclass
class RefreshBinding:
    client_id: str
    scopes: list[str] | None = None


@dataclass
class TokenBundle:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
    scopes: list[str] | None = None

    def to_dict(self) -> dict:
        body = {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "refresh_token": self.refresh_token,
        }
        if self.scopes:
            body["scope"] = " ".join(self.scopes)
        return body


@dataclass
class AccessTokenInfo:
    client_id: str
    scopes: list[str] = field(default_factory=list)
    expires_at: int | None = None
    token: str | None = None
