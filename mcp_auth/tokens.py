"""
Access token codec: HS256 JWTs with PyJWT. Nothing is stored server-side;
validity is signature + issuer + audience + expiry at verification time.
"""
import logging
import secrets
import time

import jwt

from mcp_auth.config import ACCESS_TOKEN_EXPIRES, JWT_ALGORITHM

logger = logging.getLogger(__name__)


class AccessTokenError(Exception):
    pass


class TokenExpired(AccessTokenError):
    pass


class BadSignature(AccessTokenError):
    pass


class AudienceMismatch(AccessTokenError):
    pass


class AccessTokenCodec:
    def __init__(self, secret: str, audience: str, issuer: str | None = None):
        if not secret:
            raise ValueError("signing secret must not be empty")
        self._secret = secret
        self._audience = audience
        self._issuer = issuer or audience

    def sign(self, subject: str, scopes: list[str] | None, ttl: int = ACCESS_TOKEN_EXPIRES) -> str:
        """Return a compact JWT carrying sub, scopes, aud, iss, iat, exp and a random jti."""
        now = int(time.time())
        payload = {
            "sub": subject,
            "scopes": list(scopes or []),
            "aud": self._audience,
            "iss": self._issuer,
            "iat": now,
            "exp": now + ttl,
            "jti": secrets.token_urlsafe(16),
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM, headers={"typ": "JWT"})
        if isinstance(token, bytes):
            token = token.decode("utf-8")
        return token

    def verify(self, token: str) -> dict:
        """
        Decode and validate token. Returns the claims dict.
        Raises TokenExpired, AudienceMismatch or BadSignature (any other malformation).
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "aud", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("token expired")
        except jwt.InvalidAudienceError:
            raise AudienceMismatch("audience mismatch")
        except jwt.InvalidTokenError as e:
            raise BadSignature(str(e))

        if not isinstance(payload.get("scopes", []), list):
            raise BadSignature("scopes claim must be a list")
        return payload
