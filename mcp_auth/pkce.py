"""
PKCE (RFC 7636): S256 and plain challenge computation and verification.
"""
import hashlib
import hmac
import re
import secrets
from base64 import urlsafe_b64encode

SUPPORTED_METHODS = ("S256", "plain")

# 43-128 chars from the unreserved set (RFC 7636 section 4.1 / 4.2)
_PKCE_VALUE = re.compile(r"^[A-Za-z0-9\-._~]{43,128}$")


def is_valid_pkce_value(value: str | None) -> bool:
    """True when value is a well-formed code_verifier or code_challenge."""
    return bool(value) and _PKCE_VALUE.fullmatch(value) is not None


def s256_challenge(code_verifier: str) -> str:
    """base64url(SHA-256(verifier)) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def compute_challenge(code_verifier: str, method: str) -> str:
    if method == "S256":
        return s256_challenge(code_verifier)
    if method == "plain":
        return code_verifier
    raise ValueError(f"unsupported code_challenge_method: {method}")


def verify_pkce(code_verifier: str | None, code_challenge: str, method: str) -> bool:
    """True when code_verifier hashes (per method) to code_challenge."""
    if not code_verifier or not code_challenge or method not in SUPPORTED_METHODS:
        return False
    try:
        expected = compute_challenge(code_verifier, method)
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), code_challenge.encode("utf-8"))


def generate_pkce() -> tuple[str, str]:
    """Return (code_verifier, code_challenge) for S256. Verifier is 43 chars."""
    code_verifier = secrets.token_urlsafe(32)
    return code_verifier, s256_challenge(code_verifier)
