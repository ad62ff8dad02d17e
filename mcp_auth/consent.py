"""
Consent gate: the single shared secret that stands in for a user login.
The secret is kept only as a bcrypt hash; checkpw compares in constant time.
"""
import logging

import bcrypt

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = 12) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    try:
        return bcrypt.checkpw(raw, hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Consent password hash is malformed")
        return False


class ConsentGate:
    def __init__(self, password_hash: str):
        self._password_hash = password_hash

    @classmethod
    def from_settings(cls, settings) -> "ConsentGate":
        """Prefer a pre-hashed secret; otherwise hash the plain one once at startup."""
        if settings.consent_password_hash:
            return cls(settings.consent_password_hash)
        return cls(hash_password(settings.consent_password, rounds=settings.bcrypt_rounds))

    def check(self, password: str | None) -> bool:
        if not password:
            return False
        return verify_password(password, self._password_hash)
