"""
In-memory stores for authorization codes and refresh tokens.
consume() and rotate() are an atomic pop under the store lock, so concurrent
attempts with the same key see exactly one success.
"""
import secrets
import threading
import time

from mcp_auth.config import CODE_TTL_SECONDS
from mcp_auth.models import AuthorizationCodeEntry, RefreshBinding


class AuthorizationCodeStore:
    def __init__(self, ttl_seconds: int = CODE_TTL_SECONDS, clock=time.time):
        self._codes: dict[str, AuthorizationCodeEntry] = {}
        self._lock = threading.Lock()
        self._ttl = ttl_seconds
        self._clock = clock

    def issue(self, entry: AuthorizationCodeEntry) -> str:
        """Store entry under a fresh 256-bit code; expires_at is set here."""
        code = secrets.token_urlsafe(32)
        entry.expires_at = self._clock() + self._ttl
        with self._lock:
            self._codes[code] = entry
        return code

    def consume(self, code: str | None) -> AuthorizationCodeEntry | None:
        """Remove and return the entry; None if unknown or expired (expired entries are dropped too)."""
        if not code:
            return None
        with self._lock:
            entry = self._codes.pop(code, None)
        if entry is None or entry.expired(self._clock()):
            return None
        return entry

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [c for c, e in self._codes.items() if e.expired(now)]
            for c in expired:
                del self._codes[c]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)


class RefreshTokenStore:
    def __init__(self):
        self._tokens: dict[str, RefreshBinding] = {}
        self._lock = threading.Lock()

    def issue(self, client_id: str, scopes: list[str] | None) -> str:
        token = secrets.token_urlsafe(48)
        binding = RefreshBinding(client_id=client_id, scopes=list(scopes) if scopes is not None else None)
        with self._lock:
            self._tokens[token] = binding
        return token

    def rotate(self, token: str | None) -> RefreshBinding | None:
        """Remove and return the binding for token; None if unknown or already rotated."""
        if not token:
            return None
        with self._lock:
            return self._tokens.pop(token, None)

    def reinstate(self, token: str, binding: RefreshBinding) -> None:
        """Put back a binding removed by rotate() whose replacement was never issued."""
        with self._lock:
            self._tokens.setdefault(token, binding)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
