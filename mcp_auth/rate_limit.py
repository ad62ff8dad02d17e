"""
Rate limiting: in-memory sliding window per key (per client IP).
Used for POST /consent and POST /token to slow down guessing of the consent secret and codes.
"""
import math
import threading
import time

from fastapi import HTTPException

_WINDOW_SECONDS = 60
_MAX_TRACKED_KEYS = 1024


class SlidingWindowLimiter:
    def __init__(
        self,
        limit: int,
        window_seconds: int = _WINDOW_SECONDS,
        clock=time.monotonic,
        max_keys: int = _MAX_TRACKED_KEYS,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._store: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.max_keys = max_keys

    def check_and_consume(self, key: str) -> tuple[bool, int | None]:
        """
        Check if the key is under the limit for the sliding window; if so, record this request.
        Returns (allowed, retry_after_seconds). When not allowed, retry_after_seconds is the
        suggested Retry-After value (>= 1).
        """
        if self.limit <= 0:
            return True, None
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            timestamps = [t for t in self._store.pop(key, ()) if t > cutoff]
            if len(timestamps) >= self.limit:
                self._store[key] = timestamps
                oldest = min(timestamps)
                retry_after = max(1, math.ceil(self.window_seconds - (now - oldest)))
                return False, retry_after
            timestamps.append(now)
            self._store[key] = timestamps
            if len(self._store) > self.max_keys:
                self._drop_stale(cutoff)
            return True, None

    def _drop_stale(self, cutoff: float) -> None:
        """Forget keys with no request inside the window. Caller holds the lock."""
        for stale in [k for k, ts in self._store.items() if ts[-1] <= cutoff]:
            del self._store[stale]

    def __len__(self) -> int:
        return len(self._store)

    def enforce(self, key: str | None) -> None:
        """Raise 429 with Retry-After when key is over the limit."""
        allowed, retry_after = self.check_and_consume(key or "unknown")
        if not allowed:
            raise HTTPException(
                status_code=429,
                detail={"error": "too_many_requests", "error_description": "Rate limit exceeded"},
                headers={"Retry-After": str(retry_after)},
            )
