"""
Dynamic client registration store (RFC 7591). Open registration: any caller may
register, so deploy behind a trusted network boundary.
"""
import logging
import threading
import time
import uuid
from urllib.parse import urlparse

from mcp_auth.errors import InvalidClientMetadata
from mcp_auth.models import RegisteredClient

logger = logging.getLogger(__name__)


def _validate_redirect_uris(value) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise InvalidClientMetadata("redirect_uris must be a non-empty array")
    uris = []
    for uri in value:
        if not isinstance(uri, str):
            raise InvalidClientMetadata("redirect_uris must contain strings")
        parsed = urlparse(uri)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidClientMetadata(f"Invalid redirect_uri: {uri}")
        if parsed.fragment:
            raise InvalidClientMetadata("redirect_uri must not contain a fragment")
        uris.append(uri)
    return tuple(uris)


class ClientRegistry:
    def __init__(self, clock=time.time):
        self._clients: dict[str, RegisteredClient] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def register(self, metadata: dict) -> RegisteredClient:
        """Validate metadata, assign a fresh client_id and store the record."""
        redirect_uris = _validate_redirect_uris(metadata.get("redirect_uris"))
        client_name = metadata.get("client_name")
        if client_name is not None and not isinstance(client_name, str):
            raise InvalidClientMetadata("client_name must be a string")
        scope = metadata.get("scope")
        if scope is not None and not isinstance(scope, str):
            raise InvalidClientMetadata("scope must be a space-separated string")

        client = RegisteredClient(
            client_id=str(uuid.uuid4()),
            redirect_uris=redirect_uris,
            client_id_issued_at=int(self._clock()),
            client_name=client_name or None,
            scope=scope or None,
        )
        with self._lock:
            self._clients[client.client_id] = client
        logger.info("Registered client %s (%s)", client.client_id, client.client_name or "unnamed")
        return client

    def lookup(self, client_id: str | None) -> RegisteredClient | None:
        if not client_id:
            return None
        with self._lock:
            return self._clients.get(client_id)
