"""
Pytest configuration for mcp_auth. Each test gets a fresh app and fresh in-memory stores;
bcrypt rounds are lowered so hashing the consent password stays fast.
"""
import pytest
from fastapi.testclient import TestClient

from mcp_auth.clients import ClientRegistry
from mcp_auth.config import Settings
from mcp_auth.consent import ConsentGate, hash_password
from mcp_auth.main import create_app
from mcp_auth.server import AuthorizationServer
from mcp_auth.stores import AuthorizationCodeStore, RefreshTokenStore
from mcp_auth.tokens import AccessTokenCodec

CONSENT_PASSWORD = "test-password-123"
JWT_SECRET = "test-jwt-secret-abc-0123456789-abcdefghij"
SERVER_URL = "https://test.example.com"
REDIRECT_URI = "https://client.example/callback"


class FakeClock:
    """Callable clock whose time only moves when a test advances it."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings():
    return Settings(
        jwt_secret=JWT_SECRET,
        server_url=SERVER_URL,
        consent_password=CONSENT_PASSWORD,
        bcrypt_rounds=4,
        code_sweep_seconds=0,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def code_store(clock):
    return AuthorizationCodeStore(clock=clock)


@pytest.fixture
def refresh_store():
    return RefreshTokenStore()


@pytest.fixture
def codec():
    return AccessTokenCodec(JWT_SECRET, audience=SERVER_URL)


@pytest.fixture
def server(code_store, refresh_store, codec):
    return AuthorizationServer(
        clients=ClientRegistry(),
        codes=code_store,
        refresh_tokens=refresh_store,
        codec=codec,
        consent=ConsentGate(hash_password(CONSENT_PASSWORD, rounds=4)),
    )


@pytest.fixture
def registered(server):
    return server.register_client({"client_name": "Test Client", "redirect_uris": [REDIRECT_URI]})
