"""
Authorization server configuration. Values come from the environment; no secrets in this file.
load_settings() fails fast with every missing variable listed at once.
"""
import os
from dataclasses import dataclass, field

# Authorization code lifetime (seconds): 10 minutes
CODE_TTL_SECONDS = 600

# Access token lifetime (seconds): 1 hour
ACCESS_TOKEN_EXPIRES = 3600

# Access tokens are HS256 JWTs signed with JWT_SIGNING_SECRET
JWT_ALGORITHM = "HS256"

# Human-readable name advertised in protected resource metadata and on the consent page
RESOURCE_NAME = "Mood Playlist MCP"

DEFAULT_SERVER_URL = "http://localhost:3000"
DEFAULT_PORT = 3000
DEFAULT_SCOPES = "mcp:tools"

REQUIRED_VARS = ("JWT_SIGNING_SECRET",)
CONSENT_VARS = ("OAUTH_CONSENT_PASSWORD", "OAUTH_CONSENT_PASSWORD_HASH")


class ConfigError(RuntimeError):
    """Raised at startup when the environment is incomplete or malformed."""


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    server_url: str = DEFAULT_SERVER_URL
    port: int = DEFAULT_PORT
    consent_password: str | None = None
    consent_password_hash: str | None = None
    scopes_supported: tuple[str, ...] = (DEFAULT_SCOPES,)
    code_ttl_seconds: int = CODE_TTL_SECONDS
    access_token_expires: int = ACCESS_TOKEN_EXPIRES
    code_sweep_seconds: int = 60
    rate_limit_consent_per_minute: int = 10
    rate_limit_token_per_minute: int = 60
    trust_proxy: bool = False
    bcrypt_rounds: int = 12
    resource_name: str = field(default=RESOURCE_NAME)

    @property
    def issuer(self) -> str:
        return self.server_url

    @property
    def audience(self) -> str:
        """Access tokens are minted for, and verified against, the server URL."""
        return self.server_url


def _int(environ, name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _bool(environ, name: str) -> bool:
    return (environ.get(name) or "").strip().lower() in ("1", "true", "yes", "on")


def load_settings(environ=None) -> Settings:
    """Build Settings from the environment. Raises ConfigError naming all missing variables."""
    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_VARS if not environ.get(name)]
    if not any(environ.get(name) for name in CONSENT_VARS):
        missing.append(" or ".join(CONSENT_VARS))
    if missing:
        raise ConfigError("Missing required environment variables:\n  " + "\n  ".join(missing))

    scopes = tuple(s for s in (environ.get("OAUTH_SCOPES_SUPPORTED") or DEFAULT_SCOPES).split() if s)

    return Settings(
        jwt_secret=environ["JWT_SIGNING_SECRET"],
        server_url=(environ.get("SERVER_URL") or DEFAULT_SERVER_URL).rstrip("/"),
        port=_int(environ, "PORT", DEFAULT_PORT),
        consent_password=environ.get("OAUTH_CONSENT_PASSWORD") or None,
        consent_password_hash=environ.get("OAUTH_CONSENT_PASSWORD_HASH") or None,
        scopes_supported=scopes,
        code_sweep_seconds=_int(environ, "OAUTH_CODE_SWEEP_SECONDS", 60),
        rate_limit_consent_per_minute=_int(environ, "OAUTH_RATE_LIMIT_CONSENT_PER_MINUTE", 10),
        rate_limit_token_per_minute=_int(environ, "OAUTH_RATE_LIMIT_TOKEN_PER_MINUTE", 60),
        trust_proxy=_bool(environ, "OAUTH_TRUST_PROXY"),
        bcrypt_rounds=_int(environ, "OAUTH_BCRYPT_ROUNDS", 12),
    )
