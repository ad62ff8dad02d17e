"""
Authorization server for the Mood Playlist MCP endpoint.
Dynamic client registration, consent-gated authorization code + PKCE, token endpoint
with refresh rotation, and Bearer verification for the protected MCP routes.
"""
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mcp_auth.authorize import router as authorize_router
from mcp_auth.config import Settings, load_settings
from mcp_auth.rate_limit import SlidingWindowLimiter
from mcp_auth.register import router as register_router
from mcp_auth.resource import router as resource_router
from mcp_auth.server import AuthorizationServer, build_context
from mcp_auth.token_endpoint import router as token_router
from mcp_auth.well_known import router as well_known_router

logger = logging.getLogger(__name__)


async def sweep_expired_codes(server: AuthorizationServer, interval: float) -> None:
    """Purge expired authorization codes every interval seconds; expiry on read stays authoritative."""
    while True:
        await asyncio.sleep(interval)
        purged = server.purge_expired_codes()
        if purged:
            logger.debug("Purged %d expired authorization codes", purged)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the code sweep; state is in memory only, so a restart invalidates every code and refresh token."""
    ctx = app.state.auth
    task = None
    if ctx.settings.code_sweep_seconds > 0:
        task = asyncio.create_task(sweep_expired_codes(ctx.server, ctx.settings.code_sweep_seconds))
    logger.info("Authorization server ready: issuer=%s", ctx.settings.issuer)
    yield
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = load_settings()

    app = FastAPI(title="MCP Auth Server", version="1.0.0", lifespan=lifespan)
    app.state.auth = build_context(settings)
    app.state.consent_limiter = SlidingWindowLimiter(settings.rate_limit_consent_per_minute)
    app.state.token_limiter = SlidingWindowLimiter(settings.rate_limit_token_per_minute)

    app.include_router(well_known_router, tags=["well-known"])
    app.include_router(register_router, tags=["register"])
    app.include_router(authorize_router, tags=["authorize"])
    app.include_router(token_router, tags=["token"])
    app.include_router(resource_router, tags=["resource"])

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "server": "mood-playlist-mcp"}

    return app


if __name__ == "__main__":
    import uvicorn

    port = load_settings().port
    uvicorn.run(
        "mcp_auth.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        proxy_headers=True,
    )
