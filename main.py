"""Mock OAuth Server.

A stand-in OAuth2 authorization server for exercising login flows in
browser tests. It handles:
- Provider catalog and per-provider discovery metadata
- Authorization code issuance with a consent page (/{provider}/authorize)
- Code-for-token exchange (/{provider}/token)
- Bearer-protected profile retrieval (/{provider}/profile)
- Token revocation (/revoke) and the popup/redirect callback relay (/callback)

All state lives in memory and is lost on restart.
"""
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Config, load_config
from logging_config import setup_logging
from oauth.endpoints import init_oauth_routes, router as oauth_router
from oauth.errors import OAuthError
from oauth.server import AuthorizationServer

# Load environment from .env if present
_env_file = Path(".env")
if _env_file.exists():
    load_dotenv(_env_file)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


async def oauth_error_handler(request: Request, exc: OAuthError) -> JSONResponse:
    """Turn an OAuthError into its {"error": ...} response."""
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def create_app(
    server: Optional[AuthorizationServer] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """Build the FastAPI app around an authorization server.

    Tests pass their own server (isolated stores, manual clock).
    """
    config = config or load_config()
    server = server or AuthorizationServer(default_redirect_uri=config.default_redirect_uri)

    app = FastAPI(
        title="Mock OAuth Server",
        description="In-memory OAuth2 authorization-code provider for testing login flows",
        version=VERSION,
    )

    # Add CORS middleware for the browser-based frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OAuthError, oauth_error_handler)

    init_oauth_routes(app, server, config.resume_url)
    app.include_router(oauth_router)

    @app.get("/health")
    async def health_check():
        """Health check with current store sizes."""
        return {
            "status": "healthy",
            "service": "mock-oauth-server",
            "codes": len(server.stores.codes),
            "tokens": len(server.stores.tokens),
        }

    return app


# ============== Main Entry Point ==============

def run():
    """Start the server with uvicorn."""
    import uvicorn

    local_config = load_config()
    setup_logging(level=local_config.log_level, json_output=local_config.json_logs)
    logger.info(f"[STARTUP] Mock OAuth server listening on {local_config.host}:{local_config.port}")
    uvicorn.run(create_app(config=local_config), host=local_config.host, port=local_config.port)


if __name__ == "__main__":
    run()
