"""HTTP endpoints for the mock OAuth providers.

This module contains all OAuth-related endpoints:
- Provider catalog (/providers)
- Discovery metadata (/{provider}/.well-known/oauth-authorization-server)
- Authorization flow (/{provider}/authorize, /callback)
- Token endpoint (/{provider}/token)
- Profile endpoint (/{provider}/profile)
- Revocation (/revoke) and maintenance (/sweep)

Handlers raise OAuthError subclasses; main.py maps them to JSON responses.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from oauth.errors import InvalidRequest
from oauth.providers import API_PREFIX, get_provider
from oauth.server import AuthorizationServer, GRANTED_SCOPE, SUPPORTED_GRANT_TYPE
from oauth.templates import render_callback_page

logger = logging.getLogger(__name__)

# Router for OAuth endpoints, mounted under API_PREFIX
router = APIRouter(prefix=API_PREFIX, tags=["oauth"])


def init_oauth_routes(app: FastAPI, server: AuthorizationServer, resume_url: str):
    """Attach the authorization server and callback resume URL to an app.

    Must be called before the app handles requests. Each app keeps its own
    server, so apps built side by side never share stores.
    """
    app.state.oauth_server = server
    app.state.oauth_resume_url = resume_url


def get_server(request: Request) -> AuthorizationServer:
    server = getattr(request.app.state, "oauth_server", None)
    if server is None:
        raise RuntimeError("OAuth routes used before init_oauth_routes()")
    return server


def get_resume_url(request: Request) -> str:
    return request.app.state.oauth_resume_url


async def _read_body(request: Request) -> dict:
    """Read a JSON or form-encoded request body as a dict."""
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            return dict(form)
        body = await request.body()
        if not body:
            return {}
        data = await request.json()
    except (ValueError, MultiPartException, StarletteHTTPException):
        raise InvalidRequest("Invalid request body") from None

    if not isinstance(data, dict):
        raise InvalidRequest("Invalid request body")
    return data


# ============== Provider Catalog ==============

@router.get("/providers")
async def providers(server: AuthorizationServer = Depends(get_server)):
    """List the supported providers in registration order."""
    return {"providers": [provider.to_dict() for provider in server.list_providers()]}


@router.get("/{provider}/.well-known/oauth-authorization-server")
async def authorization_server_metadata(provider: str, request: Request):
    """OAuth 2.0 Authorization Server Metadata (RFC 8414) for one provider."""
    info = get_provider(provider)
    base_url = str(request.base_url).rstrip("/")
    return {
        "issuer": f"{base_url}{API_PREFIX}/{info.id.value}",
        "authorization_endpoint": f"{base_url}{info.authorize_endpoint}",
        "token_endpoint": f"{base_url}{info.token_endpoint}",
        "revocation_endpoint": f"{base_url}{API_PREFIX}/revoke",
        "scopes_supported": GRANTED_SCOPE.split(),
        "response_types_supported": ["code"],
        "grant_types_supported": [SUPPORTED_GRANT_TYPE],
    }


# ============== Authorization Flow ==============

@router.get("/{provider}/authorize", response_class=HTMLResponse)
async def authorize(
    provider: str,
    redirect_uri: Optional[str] = None,
    state: Optional[str] = None,
    response_type: Optional[str] = None,
    server: AuthorizationServer = Depends(get_server),
):
    """Issue an authorization code and show the consent page."""
    grant = server.authorize(provider, redirect_uri, state, response_type)
    return HTMLResponse(grant.consent_html)


@router.get("/callback", response_class=HTMLResponse)
async def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    resume_url: str = Depends(get_resume_url),
):
    """Relay the provider's answer back to the popup opener or the app."""
    if error:
        logger.info(f"[CALLBACK] Authorization failed: {error}")
    return HTMLResponse(render_callback_page(code, state, error, resume_url))


# ============== Token Endpoint ==============

@router.post("/{provider}/token")
async def token(provider: str, request: Request, server: AuthorizationServer = Depends(get_server)):
    """OAuth 2.0 Token Endpoint (authorization_code grant only)."""
    data = await _read_body(request)
    logger.debug(f"[TOKEN] grant_type: {data.get('grant_type')}, provider: {provider}")

    response = server.exchange(
        provider,
        code=data.get("code"),
        grant_type=data.get("grant_type"),
        redirect_uri=data.get("redirect_uri"),
    )
    return response.to_dict()


# ============== Protected Resources ==============

@router.get("/{provider}/profile")
async def profile(
    provider: str,
    authorization: Optional[str] = Header(None),
    server: AuthorizationServer = Depends(get_server),
):
    """Return the provider's user profile for a valid bearer token."""
    return server.get_profile(provider, authorization).to_dict()


@router.post("/revoke")
async def revoke(request: Request, server: AuthorizationServer = Depends(get_server)):
    """Revoke an access token (logout)."""
    data = await _read_body(request)
    return server.revoke(data.get("token"))


@router.post("/sweep")
async def sweep(server: AuthorizationServer = Depends(get_server)):
    """Purge expired codes and tokens now instead of waiting for their next use."""
    return server.sweep_expired()
