"""Mock OAuth2 authorization server.

Implements the authorization-code flow against in-memory stores:
- authorize: issue a single-use code and render the consent page
- exchange: trade a code for a bearer token
- get_profile: resolve a bearer token to the provider's canned profile
- revoke: delete a bearer token

Two simplifications are intentional for a test-fixture server:
the profile is one canned record per provider (there is no per-user
identity), and the refresh token is returned but never stored or
redeemable.
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from oauth.clock import Clock, SystemClock
from oauth.errors import InvalidGrant, InvalidRequest, Unauthorized
from oauth.providers import (
    get_profile,
    get_provider,
    list_providers,
    Provider,
    UserProfile,
)
from oauth.stores import AccessToken, AuthorizationCode, OAuthStores
from oauth.templates import render_consent_page

logger = logging.getLogger(__name__)

CODE_TTL_SECONDS = 5 * 60
ACCESS_TOKEN_TTL_SECONDS = 3600
TOKEN_TYPE = "Bearer"
GRANTED_SCOPE = "profile email"
SUPPORTED_GRANT_TYPE = "authorization_code"

DEFAULT_REDIRECT_URI = "http://localhost:5173/challenge/senior-16-oauth-flows"


def generate_code() -> str:
    return secrets.token_hex(32)


def generate_token() -> str:
    return secrets.token_hex(64)


def _short(credential: str) -> str:
    """First 8 characters of a credential, for log lines."""
    return f"{credential[:8]}..."


@dataclass(frozen=True)
class AuthorizationGrant:
    """A freshly issued code and the consent page that carries it."""

    code: AuthorizationCode
    redirect_uri: str
    state: Optional[str]
    consent_html: str


@dataclass(frozen=True)
class TokenResponse:
    access_token: str
    refresh_token: str
    token_type: str = TOKEN_TYPE
    expires_in: int = ACCESS_TOKEN_TTL_SECONDS
    scope: str = GRANTED_SCOPE

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "refresh_token": self.refresh_token,
            "scope": self.scope,
        }


class AuthorizationServer:
    """Stateful authorization-code handshake over injected stores and clock."""

    def __init__(
        self,
        stores: Optional[OAuthStores] = None,
        clock: Optional[Clock] = None,
        default_redirect_uri: str = DEFAULT_REDIRECT_URI,
    ):
        self.stores = stores or OAuthStores()
        self.clock = clock or SystemClock()
        self.default_redirect_uri = default_redirect_uri

    def list_providers(self) -> list[Provider]:
        return list_providers()

    def authorize(
        self,
        provider_tag: str,
        redirect_uri: Optional[str] = None,
        state: Optional[str] = None,
        response_type: Optional[str] = None,
    ) -> AuthorizationGrant:
        """Issue an authorization code and render the consent page.

        No token is created here. Denying consent is a pure client-side
        navigation, so the code stays in the store until it expires.
        """
        provider = get_provider(provider_tag)

        now = self.clock.now()
        code = AuthorizationCode(
            value=generate_code(),
            provider_id=provider.id,
            issued_at=now,
            expires_at=now + CODE_TTL_SECONDS,
        )
        self.stores.codes.set(code.value, code)

        target = redirect_uri or self.default_redirect_uri
        logger.info(
            f"[AUTHORIZE] Code {_short(code.value)} issued for {provider.id.value} "
            f"(response_type: {response_type or 'unset'})"
        )
        return AuthorizationGrant(
            code=code,
            redirect_uri=target,
            state=state,
            consent_html=render_consent_page(provider, code.value, target, state),
        )

    def exchange(
        self,
        provider_tag: str,
        code: Optional[str],
        grant_type: Optional[str],
        redirect_uri: Optional[str] = None,
    ) -> TokenResponse:
        """Exchange an authorization code for an access token.

        redirect_uri is accepted for protocol compatibility and not checked.
        """
        if grant_type != SUPPORTED_GRANT_TYPE:
            logger.info(f"[TOKEN] Rejected grant_type: {grant_type}")
            raise InvalidRequest("Invalid grant_type")

        provider = get_provider(provider_tag)

        with self.stores.codes.transaction() as codes:
            auth_code = codes.get(code) if isinstance(code, str) and code else None
            now = self.clock.now()
            expired = auth_code is not None and auth_code.is_expired(now)
            if expired:
                # Purged on detection, even when presented to the wrong provider
                codes.delete(auth_code.value)
                logger.info(f"[TOKEN] Code {_short(auth_code.value)} expired and purged")

            if auth_code is None or auth_code.provider_id != provider.id:
                logger.info(f"[TOKEN] Invalid authorization code for {provider.id.value}")
                raise InvalidGrant("Invalid authorization code")
            if expired:
                raise InvalidGrant("Authorization code expired")

            # Single use: the code is gone before any token exists
            codes.delete(auth_code.value)

        response = TokenResponse(access_token=generate_token(), refresh_token=generate_token())
        self.stores.tokens.set(
            response.access_token,
            AccessToken(
                value=response.access_token,
                provider_id=provider.id,
                user_id=get_profile(provider.id).id,
                expires_at=now + ACCESS_TOKEN_TTL_SECONDS,
            ),
        )
        logger.info(f"[TOKEN] Access token {_short(response.access_token)} created for {provider.id.value}")
        return response

    def get_profile(self, provider_tag: str, authorization_header: Optional[str]) -> UserProfile:
        """Resolve a bearer token to the provider's canned profile."""
        if not authorization_header or not authorization_header.startswith("Bearer "):
            raise Unauthorized("Missing or invalid authorization header")

        token = authorization_header[len("Bearer "):]

        with self.stores.tokens.transaction() as tokens:
            token_data = tokens.get(token)
            expired = token_data is not None and token_data.is_expired(self.clock.now())
            if expired:
                tokens.delete(token)
                logger.info(f"[PROFILE] Token {_short(token)} expired and purged")

            if token_data is None or token_data.provider_id.value != provider_tag:
                logger.info(f"[PROFILE] Invalid access token for {provider_tag}")
                raise Unauthorized("Invalid access token")
            if expired:
                raise Unauthorized("Access token expired")

        return get_profile(token_data.provider_id)

    def revoke(self, token: Optional[str]) -> dict:
        """Delete a bearer token. Unknown tokens are an InvalidRequest."""
        if not isinstance(token, str) or not self.stores.tokens.delete(token):
            logger.info("[REVOKE] Unknown token")
            raise InvalidRequest("Invalid token")

        logger.info(f"[REVOKE] Token {_short(token)} revoked")
        return {"success": True, "message": "Token revoked"}

    def sweep_expired(self) -> dict:
        """Drop every expired code and token. Nothing calls this on a timer."""
        now = self.clock.now()
        result = {
            "codes_removed": self.stores.codes.sweep(now),
            "tokens_removed": self.stores.tokens.sweep(now),
        }
        logger.info(f"[SWEEP] Removed {result['codes_removed']} codes, {result['tokens_removed']} tokens")
        return result
