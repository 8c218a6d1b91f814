"""Mock OAuth provider registry.

The set of supported providers is closed: raw path segments are parsed into
ProviderId at the HTTP boundary and anything else is rejected there.
Each provider has exactly one canned user profile; the profile endpoint
returns it regardless of which token was presented.
"""

from dataclasses import dataclass
from enum import Enum

from oauth.errors import NotFoundProvider

API_PREFIX = "/api/oauth"


class ProviderId(str, Enum):
    GITHUB = "github"
    GOOGLE = "google"
    MICROSOFT = "microsoft"
    MOCK = "mock"


@dataclass(frozen=True)
class Provider:
    id: ProviderId
    name: str
    authorize_endpoint: str
    token_endpoint: str

    def to_dict(self) -> dict:
        return {
            "id": self.id.value,
            "name": self.name,
            "authUrl": self.authorize_endpoint,
            "tokenUrl": self.token_endpoint,
        }


@dataclass(frozen=True)
class UserProfile:
    id: str
    name: str
    email: str
    avatar: str
    provider: ProviderId

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "provider": self.provider.value,
        }


def _provider(provider_id: ProviderId, name: str) -> Provider:
    return Provider(
        id=provider_id,
        name=name,
        authorize_endpoint=f"{API_PREFIX}/{provider_id.value}/authorize",
        token_endpoint=f"{API_PREFIX}/{provider_id.value}/token",
    )


def _profile(provider_id: ProviderId, user_id: str, name: str, email: str) -> UserProfile:
    return UserProfile(
        id=user_id,
        name=name,
        email=email,
        avatar=f"https://api.dicebear.com/7.x/avataaars/svg?seed={provider_id.value}",
        provider=provider_id,
    )


# Registration order is the order /providers lists them in
PROVIDERS: dict[ProviderId, Provider] = {
    ProviderId.GITHUB: _provider(ProviderId.GITHUB, "GitHub"),
    ProviderId.GOOGLE: _provider(ProviderId.GOOGLE, "Google"),
    ProviderId.MICROSOFT: _provider(ProviderId.MICROSOFT, "Microsoft"),
    ProviderId.MOCK: _provider(ProviderId.MOCK, "Mock OAuth"),
}

USER_PROFILES: dict[ProviderId, UserProfile] = {
    ProviderId.GITHUB: _profile(ProviderId.GITHUB, "gh_12345", "John Developer", "john@github.com"),
    ProviderId.GOOGLE: _profile(ProviderId.GOOGLE, "goog_67890", "Jane Smith", "jane@gmail.com"),
    ProviderId.MICROSOFT: _profile(ProviderId.MICROSOFT, "ms_24680", "Bob Johnson", "bob@outlook.com"),
    ProviderId.MOCK: _profile(ProviderId.MOCK, "mock_13579", "Test User", "test@example.com"),
}


def list_providers() -> list[Provider]:
    """Return all providers in registration order."""
    return list(PROVIDERS.values())


def parse_provider_id(tag: str) -> ProviderId:
    """Parse a raw provider tag, raising NotFoundProvider if unsupported."""
    try:
        return ProviderId(tag)
    except ValueError:
        raise NotFoundProvider("Provider not found") from None


def get_provider(tag: str) -> Provider:
    return PROVIDERS[parse_provider_id(tag)]


def get_profile(provider_id: ProviderId) -> UserProfile:
    return USER_PROFILES[provider_id]
