import pytest
from fastapi.testclient import TestClient

from config import Config
from main import create_app
from oauth.clock import ManualClock
from oauth.server import AuthorizationServer
from oauth.stores import OAuthStores


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def stores():
    return OAuthStores()


@pytest.fixture()
def server(stores, clock):
    return AuthorizationServer(stores=stores, clock=clock)


@pytest.fixture()
def app(server):
    return create_app(server=server, config=Config())


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def issue_token(server):
    """Run authorize + exchange for a provider and return the access token."""

    def _issue(provider: str = "github") -> str:
        grant = server.authorize(provider)
        return server.exchange(provider, grant.code.value, "authorization_code").access_token

    return _issue
