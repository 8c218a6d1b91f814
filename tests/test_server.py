import threading

import pytest

from _helpers import extract_code
from oauth.errors import InvalidGrant, InvalidRequest, NotFoundProvider, Unauthorized
from oauth.server import ACCESS_TOKEN_TTL_SECONDS, CODE_TTL_SECONDS, DEFAULT_REDIRECT_URI


class TestAuthorize:
    def test_issues_code_and_stores_it(self, server, stores, clock):
        grant = server.authorize("github", state="s1")

        stored = stores.codes.get(grant.code.value)
        assert stored is not None
        assert stored.provider_id.value == "github"
        assert stored.issued_at == clock.now()
        assert stored.expires_at == clock.now() + CODE_TTL_SECONDS
        assert len(stores.tokens) == 0

    def test_consent_page_carries_the_issued_code(self, server):
        grant = server.authorize("mock", redirect_uri="http://app/cb", state="s1")

        assert extract_code(grant.consent_html) == grant.code.value
        assert "http://app/cb?code=" in grant.consent_html
        assert "http://app/cb?error=access_denied" in grant.consent_html

    def test_default_redirect_uri(self, server):
        grant = server.authorize("github")
        assert grant.redirect_uri == DEFAULT_REDIRECT_URI

    def test_codes_are_unique(self, server):
        codes = {server.authorize(provider).code.value for provider in ["github", "google"] * 50}
        assert len(codes) == 100

    def test_unknown_provider(self, server, stores):
        with pytest.raises(NotFoundProvider):
            server.authorize("nope")
        assert len(stores.codes) == 0


class TestExchange:
    def test_success(self, server, stores):
        code = server.authorize("github").code.value

        response = server.exchange("github", code, "authorization_code")

        assert response.to_dict() == {
            "access_token": response.access_token,
            "token_type": "Bearer",
            "expires_in": 3600,
            "refresh_token": response.refresh_token,
            "scope": "profile email",
        }
        assert code not in stores.codes
        token = stores.tokens.get(response.access_token)
        assert token.user_id == "gh_12345"
        assert token.provider_id.value == "github"

    def test_refresh_token_is_not_stored(self, server, stores):
        code = server.authorize("github").code.value
        response = server.exchange("github", code, "authorization_code")

        assert response.refresh_token not in stores.tokens
        assert len(stores.tokens) == 1

    def test_code_is_single_use(self, server):
        code = server.authorize("github").code.value
        server.exchange("github", code, "authorization_code")

        with pytest.raises(InvalidGrant) as exc_info:
            server.exchange("github", code, "authorization_code")
        assert exc_info.value.message == "Invalid authorization code"

    def test_unknown_code(self, server):
        with pytest.raises(InvalidGrant) as exc_info:
            server.exchange("github", "deadbeef", "authorization_code")
        assert exc_info.value.message == "Invalid authorization code"

    def test_missing_code(self, server):
        with pytest.raises(InvalidGrant):
            server.exchange("github", None, "authorization_code")

    def test_code_bound_to_its_provider(self, server, stores):
        code = server.authorize("github").code.value

        with pytest.raises(InvalidGrant):
            server.exchange("google", code, "authorization_code")
        # A mismatched attempt does not consume the code
        assert code in stores.codes
        server.exchange("github", code, "authorization_code")

    @pytest.mark.parametrize("grant_type", ["refresh_token", "client_credentials", "", None])
    def test_bad_grant_type_regardless_of_code(self, server, stores, grant_type):
        code = server.authorize("github").code.value

        with pytest.raises(InvalidRequest) as exc_info:
            server.exchange("github", code, grant_type)
        assert exc_info.value.message == "Invalid grant_type"
        assert code in stores.codes

    def test_unknown_provider(self, server):
        with pytest.raises(NotFoundProvider):
            server.exchange("nope", "deadbeef", "authorization_code")

    def test_code_valid_until_expiry(self, server, clock):
        code = server.authorize("github").code.value
        clock.advance(CODE_TTL_SECONDS)

        server.exchange("github", code, "authorization_code")

    def test_expired_code_is_purged(self, server, stores, clock):
        code = server.authorize("github").code.value
        clock.advance(CODE_TTL_SECONDS + 1)

        with pytest.raises(InvalidGrant) as exc_info:
            server.exchange("github", code, "authorization_code")
        assert exc_info.value.message == "Authorization code expired"
        assert code not in stores.codes

        with pytest.raises(InvalidGrant) as exc_info:
            server.exchange("github", code, "authorization_code")
        assert exc_info.value.message == "Invalid authorization code"
        assert len(stores.tokens) == 0


class TestProfile:
    def test_returns_canned_profile(self, server, issue_token):
        token = issue_token("github")

        profile = server.get_profile("github", f"Bearer {token}")

        assert profile.id == "gh_12345"
        assert profile.name == "John Developer"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer abc", "Bearer"])
    def test_malformed_header(self, server, header):
        with pytest.raises(Unauthorized) as exc_info:
            server.get_profile("github", header)
        assert exc_info.value.message == "Missing or invalid authorization header"

    def test_unknown_token(self, server):
        with pytest.raises(Unauthorized) as exc_info:
            server.get_profile("github", "Bearer nope")
        assert exc_info.value.message == "Invalid access token"

    def test_token_bound_to_its_provider(self, server, issue_token):
        token = issue_token("github")

        with pytest.raises(Unauthorized):
            server.get_profile("google", f"Bearer {token}")
        with pytest.raises(Unauthorized):
            server.get_profile("nope", f"Bearer {token}")

    def test_expired_token_is_purged(self, server, stores, clock, issue_token):
        token = issue_token("google")
        clock.advance(ACCESS_TOKEN_TTL_SECONDS + 1)

        with pytest.raises(Unauthorized) as exc_info:
            server.get_profile("google", f"Bearer {token}")
        assert exc_info.value.message == "Access token expired"
        assert token not in stores.tokens

        with pytest.raises(Unauthorized) as exc_info:
            server.get_profile("google", f"Bearer {token}")
        assert exc_info.value.message == "Invalid access token"


class TestRevoke:
    def test_revoke_then_profile_fails(self, server, issue_token):
        token = issue_token("microsoft")

        assert server.revoke(token) == {"success": True, "message": "Token revoked"}

        with pytest.raises(Unauthorized):
            server.get_profile("microsoft", f"Bearer {token}")

    @pytest.mark.parametrize("token", ["unknown", "", None])
    def test_unknown_token(self, server, token):
        with pytest.raises(InvalidRequest) as exc_info:
            server.revoke(token)
        assert exc_info.value.message == "Invalid token"

    def test_revoke_twice(self, server, issue_token):
        token = issue_token()
        server.revoke(token)

        with pytest.raises(InvalidRequest):
            server.revoke(token)


def test_sweep_expired(server, stores, clock, issue_token):
    token = issue_token("github")
    server.authorize("github")
    clock.advance(CODE_TTL_SECONDS + 1)
    fresh = server.authorize("github").code.value

    assert server.sweep_expired() == {"codes_removed": 1, "tokens_removed": 0}
    assert fresh in stores.codes
    assert token in stores.tokens

    clock.advance(ACCESS_TOKEN_TTL_SECONDS)
    assert server.sweep_expired() == {"codes_removed": 1, "tokens_removed": 1}


def test_bad_grant_type_wins_over_unknown_provider(server):
    with pytest.raises(InvalidRequest):
        server.exchange("nope", "deadbeef", "password")


def test_expired_code_at_wrong_provider_is_purged(server, stores, clock):
    code = server.authorize("github").code.value
    clock.advance(CODE_TTL_SECONDS + 1)

    with pytest.raises(InvalidGrant) as exc_info:
        server.exchange("google", code, "authorization_code")
    assert exc_info.value.message == "Invalid authorization code"
    assert code not in stores.codes


def test_expired_token_at_wrong_provider_is_purged(server, stores, clock, issue_token):
    token = issue_token("github")
    clock.advance(ACCESS_TOKEN_TTL_SECONDS + 1)

    with pytest.raises(Unauthorized) as exc_info:
        server.get_profile("google", f"Bearer {token}")
    assert exc_info.value.message == "Invalid access token"
    assert token not in stores.tokens


def _run_concurrently(target, count=32):
    """Start count threads on target at once and collect results or errors."""
    barrier = threading.Barrier(count)
    results, errors = [], []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            result = target()
        except Exception as exc:
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(result)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


class TestConcurrentRedemption:
    def test_code_redeemed_once(self, server, stores):
        code = server.authorize("github").code.value

        results, errors = _run_concurrently(lambda: server.exchange("github", code, "authorization_code"))

        assert len(results) == 1
        assert len(errors) == 31
        assert all(isinstance(error, InvalidGrant) for error in errors)
        assert len(stores.tokens) == 1
        assert code not in stores.codes

    def test_token_revoked_once(self, server, stores, issue_token):
        token = issue_token("github")

        results, errors = _run_concurrently(lambda: server.revoke(token))

        assert results == [{"success": True, "message": "Token revoked"}]
        assert len(errors) == 31
        assert all(isinstance(error, InvalidRequest) for error in errors)
        assert len(stores.tokens) == 0

    def test_expired_token_reported_expired_once(self, server, stores, clock, issue_token):
        token = issue_token("github")
        clock.advance(ACCESS_TOKEN_TTL_SECONDS + 1)

        results, errors = _run_concurrently(lambda: server.get_profile("github", f"Bearer {token}"))

        assert results == []
        assert all(isinstance(error, Unauthorized) for error in errors)
        messages = [error.message for error in errors]
        assert messages.count("Access token expired") == 1
        assert messages.count("Invalid access token") == 31
        assert token not in stores.tokens
