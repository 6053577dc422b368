"""
Tests for StravaOAuth.
"""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest

from stravhat.features.strava import (
    AppIdentity,
    ProviderCredentials,
    StravaOAuth,
    StravaOAuthError,
)
from tests.conftest import DEFAULT_CREDENTIALS, REFRESHED_EXPIRES_AT

CREDENTIALS = ProviderCredentials(**DEFAULT_CREDENTIALS)


def run_with_oauth(fake, call):
    async def _run():
        async with fake.http_client() as http:
            return await call(StravaOAuth(client=http))

    return asyncio.run(_run())


class TestAuthorizationUrl:
    """Tests for authorization URL generation."""

    def test_params(self):
        url = StravaOAuth().get_authorization_url(CREDENTIALS, state="abc")
        parsed = urlparse(url)
        params = parse_qs(parsed.query)

        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == \
            "https://www.strava.com/oauth/authorize"
        assert params["client_id"] == ["12345"]
        assert params["response_type"] == ["code"]
        assert params["redirect_uri"] == [DEFAULT_CREDENTIALS["redirect_uri"]]
        assert params["scope"] == ["read,activity:read_all"]
        assert params["state"] == ["abc"]

    def test_no_state(self):
        url = StravaOAuth().get_authorization_url(CREDENTIALS)
        assert "state" not in parse_qs(urlparse(url).query)

    def test_secret_not_in_url(self):
        url = StravaOAuth().get_authorization_url(CREDENTIALS)
        assert "default-secret" not in url


class TestTokenExchange:
    """Tests for code exchange and refresh."""

    def test_exchange_code(self, fake_strava):
        tokens = run_with_oauth(
            fake_strava, lambda oauth: oauth.exchange_code("the-code", CREDENTIALS)
        )
        form = fake_strava.token_requests[0]
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "the-code"
        assert form["client_id"] == "12345"
        assert form["client_secret"] == "default-secret"
        assert tokens.access_token == "new-access-1"
        assert tokens.expires_at == REFRESHED_EXPIRES_AT
        assert tokens.athlete.id == 987654

    def test_refresh_form(self, fake_strava):
        identity = AppIdentity(client_id="777", client_secret="pinned")
        tokens = run_with_oauth(
            fake_strava, lambda oauth: oauth.refresh_token("refresh-1", identity)
        )
        form = fake_strava.token_requests[0]
        assert form == {
            "client_id": "777",
            "client_secret": "pinned",
            "grant_type": "refresh_token",
            "refresh_token": "refresh-1",
        }
        assert tokens.refresh_token == "new-refresh-1"

    def test_rejected(self, fake_strava):
        fake_strava.token_responses = [(400, '{"message":"Bad Request","errors":[]}')]
        with pytest.raises(StravaOAuthError) as exc_info:
            run_with_oauth(
                fake_strava,
                lambda oauth: oauth.refresh_token(
                    "stale", AppIdentity(client_id="1", client_secret="s")
                ),
            )
        assert exc_info.value.status_code == 400
        assert "Bad Request" in str(exc_info.value)


class TestIdentityRepr:
    def test_secret_hidden(self):
        assert "default-secret" not in repr(CREDENTIALS)
        assert "default-secret" not in str(CREDENTIALS)
