"""
Tests for CredentialResolver and CredentialService.
"""

import asyncio

import pytest

from stravhat.features.strava import (
    CredentialResolver,
    CredentialService,
    MissingCredentialsError,
    StravaTokenRepository,
    UserNotFoundError,
)
from tests.conftest import DEFAULT_CREDENTIALS


@pytest.fixture
def run(open_db):
    def _run(scenario):
        async def _main():
            async with open_db() as db:
                return await scenario(db)

        return asyncio.run(_main())

    return _run


class TestResolve:
    """Tests for resolving default credentials."""

    def test_decrypts_all_three(self, run, seed, codec):
        async def scenario(db):
            user = await seed.user(db)
            return await CredentialResolver(db, codec).resolve(user.id)

        credentials = run(scenario)
        assert credentials.client_id == DEFAULT_CREDENTIALS["client_id"]
        assert credentials.client_secret == DEFAULT_CREDENTIALS["client_secret"]
        assert credentials.redirect_uri == DEFAULT_CREDENTIALS["redirect_uri"]

    def test_partial_configuration(self, run, seed, codec):
        async def scenario(db):
            user = await seed.user(
                db,
                with_credentials=False,
                strava_client_id_enc=codec.encrypt("12345"),
                strava_client_secret_enc=codec.encrypt("secret"),
            )
            with pytest.raises(MissingCredentialsError) as exc_info:
                await CredentialResolver(db, codec).resolve(user.id)
            return exc_info.value

        error = run(scenario)
        assert "Redirect URI" in str(error)

    def test_unknown_user(self, run, codec):
        async def scenario(db):
            with pytest.raises(UserNotFoundError):
                await CredentialResolver(db, codec).resolve("missing")

        run(scenario)


class TestSave:
    """Tests for storing credentials."""

    def test_stored_encrypted_and_token_dropped(self, run, seed, codec):
        async def scenario(db):
            user = await seed.user(db, with_credentials=False)
            await seed.token(db, user.id)
            await CredentialService(db, codec).save(
                user.id, " 555 ", "new-secret", "https://example.org/cb"
            )
            token = await StravaTokenRepository(db).get_by_user_id(user.id)
            return user, token

        user, token = run(scenario)
        assert token is None
        assert codec.is_encrypted(user.strava_client_secret_enc)
        assert codec.decrypt(user.strava_client_id_enc) == "555"
        assert codec.decrypt(user.strava_redirect_uri_enc) == "https://example.org/cb"

    @pytest.mark.parametrize("client_id,client_secret,redirect_uri,field", [
        ("", "valid-secret", "https://example.org/cb", "client_id"),
        ("not-a-number", "valid-secret", "https://example.org/cb", "client_id"),
        ("1" * 33, "valid-secret", "https://example.org/cb", "client_id"),
        ("555", "short", "https://example.org/cb", "client_secret"),
        ("555", "s" * 257, "https://example.org/cb", "client_secret"),
        ("555", "valid-secret", "javascript:alert(1)", "redirect_uri"),
        ("555", "valid-secret", "http://example.org/cb", "redirect_uri"),
        ("555", "valid-secret", "ftp://example.org/cb", "redirect_uri"),
        ("555", "valid-secret", "", "redirect_uri"),
    ])
    def test_invalid_values_rejected(
        self, run, seed, codec, client_id, client_secret, redirect_uri, field
    ):
        async def scenario(db):
            user = await seed.user(db)
            await seed.token(db, user.id)
            with pytest.raises(ValueError, match=field):
                await CredentialService(db, codec).save(
                    user.id, client_id, client_secret, redirect_uri
                )
            return user, await StravaTokenRepository(db).get_by_user_id(user.id)

        user, token = run(scenario)
        # Nothing changed, token kept
        assert token is not None
        assert codec.decrypt(user.strava_client_id_enc) == DEFAULT_CREDENTIALS["client_id"]

    @pytest.mark.parametrize("redirect_uri", [
        "http://localhost:8000/strava/callback",
        "http://127.0.0.1/cb",
        "http://[::1]:3000/cb",
    ])
    def test_local_http_redirect_allowed(self, run, seed, codec, redirect_uri):
        async def scenario(db):
            user = await seed.user(db, with_credentials=False)
            await CredentialService(db, codec).save(
                user.id, "555", "valid-secret", redirect_uri
            )
            return user

        user = run(scenario)
        assert codec.decrypt(user.strava_redirect_uri_enc) == redirect_uri

    def test_blank_secret_keeps_stored(self, run, seed, codec):
        async def scenario(db):
            user = await seed.user(db)
            await seed.token(db, user.id)
            await CredentialService(db, codec).save(
                user.id, "555", "   ", "https://example.org/cb"
            )
            return user, await StravaTokenRepository(db).get_by_user_id(user.id)

        user, token = run(scenario)
        assert codec.decrypt(user.strava_client_id_enc) == "555"
        assert codec.decrypt(user.strava_client_secret_enc) == DEFAULT_CREDENTIALS["client_secret"]
        assert token is None

    def test_secret_required_first_time(self, run, seed, codec):
        async def scenario(db):
            user = await seed.user(db, with_credentials=False)
            with pytest.raises(ValueError, match="required"):
                await CredentialService(db, codec).save(
                    user.id, "555", None, "https://example.org/cb"
                )
            return user

        user = run(scenario)
        assert user.strava_client_id_enc is None

    def test_is_configured(self, run, seed, codec):
        async def scenario(db):
            service = CredentialService(db, codec)
            configured = await seed.user(db)
            bare = await seed.user(db, with_credentials=False)
            return (
                await service.is_configured(configured.id),
                await service.is_configured(bare.id),
                await service.is_configured("missing"),
            )

        assert run(scenario) == (True, False, False)


class TestClear:
    def test_clears_values_and_token(self, run, seed, codec):
        async def scenario(db):
            user = await seed.user(db)
            await seed.token(db, user.id)
            service = CredentialService(db, codec)
            await service.clear(user.id)
            token = await StravaTokenRepository(db).get_by_user_id(user.id)
            return user, token, await service.is_configured(user.id)

        user, token, configured = run(scenario)
        assert user.strava_client_id_enc is None
        assert token is None
        assert configured is False
