"""Shared fixtures: throwaway encryption key, SQLite database, fake Strava."""

import json
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from stravhat.features.strava import StravaToken
from stravhat.features.users import User
from stravhat.models.base import Base
from stravhat.shared.security import SecretCodec

# Fixed "now" for token expiry tests (naive UTC)
NOW = datetime(2026, 3, 1, 12, 0, 0)
# expires_at returned by every fake refresh: NOW + 6h as unix seconds
REFRESHED_EXPIRES_AT = int((NOW + timedelta(hours=6)).replace(tzinfo=timezone.utc).timestamp())

DEFAULT_CREDENTIALS = {
    "client_id": "12345",
    "client_secret": "default-secret",
    "redirect_uri": "https://app.example.com/strava/callback",
}


def fixed_clock():
    return NOW


def make_activity(activity_id: int, **overrides) -> dict:
    """Realistic /athlete/activities entry."""
    activity = {
        "id": activity_id,
        "name": f"Morning Run {activity_id}",
        "type": "Run",
        "sport_type": "Run",
        "start_date": "2026-02-20T06:30:00Z",
        "start_date_local": "2026-02-20T07:30:00Z",
        "timezone": "(GMT+01:00) Europe/Paris",
        "distance": 10020.5,
        "moving_time": 3000,
        "elapsed_time": 3120,
        "total_elevation_gain": 85.0,
        "average_speed": 3.34,
        "max_speed": 5.1,
        "average_heartrate": 152.0,
        "max_heartrate": 176.0,
        "average_cadence": 84.0,
        "suffer_score": 61,
        "trainer": False,
        "commute": False,
        "manual": False,
        "has_heartrate": True,
    }
    activity.update(overrides)
    return activity


# =============================================================================
# Fake Strava
# =============================================================================

class FakeStrava:
    """
    In-memory Strava serving the token and activities endpoints.

    pages: list of activity pages; page N is pages[N-1], beyond that [].
    activity_responses: queued (status, headers, body) returned before
        serving real pages, e.g. 429s or 401s.
    page_errors: page number -> (status, body) served instead of that page.
    """

    def __init__(self, pages=None):
        self.pages = pages or []
        self.activity_responses: list[tuple[int, dict, object]] = []
        self.page_errors: dict[int, tuple[int, str]] = {}
        self.token_responses: list[tuple[int, object]] = []
        self.token_requests: list[dict] = []
        self.activity_requests: list[httpx.Request] = []
        self._refresh_counter = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/oauth/token":
            return self._token(request)
        if request.url.path == "/api/v3/athlete/activities":
            return self._activities(request)
        return httpx.Response(404, text="not found")

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = dict(httpx.QueryParams(request.content.decode()))
        self.token_requests.append(form)
        if self.token_responses:
            status, body = self.token_responses.pop(0)
            return httpx.Response(status, text=body if isinstance(body, str) else json.dumps(body))
        self._refresh_counter += 1
        n = self._refresh_counter
        return httpx.Response(200, json={
            "access_token": f"new-access-{n}",
            "refresh_token": f"new-refresh-{n}",
            "expires_at": REFRESHED_EXPIRES_AT,
            "athlete": {"id": 987654},
        })

    def _activities(self, request: httpx.Request) -> httpx.Response:
        self.activity_requests.append(request)
        if self.activity_responses:
            status, headers, body = self.activity_responses.pop(0)
            if isinstance(body, str):
                return httpx.Response(status, headers=headers, text=body)
            return httpx.Response(status, headers=headers, json=body)
        page = int(request.url.params["page"])
        if page in self.page_errors:
            status, body = self.page_errors[page]
            return httpx.Response(status, text=body)
        data = self.pages[page - 1] if page <= len(self.pages) else []
        return httpx.Response(200, json=data)

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def fake_strava():
    return FakeStrava()


# =============================================================================
# Crypto / DB
# =============================================================================

@pytest.fixture
def codec() -> SecretCodec:
    """Codec with a throwaway key."""
    return SecretCodec.from_base64(SecretCodec.generate_key())


@pytest.fixture
def open_db(tmp_path):
    """
    Factory for sessions on a temporary SQLite file.

    Usage (inside asyncio.run):
        async with open_db() as db:
            ...
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"

    @asynccontextmanager
    async def _open():
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, expire_on_commit=False)
        try:
            async with factory() as session:
                yield session
        finally:
            await engine.dispose()

    return _open


@pytest.fixture
def seed(codec):
    """Async helpers that insert users and tokens."""

    class Seeder:
        async def user(self, db, with_credentials=True, **fields) -> User:
            values = {"hr_max": 190, "weight_kg": 68.0}
            if with_credentials:
                values.update(
                    strava_client_id_enc=codec.encrypt(DEFAULT_CREDENTIALS["client_id"]),
                    strava_client_secret_enc=codec.encrypt(DEFAULT_CREDENTIALS["client_secret"]),
                    strava_redirect_uri_enc=codec.encrypt(DEFAULT_CREDENTIALS["redirect_uri"]),
                )
            values.update(fields)
            user = User(**values)
            db.add(user)
            await db.commit()
            return user

        async def token(
            self,
            db,
            user_id,
            expires_in=timedelta(hours=2),
            access_token="access-1",
            refresh_token="refresh-1",
            encrypted=True,
            override=None,
        ) -> StravaToken:
            token = StravaToken(
                user_id=user_id,
                access_token=codec.encrypt(access_token) if encrypted else access_token,
                refresh_token=codec.encrypt(refresh_token) if encrypted else refresh_token,
                expires_at=NOW + expires_in,
            )
            if override:
                token.oauth_client_id_enc = codec.encrypt(override[0])
                token.oauth_client_secret_enc = codec.encrypt(override[1])
            db.add(token)
            await db.commit()
            return token

    return Seeder()
