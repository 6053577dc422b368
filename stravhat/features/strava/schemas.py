"""
Strava schemas.

Pydantic models for provider payloads and the app identity.
"""

from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppIdentity(BaseModel):
    """Client id/secret pair, all a token refresh needs."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str

    def __repr__(self):
        # Never render the secret
        return f"{type(self).__name__}(client_id={self.client_id!r})"

    __str__ = __repr__


class ProviderCredentials(AppIdentity):
    """Decrypted default app identity of a user."""

    redirect_uri: str


# http redirect URIs are accepted only for these hosts
LOCAL_REDIRECT_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class CredentialUpdate(BaseModel):
    """
    User-submitted default credentials, validated before encryption.

    A blank client_secret means "keep the stored one".
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: str = Field(min_length=1, max_length=32, pattern=r"^\d+$")
    client_secret: Optional[str] = Field(default=None, min_length=8, max_length=256)
    redirect_uri: str = Field(min_length=1)

    @field_validator("client_secret", mode="before")
    @classmethod
    def blank_secret_is_omitted(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("redirect_uri")
    @classmethod
    def redirect_uri_allowed(cls, v: str) -> str:
        parts = urlsplit(v)
        if parts.scheme == "https" and parts.hostname:
            return v
        if parts.scheme == "http" and parts.hostname in LOCAL_REDIRECT_HOSTS:
            return v
        raise ValueError("Redirect URI must use https (http only for localhost)")

    def __repr__(self):
        return f"{type(self).__name__}(client_id={self.client_id!r})"

    __str__ = __repr__


class StravaAthlete(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int


class StravaTokenResponse(BaseModel):
    """Token endpoint response (code exchange or refresh)."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_at: int  # unix seconds
    athlete: Optional[StravaAthlete] = None


class StravaActivityPayload(BaseModel):
    """
    One entry of GET /athlete/activities.

    Only id, name, type and the dates are required; every metric is
    optional and defaulted by the normalizer.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    type: str
    sport_type: Optional[str] = None
    start_date: datetime
    start_date_local: datetime
    timezone: str = ""

    distance: Optional[float] = None
    moving_time: Optional[int] = None
    elapsed_time: Optional[int] = None
    total_elevation_gain: Optional[float] = None
    average_speed: Optional[float] = None
    max_speed: Optional[float] = None

    average_heartrate: Optional[float] = None
    max_heartrate: Optional[float] = None
    average_watts: Optional[float] = None
    max_watts: Optional[float] = None
    weighted_average_watts: Optional[float] = None
    kilojoules: Optional[float] = None
    calories: Optional[float] = None

    average_cadence: Optional[float] = None
    stride_length: Optional[float] = None
    ground_contact_time: Optional[float] = None
    vertical_oscillation: Optional[float] = None

    suffer_score: Optional[float] = None

    trainer: Optional[bool] = None
    commute: Optional[bool] = None
    manual: Optional[bool] = None
    has_heartrate: Optional[bool] = None
