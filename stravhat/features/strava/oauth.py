"""
Strava OAuth flow.

Handles:
- Authorization URL generation
- Code exchange for tokens
- Token refresh

Every call takes the app identity explicitly: each user brings their own
Strava application, so there is no process-wide client id/secret.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from stravhat.config import Settings, settings as default_settings
from .exceptions import StravaOAuthError
from .schemas import AppIdentity, ProviderCredentials, StravaTokenResponse

logger = logging.getLogger(__name__)


class StravaOAuth:
    """
    Strava OAuth handler.

    Usage:
        oauth = StravaOAuth()
        auth_url = oauth.get_authorization_url(credentials, state="user_123")
        tokens = await oauth.exchange_code(code, credentials)
        tokens = await oauth.refresh_token(refresh_token, credentials)
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token_url = settings.strava_oauth_url
        self.authorize_url = settings.strava_authorize_url
        self.scope = settings.strava_oauth_scope
        self.timeout = settings.strava_http_timeout_seconds
        self._client = client

    def get_authorization_url(
        self,
        credentials: ProviderCredentials,
        state: Optional[str] = None,
    ) -> str:
        """
        Generate Strava OAuth authorization URL.

        Args:
            credentials: App identity to authorize against
            state: Optional state parameter for CSRF protection

        Returns:
            Authorization URL string
        """
        params = {
            "client_id": credentials.client_id,
            "response_type": "code",
            "approval_prompt": "auto",
            "scope": self.scope,
            "redirect_uri": credentials.redirect_uri,
        }
        if state:
            params["state"] = state

        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(
        self,
        code: str,
        credentials: ProviderCredentials,
    ) -> StravaTokenResponse:
        """
        Exchange authorization code for tokens.

        Raises:
            StravaOAuthError: If token exchange fails
        """
        return await self._exchange(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": credentials.redirect_uri,
            },
            credentials,
        )

    async def refresh_token(
        self,
        refresh_token: str,
        credentials: AppIdentity,
    ) -> StravaTokenResponse:
        """
        Trade a refresh token for a new access/refresh pair.

        Raises:
            StravaOAuthError: If the refresh token is expired or revoked
        """
        return await self._exchange(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
            credentials,
        )

    async def _exchange(
        self,
        params: dict[str, str],
        credentials: AppIdentity,
    ) -> StravaTokenResponse:
        data = {
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            **params,
        }

        if self._client is not None:
            response = await self._client.post(
                self.token_url, data=data, timeout=self.timeout
            )
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.token_url, data=data)

        if not response.is_success:
            logger.error(
                f"Strava {params['grant_type']} exchange failed: "
                f"{response.status_code}"
            )
            raise StravaOAuthError(response.status_code, response.text)

        return StravaTokenResponse.model_validate(response.json())
