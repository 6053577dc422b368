"""
Strava token lifecycle.

Owns the access/refresh pair of each user:
- get_valid_access_token(): return a usable access token, refreshing when
  it expires within the margin and lazily encrypting legacy plaintext rows
- connect(): first authorization handshake (code exchange)
- disconnect(): drop the token

A refresh always uses the app identity pinned on the token row (the one
that issued the refresh token). The user's current default credentials are
used only when no identity is pinned yet, and are then pinned.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stravhat.features.users import UserRepository
from stravhat.shared.security import SecretCodec
from .credentials import CredentialResolver
from .exceptions import NotConnectedError, UserNotFoundError
from .models import StravaToken
from .oauth import StravaOAuth
from .repository import StravaTokenRepository
from .schemas import AppIdentity
from .sync.config import SyncConfig

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC now, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_unix(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).replace(tzinfo=None)


class TokenManager:
    """
    Token lifecycle manager.

    Usage:
        manager = TokenManager(db, codec)
        access_token = await manager.get_valid_access_token(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        codec: SecretCodec,
        oauth: Optional[StravaOAuth] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.codec = codec
        self.oauth = oauth or StravaOAuth()
        self.clock = clock
        self.tokens = StravaTokenRepository(db)
        self.users = UserRepository(db)
        self.credentials = CredentialResolver(db, codec)

    async def get_valid_access_token(
        self,
        user_id: str,
        force_refresh: bool = False,
    ) -> str:
        """
        Get a valid access token for user, refreshing if needed.

        Args:
            user_id: User ID
            force_refresh: Refresh even if the token is not close to expiry
                (the provider rejected it)

        Raises:
            NotConnectedError: User has no token
            MissingCredentialsError: Refresh needed, nothing pinned and no
                default credentials configured
            StravaOAuthError: Provider rejected the refresh
            SecretDecryptionError: Stored token does not decrypt
        """
        token = await self.tokens.get_by_user_id(user_id)
        if not token:
            raise NotConnectedError(user_id)

        access_token = self.codec.decrypt_if_encrypted(token.access_token)
        refresh_token = self.codec.decrypt_if_encrypted(token.refresh_token)
        is_legacy = not (
            self.codec.is_encrypted(token.access_token)
            and self.codec.is_encrypted(token.refresh_token)
        )

        margin = timedelta(seconds=SyncConfig.TOKEN_EXPIRY_MARGIN_SECONDS)
        if not force_refresh and token.expires_at > self.clock() + margin:
            if is_legacy:
                await self._reencrypt(token, access_token, refresh_token)
            return access_token

        return await self._refresh(token, refresh_token)

    async def _reencrypt(
        self,
        token: StravaToken,
        access_token: str,
        refresh_token: str,
    ) -> None:
        """Persist legacy plaintext tokens encrypted, keeping expires_at."""
        await self.tokens.update_tokens(
            token,
            access_token=self.codec.encrypt(access_token),
            refresh_token=self.codec.encrypt(refresh_token),
        )
        await self.db.commit()
        logger.info(f"Re-encrypted legacy Strava tokens for user {token.user_id}")

    async def _resolve_refresh_identity(self, token: StravaToken) -> AppIdentity:
        if token.has_override:
            return AppIdentity(
                client_id=self.codec.decrypt(token.oauth_client_id_enc),
                client_secret=self.codec.decrypt(token.oauth_client_secret_enc),
            )
        return await self.credentials.resolve(token.user_id)

    async def _refresh(self, token: StravaToken, refresh_token: str) -> str:
        user_id = token.user_id
        identity = await self._resolve_refresh_identity(token)

        logger.info(f"Refreshing Strava token for user {user_id}")
        refreshed = await self.oauth.refresh_token(refresh_token, identity)

        await self.tokens.update_tokens(
            token,
            access_token=self.codec.encrypt(refreshed.access_token),
            refresh_token=self.codec.encrypt(refreshed.refresh_token),
            expires_at=from_unix(refreshed.expires_at),
        )
        await self.tokens.pin_override(
            token,
            client_id_enc=self.codec.encrypt(identity.client_id),
            client_secret_enc=self.codec.encrypt(identity.client_secret),
        )
        await self.db.commit()

        return refreshed.access_token

    # -------------------------------------------------------------------------
    # Connect / disconnect
    # -------------------------------------------------------------------------

    async def connect(self, user_id: str, code: str) -> StravaToken:
        """
        Complete the authorization handshake and store the token.

        Starts a new refresh-token lineage, pinned to the user's current
        default credentials.
        """
        user = await self.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        credentials = await self.credentials.resolve(user_id)
        token_data = await self.oauth.exchange_code(code, credentials)

        values = dict(
            access_token=self.codec.encrypt(token_data.access_token),
            refresh_token=self.codec.encrypt(token_data.refresh_token),
            expires_at=from_unix(token_data.expires_at),
            oauth_client_id_enc=self.codec.encrypt(credentials.client_id),
            oauth_client_secret_enc=self.codec.encrypt(credentials.client_secret),
        )

        token = await self.tokens.get_by_user_id(user_id)
        if token:
            token = await self.tokens.update(token, **values)
        else:
            token = await self.tokens.create(user_id=user_id, **values)

        if token_data.athlete is not None:
            await self.users.update(user, strava_athlete_id=str(token_data.athlete.id))

        await self.db.commit()
        logger.info(f"Strava connected for user {user_id}")
        return token

    async def disconnect(self, user_id: str) -> bool:
        """
        Delete the user's token.

        Returns True if a token was deleted.
        """
        deleted = await self.tokens.delete_for_user(user_id)
        await self.db.commit()
        if deleted:
            logger.info(f"Strava disconnected for user {user_id}")
        return deleted
