"""
Strava app credentials.

Each user brings their own Strava API application. The three values
(client id, client secret, redirect URI) are stored encrypted on the user
row and are only usable as a complete set.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stravhat.features.users import UserRepository
from stravhat.shared.security import SecretCodec
from .exceptions import MissingCredentialsError, UserNotFoundError
from .repository import StravaTokenRepository
from .schemas import CredentialUpdate, ProviderCredentials

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Resolve a user's default app identity."""

    def __init__(self, db: AsyncSession, codec: SecretCodec):
        self.users = UserRepository(db)
        self.codec = codec

    async def resolve(self, user_id: str) -> ProviderCredentials:
        """
        Decrypt the user's default credentials.

        Raises:
            UserNotFoundError: No such user
            MissingCredentialsError: Any of the three values is missing
            SecretDecryptionError: A stored value does not decrypt
        """
        user = await self.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        if not (
            user.strava_client_id_enc
            and user.strava_client_secret_enc
            and user.strava_redirect_uri_enc
        ):
            raise MissingCredentialsError(user_id)

        return ProviderCredentials(
            client_id=self.codec.decrypt(user.strava_client_id_enc),
            client_secret=self.codec.decrypt(user.strava_client_secret_enc),
            redirect_uri=self.codec.decrypt(user.strava_redirect_uri_enc),
        )


class CredentialService:
    """
    Manage a user's default credentials.

    Changing or clearing credentials drops the existing token: it was
    minted by the previous app and the user has to reconnect.
    """

    def __init__(self, db: AsyncSession, codec: SecretCodec):
        self.db = db
        self.codec = codec
        self.users = UserRepository(db)
        self.tokens = StravaTokenRepository(db)

    async def is_configured(self, user_id: str) -> bool:
        user = await self.users.get_by_id(user_id)
        return bool(
            user
            and user.strava_client_id_enc
            and user.strava_client_secret_enc
            and user.strava_redirect_uri_enc
        )

    async def save(
        self,
        user_id: str,
        client_id: str,
        client_secret: Optional[str],
        redirect_uri: str,
    ) -> None:
        """
        Validate, encrypt and store the credentials, then drop the token.

        A blank client_secret keeps the stored one; it is required the
        first time.

        Raises:
            ValueError: A value fails validation (pydantic ValidationError)
            UserNotFoundError: No such user
        """
        update = CredentialUpdate(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
        )

        user = await self.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        if update.client_secret is None and not user.strava_client_secret_enc:
            raise ValueError("Client Secret is required on first configuration")

        await self.users.update(
            user,
            strava_client_id_enc=self.codec.encrypt(update.client_id),
            strava_client_secret_enc=(
                self.codec.encrypt(update.client_secret)
                if update.client_secret is not None
                else user.strava_client_secret_enc
            ),
            strava_redirect_uri_enc=self.codec.encrypt(update.redirect_uri),
        )
        await self.tokens.delete_for_user(user_id)
        await self.db.commit()
        logger.info(f"Strava credentials updated for user {user_id}; reconnect required")

    async def clear(self, user_id: str) -> None:
        """Remove stored credentials and the token."""
        user = await self.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        await self.users.update(
            user,
            strava_client_id_enc=None,
            strava_client_secret_enc=None,
            strava_redirect_uri_enc=None,
        )
        await self.tokens.delete_for_user(user_id)
        await self.db.commit()
        logger.info(f"Strava credentials cleared for user {user_id}")
