"""
Strava import orchestration.

Main entry point for importing a user's activity history.

Import Flow:
1. Get a valid access token and the user's profile (once)
2. For page = 1, 2, ...:
   - fetch the page; an empty page ends the import
   - on 401: force a token refresh and fetch the same page once more
   - normalize every activity and upsert the page in one transaction
3. Return counts

Pages are strictly sequential. A failure aborts the run; pages committed
before it stay committed, and re-running is safe because activities are
upserted by Strava ID. Callers should run at most one import per user
at a time.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stravhat.features.users import UserRepository
from stravhat.shared.security import SecretCodec
from ..client import StravaClient
from ..exceptions import StravaAuthError
from ..repository import StravaActivityRepository
from ..tokens import TokenManager
from .normalizer import ActivityNormalizer

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Counters for one import run."""

    imported: int = 0
    pages: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class ImportService:
    """
    Import orchestrator.

    Usage:
        service = ImportService(db, codec)
        result = await service.import_all(user_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        codec: SecretCodec,
        client: Optional[StravaClient] = None,
        token_manager: Optional[TokenManager] = None,
        normalizer: Optional[ActivityNormalizer] = None,
    ):
        self.db = db
        self.client = client or StravaClient()
        self.tokens = token_manager or TokenManager(db, codec)
        self.normalizer = normalizer or ActivityNormalizer()
        self.users = UserRepository(db)
        self.activities = StravaActivityRepository(db)

    async def import_all(self, user_id: str) -> ImportResult:
        """
        Import every activity of the user.

        Raises:
            NotConnectedError / MissingCredentialsError: Setup incomplete
            StravaAuthError: Token still rejected after a forced refresh
            RateLimitExceededError: 429 past the retry budget
            StravaAPIError / StravaOAuthError: Other provider failures
        """
        access_token = await self.tokens.get_valid_access_token(user_id)
        profile = await self.users.get_profile_snapshot(user_id)

        result = ImportResult()
        page = 1

        while True:
            activities, access_token = await self._fetch_page(user_id, access_token, page)
            if not activities:
                break

            rows = [
                self.normalizer.normalize(user_id, activity, profile)
                for activity in activities
            ]
            await self._commit_page(rows)

            result.pages += 1
            result.imported += len(activities)
            logger.info(
                f"Imported page {page} ({len(activities)} activities) for user {user_id}"
            )
            page += 1

        logger.info(
            f"Strava import finished for user {user_id}: "
            f"{result.imported} activities in {result.pages} pages"
        )
        return result

    async def _fetch_page(
        self,
        user_id: str,
        access_token: str,
        page: int,
    ) -> tuple[list[dict], str]:
        """
        Fetch a page, recovering once from a rejected token.

        Returns the page and the access token that fetched it.
        """
        try:
            return await self.client.fetch_page(access_token, page), access_token
        except StravaAuthError:
            logger.warning(
                f"Strava rejected access token on page {page} for user {user_id}, "
                f"refreshing"
            )

        access_token = await self.tokens.get_valid_access_token(user_id, force_refresh=True)
        return await self.client.fetch_page(access_token, page), access_token

    async def _commit_page(self, rows: list[dict]) -> None:
        """Upsert one page atomically."""
        try:
            await self.activities.upsert_many(rows)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
