"""
Strava repositories.

Data access layer for Strava-related models.
"""

from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import select, desc, func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from stravhat.shared.repository import BaseRepository
from .models import StravaToken, StravaActivity


class StravaTokenRepository(BaseRepository[StravaToken]):
    """Repository for Strava OAuth tokens."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, StravaToken)

    async def get_by_user_id(self, user_id: str) -> StravaToken | None:
        return await self.get_by(user_id=user_id)

    async def update_tokens(
        self,
        token: StravaToken,
        access_token: str,
        refresh_token: str,
        expires_at: datetime | None = None,
    ) -> StravaToken:
        """
        Store new (already encrypted) token values.

        expires_at is left untouched when None, which is how the legacy
        re-encryption path writes without moving the expiry.
        """
        values: dict[str, Any] = {
            "access_token": access_token,
            "refresh_token": refresh_token,
        }
        if expires_at is not None:
            values["expires_at"] = expires_at
        return await self.update(token, **values)

    async def pin_override(
        self,
        token: StravaToken,
        client_id_enc: str,
        client_secret_enc: str,
    ) -> StravaToken:
        """
        Stamp the credential override, only if the row has none.

        An existing override belongs to the current refresh-token lineage
        and is kept as-is.
        """
        if token.has_override:
            return token
        return await self.update(
            token,
            oauth_client_id_enc=client_id_enc,
            oauth_client_secret_enc=client_secret_enc,
        )

    async def delete_for_user(self, user_id: str) -> bool:
        """Delete the user's token. Returns True if a row was removed."""
        return await self.delete_where(user_id=user_id) > 0


class StravaActivityRepository(BaseRepository[StravaActivity]):
    """Repository for Strava activities."""

    # Columns never overwritten by a re-import
    _PRESERVED_ON_UPDATE = frozenset({"id", "strava_activity_id", "imported_at"})

    def __init__(self, db: AsyncSession):
        super().__init__(db, StravaActivity)

    async def get_by_strava_id(self, strava_activity_id: str) -> StravaActivity | None:
        return await self.get_by(strava_activity_id=strava_activity_id)

    async def upsert_many(self, rows: Iterable[dict[str, Any]]) -> int:
        """
        Insert-or-replace activities keyed by strava_activity_id.

        The whole batch is a single INSERT ... ON CONFLICT DO UPDATE
        statement, so it lands completely or not at all. Does not commit.

        Args:
            rows: Column dicts as produced by the normalizer

        Returns:
            Number of rows written
        """
        # One statement cannot touch the same key twice; last one wins
        rows = list({row["strava_activity_id"]: row for row in rows}.values())
        if not rows:
            return 0

        now = datetime.utcnow()
        for row in rows:
            row.setdefault("imported_at", now)
            row["updated_at"] = now

        # Only PostgreSQL and SQLite are supported
        dialect = self.db.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = insert(StravaActivity).values(rows)

        update_columns = {
            column.name: stmt.excluded[column.name]
            for column in StravaActivity.__table__.columns
            if column.name not in self._PRESERVED_ON_UPDATE
        }
        stmt = stmt.on_conflict_do_update(
            index_elements=[StravaActivity.strava_activity_id],
            set_=update_columns,
        )
        await self.db.execute(stmt)
        return len(rows)

    async def get_user_activities(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> list[StravaActivity]:
        """User activities ordered newest first."""
        result = await self.db.execute(
            select(StravaActivity)
            .where(StravaActivity.user_id == user_id)
            .order_by(desc(StravaActivity.start_date))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_user_activities(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(StravaActivity)
            .where(StravaActivity.user_id == user_id)
        )
        return result.scalar() or 0
