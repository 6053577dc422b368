"""
User repository.

Data access layer for the User model.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stravhat.shared.repository import BaseRepository
from .models import User


@dataclass(frozen=True)
class UserProfileSnapshot:
    """Read-only physiological profile consumed once per import run."""

    hr_max: Optional[float] = None
    weight_kg: Optional[float] = None
    age: Optional[int] = None
    height_cm: Optional[float] = None


class UserRepository(BaseRepository[User]):
    """Repository for users."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_profile_snapshot(self, user_id: str) -> UserProfileSnapshot:
        """
        Get the user's profile for calorie estimation.

        Returns an empty snapshot if the user row is missing, so estimates
        fall back to population defaults.
        """
        user = await self.get_by_id(user_id)
        if not user:
            return UserProfileSnapshot()
        return UserProfileSnapshot(
            hr_max=user.hr_max,
            weight_kg=user.weight_kg,
            age=user.age,
            height_cm=user.height_cm,
        )
