"""
Users feature module.

Models:
- User: profile and default Strava app credentials
"""

from .models import User
from .repository import UserRepository, UserProfileSnapshot

__all__ = ["User", "UserRepository", "UserProfileSnapshot"]
