"""
User model.

Holds the physiological profile used for calorie estimation and the user's
default Strava application identity (client id / secret / redirect URI),
each stored encrypted.
"""

from datetime import datetime
import uuid

from sqlalchemy import Column, String, DateTime, Integer, Float, Text

from stravhat.models.base import Base


class User(Base):
    """Application user connected to Strava for activity import."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=True)

    # Strava integration
    strava_athlete_id = Column(String(20), index=True, nullable=True)

    # Default Strava app credentials (encrypted, all three or none)
    strava_client_id_enc = Column(Text, nullable=True)
    strava_client_secret_enc = Column(Text, nullable=True)
    strava_redirect_uri_enc = Column(Text, nullable=True)

    # Physiological profile
    hr_max = Column(Integer, nullable=False, default=190)
    weight_kg = Column(Float, nullable=True)
    age = Column(Integer, nullable=True)
    height_cm = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.id}>"
