"""
Strava-related database models.

Models:
- StravaToken: OAuth tokens plus the app identity that minted them
- StravaActivity: Normalized activity, keyed by Strava's activity ID
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from stravhat.models.base import Base


class StravaToken(Base):
    """
    Strava OAuth token storage.

    access_token / refresh_token are encrypted (legacy rows may still hold
    plaintext until the next read). oauth_client_id_enc /
    oauth_client_secret_enc pin the app identity that issued the refresh
    token; once set they are never changed for this row.
    """

    __tablename__ = "strava_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )

    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False)  # naive UTC

    # Credential override (encrypted)
    oauth_client_id_enc = Column(Text, nullable=True)
    oauth_client_secret_enc = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def has_override(self) -> bool:
        return bool(self.oauth_client_id_enc and self.oauth_client_secret_enc)

    def __repr__(self):
        return f"<StravaToken user_id={self.user_id} expires_at={self.expires_at}>"


class StravaActivity(Base):
    """
    Normalized Strava activity.

    strava_activity_id is the idempotency key: re-importing an activity
    overwrites this row instead of adding another.
    """

    __tablename__ = "strava_activities"
    __table_args__ = (
        Index("ix_strava_activities_user_start", "user_id", "start_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    strava_activity_id = Column(String(32), unique=True, nullable=False)

    # Activity info
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False)
    sport_type = Column(String(50), nullable=False)
    start_date = Column(DateTime, nullable=False)
    start_date_local = Column(DateTime, nullable=False)
    timezone = Column(String(100), nullable=False)

    # Core metrics
    distance = Column(Float, nullable=False)             # meters
    moving_time = Column(Integer, nullable=False)        # seconds
    elapsed_time = Column(Integer, nullable=False)       # seconds
    total_elevation_gain = Column(Float, nullable=False)  # meters
    average_speed = Column(Float, nullable=False)        # m/s
    max_speed = Column(Float, nullable=False)            # m/s

    # Heart rate / power
    average_heartrate = Column(Float, nullable=True)
    max_heartrate = Column(Float, nullable=True)
    average_watts = Column(Float, nullable=True)
    max_watts = Column(Float, nullable=True)
    weighted_average_watts = Column(Float, nullable=True)
    kilojoules = Column(Float, nullable=True)
    calories = Column(Float, nullable=True)              # reported or estimated kcal

    # Running dynamics
    average_cadence = Column(Float, nullable=True)
    stride_length = Column(Float, nullable=True)         # meters
    ground_contact_time = Column(Float, nullable=True)   # milliseconds
    vertical_oscillation = Column(Float, nullable=True)  # centimeters

    suffer_score = Column(Float, nullable=True)

    # Flags
    trainer = Column(Boolean, nullable=False, default=False)
    commute = Column(Boolean, nullable=False, default=False)
    manual = Column(Boolean, nullable=False, default=False)
    has_heartrate = Column(Boolean, nullable=False, default=False)

    # Sync metadata
    imported_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<StravaActivity {self.strava_activity_id} {self.type} {self.distance}m>"
