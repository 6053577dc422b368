"""
Strava integration module.

Usage:
    from stravhat.features.strava import ImportService, TokenManager

Components:
- CredentialResolver / CredentialService: Per-user app identity
- StravaOAuth: OAuth flow (auth URL, code exchange, refresh)
- TokenManager: Token lifecycle (refresh, legacy re-encryption, connect)
- StravaClient: Rate-limited activity page fetcher
- ImportService: Full import orchestration

Models:
- StravaToken: OAuth tokens storage
- StravaActivity: Imported activity data
"""

from .exceptions import (
    StravaError,
    StravaConfigurationError,
    MissingCredentialsError,
    NotConnectedError,
    UserNotFoundError,
    StravaAPIError,
    StravaAuthError,
    RateLimitExceededError,
    StravaOAuthError,
)
from .models import StravaToken, StravaActivity
from .schemas import (
    AppIdentity,
    CredentialUpdate,
    ProviderCredentials,
    StravaActivityPayload,
    StravaTokenResponse,
)
from .repository import StravaTokenRepository, StravaActivityRepository
from .credentials import CredentialResolver, CredentialService
from .oauth import StravaOAuth
from .tokens import TokenManager
from .client import StravaClient
from .sync.service import ImportService, ImportResult

__all__ = [
    # Errors
    "StravaError",
    "StravaConfigurationError",
    "MissingCredentialsError",
    "NotConnectedError",
    "UserNotFoundError",
    "StravaAPIError",
    "StravaAuthError",
    "RateLimitExceededError",
    "StravaOAuthError",
    # Models
    "StravaToken",
    "StravaActivity",
    # Schemas
    "AppIdentity",
    "CredentialUpdate",
    "ProviderCredentials",
    "StravaActivityPayload",
    "StravaTokenResponse",
    # Repositories
    "StravaTokenRepository",
    "StravaActivityRepository",
    # Services
    "CredentialResolver",
    "CredentialService",
    "StravaOAuth",
    "TokenManager",
    "StravaClient",
    "ImportService",
    "ImportResult",
]
