"""
Strava error taxonomy.

- Configuration errors: the user has not finished setup. Never retried.
- StravaAPIError: non-2xx from the activities endpoint; carries the status
  code and response body. StravaAuthError is the 401 case.
- RateLimitExceededError: 429 persisted past the retry budget.
- StravaOAuthError: non-2xx from the token endpoint.

Decryption failures are raised by the codec itself
(stravhat.shared.security.SecretDecryptionError).
"""


class StravaError(Exception):
    """Base Strava error."""
    pass


# =============================================================================
# Configuration
# =============================================================================

class StravaConfigurationError(StravaError):
    """User setup is incomplete; show a setup prompt rather than retrying."""
    pass


class MissingCredentialsError(StravaConfigurationError):
    """Client ID / secret / redirect URI are not all configured."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(
            "Strava credentials missing: configure Client ID, Client Secret "
            "and Redirect URI"
        )


class NotConnectedError(StravaConfigurationError):
    """User has no Strava token."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Strava not connected")


class UserNotFoundError(StravaConfigurationError):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


# =============================================================================
# Provider responses
# =============================================================================

class StravaAPIError(StravaError):
    """Strava API returned a non-2xx response."""

    def __init__(self, status_code: int, body: str, context: str = "Strava activities"):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{context} failed ({status_code}): {body}")


class StravaAuthError(StravaAPIError):
    """Access token rejected (HTTP 401)."""
    pass


class RateLimitExceededError(StravaError):
    """Still rate limited after the retry budget was spent."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Strava rate limit exceeded after {attempts} retries"
        )


class StravaOAuthError(StravaError):
    """Token endpoint rejected a code exchange or refresh."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Strava token exchange failed ({status_code}): {body}")
