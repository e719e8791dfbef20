"""
Spotify module exceptions.

Provides a clean exception hierarchy for the OAuth flow and
Spotify API operations. Every message is suitable for direct display.
"""

from typing import Optional


class SpotifyError(Exception):
    """Base exception for all Spotify-related errors."""
    pass


class ConfigurationError(SpotifyError):
    """Raised when client credentials are missing or invalid."""
    pass


class SpotifyAuthError(SpotifyError):
    """Raised when authentication/authorization fails."""
    pass


class BrowserLaunchError(SpotifyAuthError):
    """Raised when the system browser cannot be opened."""
    pass


class CallbackTimeoutError(SpotifyAuthError):
    """Raised when no redirect reaches the loopback listener in time."""
    pass


class RedirectParseError(SpotifyAuthError):
    """Raised when the redirect request carries no authorization code."""
    pass


class AuthorizationDeniedError(SpotifyAuthError):
    """Raised when Spotify redirects back with an ``error`` parameter."""

    def __init__(self, message: str, error: str = None, description: str = None):
        super().__init__(message)
        self.error = error
        self.description = description


class AuthorizationCancelledError(SpotifyAuthError):
    """Raised when the caller cancels the wait for the redirect."""
    pass


class StateMismatchError(SpotifyAuthError):
    """Raised when the redirect's ``state`` differs from the one sent."""
    pass


class SpotifyTokenError(SpotifyAuthError):
    """Raised when token operations fail."""
    pass


class TokenExchangeError(SpotifyTokenError):
    """Raised when the token endpoint rejects a request or returns garbage."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SpotifyTokenExpiredError(SpotifyTokenError):
    """Raised when a token has expired and cannot be refreshed."""
    pass


class SpotifyAPIError(SpotifyError):
    """Raised when a Spotify API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SpotifyRateLimitError(SpotifyAPIError):
    """Raised when rate limited by Spotify API."""

    def __init__(self, message: str, retry_after: int = None, **kwargs):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class SpotifyNotFoundError(SpotifyAPIError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)
