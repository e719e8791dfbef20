"""
Error reporting for the command line.

Turns service-layer exceptions, Spotify client errors and Pydantic
validation errors into one-line user messages and process exit codes.
"""

import logging

from pydantic import ValidationError

from infospot.services import (
    DuplicateRemovalError,
    PlaylistError,
    PlaylistExportError,
    PlaylistImportError,
    PlaylistNotFoundError,
    StatsError,
)
from infospot.spotify.exceptions import (
    AuthorizationCancelledError,
    AuthorizationDeniedError,
    CallbackTimeoutError,
    ConfigurationError,
    SpotifyAPIError,
    SpotifyAuthError,
    SpotifyError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyTokenError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_CONFIG = 3
EXIT_AUTH = 4
EXIT_API = 5
EXIT_INTERRUPTED = 130

# Most specific first
_EXIT_CODES = (
    (ConfigurationError, EXIT_CONFIG),
    (AuthorizationCancelledError, EXIT_INTERRUPTED),
    (SpotifyAuthError, EXIT_AUTH),
    (SpotifyAPIError, EXIT_API),
    (SpotifyError, EXIT_ERROR),
    (ValidationError, EXIT_USAGE),
    (StatsError, EXIT_USAGE),
    (KeyboardInterrupt, EXIT_INTERRUPTED),
)


def format_validation_error(error: ValidationError) -> str:
    """Join Pydantic errors as ``field: message`` pairs."""
    errors_list = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        errors_list.append(f"{field}: {err['msg']}" if field else err["msg"])
    return "; ".join(errors_list) if errors_list else "Validation failed"


def describe_error(error: BaseException) -> str:
    """
    User-facing message for an exception.

    Args:
        error: Any exception raised by a service or the Spotify layer.

    Returns:
        A single line suitable for printing.
    """
    if isinstance(error, ValidationError):
        return f"Invalid data: {format_validation_error(error)}"

    if isinstance(error, ConfigurationError):
        return (
            f"{error} Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET "
            "in your environment or .env file."
        )

    if isinstance(error, AuthorizationDeniedError):
        return f"Spotify authorization was denied: {error.description or error.error or error}"

    if isinstance(error, CallbackTimeoutError):
        return f"Login timed out: {error}"

    if isinstance(error, AuthorizationCancelledError):
        return "Login cancelled."

    if isinstance(error, SpotifyTokenError):
        return f"Authentication error: {error}"

    if isinstance(error, SpotifyAuthError):
        return f"Login failed: {error}"

    if isinstance(error, SpotifyRateLimitError):
        wait = f" Try again in {error.retry_after}s." if error.retry_after else ""
        return f"Spotify rate limit reached.{wait}"

    if isinstance(error, (SpotifyNotFoundError, PlaylistNotFoundError)):
        return f"Not found: {error}"

    if isinstance(error, SpotifyAPIError):
        return f"Spotify API error: {error}"

    if isinstance(error, (PlaylistExportError, PlaylistImportError, PlaylistError)):
        return str(error)

    if isinstance(error, DuplicateRemovalError):
        return f"Duplicate removal incomplete: {error}"

    if isinstance(error, StatsError):
        return f"Invalid request: {error}"

    if isinstance(error, KeyboardInterrupt):
        return "Interrupted."

    logger.error(f"Unexpected error: {error}", exc_info=error)
    return f"An unexpected error occurred: {error}"


def exit_code_for(error: BaseException) -> int:
    """Process exit code for an exception (1 when not otherwise mapped)."""
    for error_class, code in _EXIT_CODES:
        if isinstance(error, error_class):
            return code
    return EXIT_ERROR
