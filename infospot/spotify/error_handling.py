"""
Retry and exception translation for Spotify Web API calls.

``api_error_handler`` wraps SpotifyAPI methods: spotipy and requests
failures are classified, transient ones are retried with exponential
backoff, and everything else is re-raised as an exception from
``infospot.spotify.exceptions``.
"""

import logging
import time
from functools import wraps
from typing import Callable, Optional

import spotipy
from requests.exceptions import RequestException

from .exceptions import (
    SpotifyAPIError,
    SpotifyError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyTokenExpiredError,
)

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 4
BASE_DELAY = 2  # seconds
MAX_DELAY = 16  # seconds
DEFAULT_RETRY_AFTER = 60  # seconds, when a 429 carries no header

_STATUS_CATEGORIES = {
    401: "token_expired",
    404: "not_found",
    429: "rate_limited",
}
_SERVER_STATUSES = frozenset({500, 502, 503, 504})


def _calculate_backoff_delay(attempt: int, base_delay: float = BASE_DELAY) -> float:
    """Delay before retry number ``attempt`` (zero-based), capped at MAX_DELAY."""
    return min(base_delay * 2 ** attempt, MAX_DELAY)


def _classify_error(exception: Exception) -> str:
    """
    Map an exception to a category name.

    One of: not_found, token_expired, rate_limited, server_error,
    client_error, network_error, unexpected.
    """
    if isinstance(exception, spotipy.SpotifyException):
        status = exception.http_status
        if status in _SERVER_STATUSES:
            return "server_error"
        return _STATUS_CATEGORIES.get(status, "client_error")
    if isinstance(exception, RequestException):
        return "network_error"
    return "unexpected"


def _should_retry(error_category: str, idempotent: bool = True) -> bool:
    """
    Whether a failed call may be sent again.

    A 429 means the request was not applied, so it is always resent.
    After a server or network error the outcome is unknown, and only
    idempotent calls are repeated.
    """
    if error_category == "rate_limited":
        return True
    if error_category in ("server_error", "network_error"):
        return idempotent
    return False


def _retry_after(exception: Exception) -> int:
    headers = getattr(exception, "headers", None) or {}
    try:
        return int(headers.get("Retry-After", DEFAULT_RETRY_AFTER))
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER


def _get_retry_delay(exception: Exception, error_category: str, attempt: int) -> float:
    backoff = _calculate_backoff_delay(attempt)
    if error_category == "rate_limited":
        return max(_retry_after(exception), backoff)
    return backoff


def _to_spotify_error(
    exception: Exception, error_category: str, func_name: str
) -> SpotifyError:
    """Build the exception reported once a call has finally failed."""
    status = getattr(exception, "http_status", None)
    body = getattr(exception, "msg", None)
    detail = body or str(exception)

    if error_category == "not_found":
        return SpotifyNotFoundError(f"Resource not found: {detail}", body=body)
    if error_category == "token_expired":
        return SpotifyTokenExpiredError(f"Token expired or invalid: {detail}")
    if error_category == "rate_limited":
        return SpotifyRateLimitError(
            f"Rate limited by Spotify: {detail}",
            retry_after=_retry_after(exception),
            body=body,
        )
    if error_category == "network_error":
        logger.error(f"Network error in {func_name}: {exception}")
        return SpotifyAPIError(f"Network error talking to Spotify: {exception}")
    if error_category == "unexpected":
        logger.error(f"Unexpected error in {func_name}: {exception}", exc_info=exception)
        return SpotifyAPIError(f"Unexpected error: {exception}")

    logger.error(f"Spotify API error in {func_name}: HTTP {status} {detail}")
    label = "Spotify server error" if error_category == "server_error" else "API error"
    return SpotifyAPIError(f"{label} {status}: {detail}", status_code=status, body=body)


def api_error_handler(
    func: Optional[Callable] = None,
    *,
    idempotent: bool = True,
) -> Callable:
    """
    Decorate a SpotifyAPI method with retry and error translation.

    Usable bare or with arguments. Mutations pass ``idempotent=False``
    so they are retried only after a 429. Exceptions that are already
    SpotifyError subclasses propagate unchanged.

    Usage:
        @api_error_handler
        def get_current_user(self): ...

        @api_error_handler(idempotent=False)
        def remove_track_positions(self, ...): ...
    """
    if func is None:
        return lambda f: api_error_handler(f, idempotent=idempotent)

    @wraps(func)
    def wrapper(*args, **kwargs):
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except SpotifyError:
                raise
            except Exception as e:
                category = _classify_error(e)
                if attempt >= MAX_RETRIES or not _should_retry(category, idempotent):
                    raise _to_spotify_error(e, category, func.__name__) from e

                delay = _get_retry_delay(e, category, attempt)
                attempt += 1
                logger.warning(
                    f"{category} in {func.__name__}, attempt "
                    f"{attempt}/{MAX_RETRIES + 1}. Retrying in {delay}s"
                )
                time.sleep(delay)

    return wrapper
