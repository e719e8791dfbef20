"""
Enums for auth flow states and statistics time ranges.

Single source of truth for string constants used across services,
the application controller and the CLI.
"""

from enum import StrEnum


class AuthState(StrEnum):
    """States of the browser login flow."""
    IDLE = "idle"
    AWAITING_BROWSER_CONSENT = "awaiting_browser_consent"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING_CODE = "exchanging_code"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class TimeRange(StrEnum):
    """Time windows accepted by the top tracks/artists endpoints."""
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"

    @property
    def label(self) -> str:
        return {
            TimeRange.SHORT_TERM: "Last 4 weeks",
            TimeRange.MEDIUM_TERM: "Last 6 months",
            TimeRange.LONG_TERM: "All time",
        }[self]
