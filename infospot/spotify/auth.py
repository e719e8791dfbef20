"""
Spotify authentication and token management.

Handles authorization URL generation, code-for-token exchange and
token refresh. This module is responsible for all authentication
concerns, separating them from data operations.
"""

import logging
import secrets
import string
import time
from dataclasses import asdict, dataclass
from typing import Dict, Any, Iterable, Optional
from urllib.parse import urlencode

import requests

from .credentials import SpotifyCredentials
from .exceptions import (
    SpotifyAuthError,
    SpotifyTokenError,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)


AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"

# Default OAuth scopes for InfoSpot
DEFAULT_SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-top-read",
    "user-read-recently-played",
    "playlist-read-private",
    "playlist-read-collaborative",
    "playlist-modify-public",
    "playlist-modify-private",
]

_STATE_ALPHABET = string.ascii_letters + string.digits


def generate_state(length: int = 16) -> str:
    """Return a random alphanumeric string for the OAuth ``state`` parameter."""
    return "".join(secrets.choice(_STATE_ALPHABET) for _ in range(length))


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    scopes: Iterable[str],
    state: str,
) -> str:
    """
    Build the Spotify authorize URL the browser is sent to.

    Args:
        client_id: The Spotify application client ID.
        redirect_uri: Loopback URI Spotify redirects back to.
        scopes: OAuth scopes, joined with spaces.
        state: Opaque value echoed back on the redirect.

    Returns:
        The fully encoded authorization URL.
    """
    params = {
        "client_id": client_id,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "scope": " ".join(scopes),
        "state": state,
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


@dataclass
class TokenInfo:
    """
    Access token issued by the Spotify token endpoint.

    ``expires_at`` is an absolute Unix timestamp; payloads that only
    carry ``expires_in`` are converted when loaded.
    """

    access_token: str
    token_type: str
    expires_at: float
    refresh_token: Optional[str] = None
    scope: Optional[str] = None
    expires_in: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TokenInfo":
        """
        Load a token endpoint payload.

        Raises:
            SpotifyTokenError: If the payload is not a mapping or lacks
                ``access_token`` or ``token_type``.
        """
        if not isinstance(payload, dict):
            raise SpotifyTokenError(
                f"Unexpected token payload type: {type(payload).__name__}"
            )

        absent = [name for name in ("access_token", "token_type") if not payload.get(name)]
        if absent:
            raise SpotifyTokenError(f"Token payload lacks {', '.join(absent)}")

        expires_at = payload.get("expires_at")
        if expires_at is None:
            expires_at = time.time() + int(payload.get("expires_in") or 3600)

        return cls(
            access_token=payload["access_token"],
            token_type=payload["token_type"],
            expires_at=float(expires_at),
            refresh_token=payload.get("refresh_token"),
            scope=payload.get("scope"),
            expires_in=payload.get("expires_in"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Payload form of the token, without unset fields."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    @property
    def is_expired(self) -> bool:
        return time.time() >= self.expires_at

    @property
    def expires_in_seconds(self) -> int:
        """Seconds left before expiry (negative once expired)."""
        return int(self.expires_at - time.time())

    def expires_within(self, seconds: float) -> bool:
        """True if the token expires in less than ``seconds``."""
        return self.expires_at - time.time() < seconds


class SpotifyAuthManager:
    """
    Client side of Spotify's authorization-code grant.

    Knows the app credentials and the scopes to request; holds no token
    itself. The AuthSession owns the current token and hands it in for
    refresh.

    Example:
        auth_manager = SpotifyAuthManager(SpotifyCredentials.from_env())
        url = auth_manager.get_auth_url(generate_state())
        # ... browser consent, loopback redirect ...
        token_info = auth_manager.exchange_code(code)
    """

    def __init__(
        self,
        credentials: SpotifyCredentials,
        scopes: Optional[list] = None,
        timeout: int = 30,
    ):
        self._credentials = credentials
        self._scopes = list(scopes or DEFAULT_SCOPES)
        self._timeout = timeout

    @property
    def credentials(self) -> SpotifyCredentials:
        return self._credentials

    @property
    def scopes(self) -> list:
        return list(self._scopes)

    def get_auth_url(self, state: str) -> str:
        """Consent screen URL for this client, carrying ``state``."""
        url = build_authorization_url(
            self._credentials.client_id,
            self._credentials.redirect_uri,
            self._scopes,
            state,
        )
        logger.debug(f"Authorize URL built for scopes: {' '.join(self._scopes)}")
        return url

    def exchange_code(self, code: str) -> TokenInfo:
        """
        Trade the redirect's authorization code for a token.

        Raises:
            SpotifyAuthError: If ``code`` is empty.
            TokenExchangeError: If the token endpoint call fails.
        """
        if not code:
            raise SpotifyAuthError("Authorization code is required")

        token_info = self._request_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._credentials.redirect_uri,
            },
            action="Token exchange",
        )
        logger.info("Authorization code exchanged for an access token")
        return token_info

    def refresh_token(self, token_info: TokenInfo) -> TokenInfo:
        """
        Get a new access token using ``token_info.refresh_token``.

        Spotify often omits the refresh token from the response; the
        current one is carried over in that case.

        Raises:
            SpotifyTokenError: If there is no refresh token.
            TokenExchangeError: If the token endpoint call fails.
        """
        if not token_info.refresh_token:
            raise SpotifyTokenError("Cannot refresh: no refresh_token available")

        refreshed = self._request_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": token_info.refresh_token,
            },
            action="Token refresh",
            keep_refresh_token=token_info.refresh_token,
        )
        logger.info("Access token refreshed")
        return refreshed

    def ensure_valid_token(self, token_info: TokenInfo, margin: float = 0) -> TokenInfo:
        """Return ``token_info``, or a refreshed token if it expires within ``margin``."""
        if token_info.expires_within(margin):
            logger.info(f"Token expires in {token_info.expires_in_seconds}s, refreshing")
            return self.refresh_token(token_info)
        return token_info

    def _request_token(
        self,
        form: Dict[str, str],
        action: str,
        keep_refresh_token: Optional[str] = None,
    ) -> TokenInfo:
        """POST to the token endpoint with HTTP basic client auth."""
        try:
            response = requests.post(
                TOKEN_URL,
                data=form,
                auth=(self._credentials.client_id, self._credentials.client_secret),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{action} request failed: {e}")
            raise TokenExchangeError(f"{action} failed: {e}")

        status, body = response.status_code, response.text
        if status < 200 or status >= 300:
            logger.error(f"{action} rejected with HTTP {status}")
            raise TokenExchangeError(
                f"{action} failed (HTTP {status}): {body}",
                status_code=status,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError:
            raise TokenExchangeError(
                f"{action} returned malformed JSON (HTTP {status}): {body}",
                status_code=status,
                body=body,
            )

        if keep_refresh_token and isinstance(payload, dict):
            payload.setdefault("refresh_token", keep_refresh_token)

        try:
            return TokenInfo.from_dict(payload)
        except SpotifyTokenError as e:
            raise TokenExchangeError(
                f"{action} returned an invalid token: {e}",
                status_code=status,
                body=body,
            )


def exchange_code_for_token(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
    timeout: int = 30,
) -> TokenInfo:
    """
    One-off authorization code exchange without a long-lived manager.

    Raises:
        ConfigurationError: If client ID or secret is empty.
        TokenExchangeError: If the token endpoint call fails.
    """
    credentials = SpotifyCredentials(client_id, client_secret, redirect_uri)
    return SpotifyAuthManager(credentials, timeout=timeout).exchange_code(code)
