"""
Authenticated session state.

Holds the current TokenInfo in a lock-guarded cell. Written once after
login (and on refresh), read by every API call; cleared on logout.
"""

import logging
import threading
from typing import Optional

from infospot.spotify.auth import TokenInfo
from infospot.spotify.exceptions import SpotifyTokenError

logger = logging.getLogger(__name__)


class AuthSession:
    """Single-writer, multi-reader holder of the current access token."""

    def __init__(self, token_info: Optional[TokenInfo] = None):
        self._lock = threading.RLock()
        self._token_info = token_info

    @property
    def token_info(self) -> Optional[TokenInfo]:
        """The current token, or None when logged out."""
        with self._lock:
            return self._token_info

    @property
    def is_authenticated(self) -> bool:
        return self.token_info is not None

    def require_token(self) -> TokenInfo:
        """
        Return the current token.

        Raises:
            SpotifyTokenError: If nobody is logged in.
        """
        token_info = self.token_info
        if token_info is None:
            raise SpotifyTokenError("Not logged in. Please log in with Spotify first.")
        return token_info

    def set_token(self, token_info: TokenInfo) -> None:
        with self._lock:
            self._token_info = token_info
        logger.debug("Session token updated")

    def replace_if_current(self, old: TokenInfo, new: TokenInfo) -> TokenInfo:
        """
        Swap in a refreshed token unless another caller already did.

        Returns:
            The token now held by the session.
        """
        with self._lock:
            if self._token_info is old:
                self._token_info = new
            return self._token_info

    def clear(self) -> None:
        with self._lock:
            self._token_info = None
        logger.info("Session cleared")
