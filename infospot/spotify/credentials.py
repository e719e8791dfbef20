"""
Spotify credentials management.

Provides a frozen dataclass for the three OAuth settings and the
helpers that derive the loopback listener port from the redirect URI.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_CALLBACK_PORT = 8888


def parse_callback_port(redirect_uri: Optional[str]) -> int:
    """
    Extract the listener port from a redirect URI.

    Args:
        redirect_uri: e.g. ``http://127.0.0.1:8080/callback``.

    Returns:
        The explicit port, or DEFAULT_CALLBACK_PORT when the URI is
        empty, has no port, or the port cannot be parsed.
    """
    if not redirect_uri:
        return DEFAULT_CALLBACK_PORT
    try:
        port = urlparse(redirect_uri).port
    except ValueError:
        logger.warning(
            "Unparseable port in redirect URI %s, using %d",
            redirect_uri, DEFAULT_CALLBACK_PORT,
        )
        return DEFAULT_CALLBACK_PORT
    return port or DEFAULT_CALLBACK_PORT


@dataclass(frozen=True)
class SpotifyCredentials:
    """
    Immutable container for Spotify OAuth credentials.

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
        redirect_uri: The loopback callback URL registered with Spotify.

    Example:
        credentials = SpotifyCredentials.from_env()

        # Or create directly
        credentials = SpotifyCredentials(
            client_id='your_client_id',
            client_secret='your_client_secret',
        )
    """

    client_id: str
    client_secret: str
    redirect_uri: str = DEFAULT_REDIRECT_URI

    def __post_init__(self):
        """Validate credentials on creation."""
        if not self.client_id:
            raise ConfigurationError(
                "Missing Spotify client ID. Set SPOTIFY_CLIENT_ID in your .env file."
            )
        if not self.client_secret:
            raise ConfigurationError(
                "Missing Spotify client secret. "
                "Set SPOTIFY_CLIENT_SECRET in your .env file."
            )
        if not self.redirect_uri:
            # frozen dataclass, so bypass __setattr__
            object.__setattr__(self, "redirect_uri", DEFAULT_REDIRECT_URI)

    @property
    def callback_port(self) -> int:
        """Port the loopback listener must bind to."""
        return parse_callback_port(self.redirect_uri)

    @classmethod
    def from_config(cls, config) -> 'SpotifyCredentials':
        """
        Create credentials from a config class or dictionary.

        Args:
            config: A ``config.Config`` subclass or a dict of settings.

        Returns:
            SpotifyCredentials instance.

        Raises:
            ConfigurationError: If client ID or secret is missing.
        """
        if isinstance(config, dict):
            get = config.get
        else:
            def get(key, default=None):
                return getattr(config, key, default)
        return cls(
            client_id=get('SPOTIFY_CLIENT_ID') or '',
            client_secret=get('SPOTIFY_CLIENT_SECRET') or '',
            redirect_uri=get('SPOTIFY_REDIRECT_URI') or DEFAULT_REDIRECT_URI,
        )

    @classmethod
    def from_env(cls) -> 'SpotifyCredentials':
        """
        Create credentials from environment variables.

        Raises:
            ConfigurationError: If client ID or secret is missing.
        """
        return cls(
            client_id=os.getenv('SPOTIFY_CLIENT_ID', ''),
            client_secret=os.getenv('SPOTIFY_CLIENT_SECRET', ''),
            redirect_uri=os.getenv('SPOTIFY_REDIRECT_URI') or DEFAULT_REDIRECT_URI,
        )
