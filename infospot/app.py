"""
Application controller.

Owns the credentials, the auth manager and the session, and builds the
Spotify client and services on first use after login.
"""

import logging
import threading
from typing import Callable, Optional

from config import Config
from infospot.enums import AuthState
from infospot.services import (
    AuthService,
    DuplicateService,
    ExportService,
    PlaylistService,
    StatsService,
)
from infospot.session import AuthSession
from infospot.spotify import (
    DEFAULT_SCOPES,
    SpotifyAPI,
    SpotifyAuthManager,
    SpotifyCredentials,
    TokenInfo,
)

logger = logging.getLogger(__name__)


class InfoSpotApp:
    """
    Wires the application together for one user session.

    Example:
        app = InfoSpotApp.from_config(config["default"])
        app.login()
        print(app.stats.get_top_genres())
    """

    def __init__(
        self,
        credentials: SpotifyCredentials,
        scopes: Optional[list] = None,
        callback_timeout: float = 300,
        refresh_margin: float = 60,
        export_dir: str = "~/Downloads",
        open_browser: bool = True,
        on_auth_url: Optional[Callable[[str], None]] = None,
        auth_service: Optional[AuthService] = None,
    ):
        self.credentials = credentials
        self.auth_manager = SpotifyAuthManager(credentials, scopes=scopes)
        self.session = AuthSession()
        self.export_dir = export_dir
        self._refresh_margin = refresh_margin
        self._auth_service = auth_service or AuthService(
            self.auth_manager,
            timeout=callback_timeout,
            open_browser=open_browser,
            on_auth_url=on_auth_url,
        )
        self._api: Optional[SpotifyAPI] = None

    @classmethod
    def from_config(cls, config_class=Config, **kwargs) -> "InfoSpotApp":
        """
        Build the application from a config class.

        Raises:
            ConfigurationError: If client ID or secret is missing.
        """
        credentials = SpotifyCredentials.from_config(config_class)
        scopes = getattr(config_class, "SPOTIFY_SCOPES", None)
        kwargs.setdefault("scopes", scopes.split() if scopes else list(DEFAULT_SCOPES))
        kwargs.setdefault("callback_timeout", config_class.CALLBACK_TIMEOUT)
        kwargs.setdefault("refresh_margin", config_class.TOKEN_REFRESH_MARGIN)
        kwargs.setdefault("export_dir", config_class.EXPORT_DIR)
        kwargs.setdefault("open_browser", config_class.OPEN_BROWSER)
        return cls(credentials, **kwargs)

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    @property
    def auth_state(self) -> AuthState:
        return self._auth_service.state

    def login(self, cancel_event: Optional[threading.Event] = None) -> TokenInfo:
        """Run the browser login and store the token in the session."""
        token_info = self._auth_service.login(cancel_event=cancel_event)
        self.session.set_token(token_info)
        return token_info

    def logout(self) -> None:
        """Forget the token and every client built from it."""
        self.session.clear()
        self._auth_service.reset()
        self._api = None
        logger.info("Logged out")

    # =========================================================================
    # Clients and services
    # =========================================================================

    @property
    def api(self) -> SpotifyAPI:
        if self._api is None:
            self._api = SpotifyAPI(
                self.session,
                self.auth_manager,
                refresh_margin=self._refresh_margin,
            )
        return self._api

    @property
    def stats(self) -> StatsService:
        return StatsService(self.api)

    @property
    def playlists(self) -> PlaylistService:
        return PlaylistService(self.api)

    @property
    def duplicates(self) -> DuplicateService:
        return DuplicateService(self.api, self.playlists)

    @property
    def exports(self) -> ExportService:
        return ExportService(self.api, self.export_dir, self.playlists)
