"""
Authentication service for the browser-based Spotify login.

Drives the OAuth authorization-code flow: binds the loopback receiver,
opens the system browser on the consent screen, waits for the redirect,
verifies the echoed state and exchanges the code for tokens.
"""

import logging
import threading
import webbrowser
from typing import Callable, Optional

from infospot.enums import AuthState
from infospot.spotify.auth import SpotifyAuthManager, TokenInfo, generate_state
from infospot.spotify.callback_server import (
    DEFAULT_CALLBACK_TIMEOUT,
    LoopbackCallbackServer,
)
from infospot.spotify.exceptions import (
    AuthorizationCancelledError,
    BrowserLaunchError,
    SpotifyAuthError,
    SpotifyError,
    StateMismatchError,
)

logger = logging.getLogger(__name__)

# Flow states from which a new login may start
_RESTARTABLE = (AuthState.IDLE, AuthState.FAILED, AuthState.AUTHENTICATED)


class AuthService:
    """
    Service running one browser login at a time.

    State machine:
        IDLE -> AWAITING_BROWSER_CONSENT -> AWAITING_REDIRECT
             -> EXCHANGING_CODE -> AUTHENTICATED
    with FAILED reachable from the three middle states. Nothing is
    retried automatically; calling ``login()`` again restarts from IDLE.
    """

    def __init__(
        self,
        auth_manager: SpotifyAuthManager,
        timeout: float = DEFAULT_CALLBACK_TIMEOUT,
        open_browser: bool = True,
        browser_opener: Callable[[str], bool] = webbrowser.open,
        server_factory: Callable[[int], LoopbackCallbackServer] = LoopbackCallbackServer,
        on_auth_url: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            auth_manager: Builds the authorize URL and exchanges the code.
            timeout: Seconds to wait for the redirect.
            open_browser: Launch the system browser; when False the URL is
                only handed to ``on_auth_url``.
            browser_opener: Function opening a URL, ``webbrowser.open`` by default.
            server_factory: Builds the loopback receiver for a port.
            on_auth_url: Called with the authorization URL before waiting.
        """
        self._auth_manager = auth_manager
        self._timeout = timeout
        self._open_browser = open_browser
        self._browser_opener = browser_opener
        self._server_factory = server_factory
        self._on_auth_url = on_auth_url
        self._state = AuthState.IDLE
        self._last_error: Optional[SpotifyError] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def last_error(self) -> Optional[SpotifyError]:
        return self._last_error

    def build_authorization_url(self, oauth_state: str) -> str:
        """Authorization URL for the configured client, redirect URI and scopes."""
        return self._auth_manager.get_auth_url(oauth_state)

    def login(self, cancel_event: Optional[threading.Event] = None) -> TokenInfo:
        """
        Run the full browser login.

        Args:
            cancel_event: Set it from another thread to abort the wait.

        Returns:
            TokenInfo from the token endpoint.

        Raises:
            SpotifyAuthError: If a login is already running, or any step
                fails (browser, timeout, denial, bad redirect, state
                mismatch, cancellation, token exchange).
        """
        with self._lock:
            if self._state not in _RESTARTABLE:
                raise SpotifyAuthError("A login is already in progress")
            self._state = AuthState.IDLE
            self._last_error = None

        oauth_state = generate_state()
        auth_url = self.build_authorization_url(oauth_state)
        credentials = self._auth_manager.credentials
        server = self._server_factory(credentials.callback_port)

        try:
            self._transition(AuthState.AWAITING_BROWSER_CONSENT)
            # Listen before the browser can possibly redirect
            server.start()
            if self._on_auth_url is not None:
                self._on_auth_url(auth_url)
            if self._open_browser:
                self._launch_browser(auth_url)

            self._transition(AuthState.AWAITING_REDIRECT)
            result = server.await_one_redirect(
                timeout=self._timeout, cancel_event=cancel_event
            )
            if result.state != oauth_state:
                raise StateMismatchError(
                    "Login response did not match this login attempt. "
                    "Please try again."
                )

            self._transition(AuthState.EXCHANGING_CODE)
            token_info = self._auth_manager.exchange_code(result.code)
        except SpotifyError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = SpotifyAuthError(f"Unexpected error during login: {e}")
            self._fail(error)
            raise error from e
        except BaseException:
            # Ctrl+C mid-login must still leave the flow restartable
            self._fail(AuthorizationCancelledError("Login interrupted"))
            raise
        finally:
            server.close()

        self._transition(AuthState.AUTHENTICATED)
        logger.info("Login completed")
        return token_info

    def reset(self) -> None:
        """Return to IDLE after logout."""
        with self._lock:
            self._state = AuthState.IDLE
            self._last_error = None

    def _launch_browser(self, url: str) -> None:
        try:
            opened = self._browser_opener(url)
        except webbrowser.Error as e:
            logger.error(f"Failed to open browser: {e}")
            raise BrowserLaunchError(f"Failed to open browser: {e}")
        if not opened:
            raise BrowserLaunchError(
                "Failed to open browser. Open the login URL manually."
            )
        logger.debug("Browser opened on Spotify consent screen")

    def _transition(self, new_state: AuthState) -> None:
        logger.debug(f"Auth flow: {self._state} -> {new_state}")
        self._state = new_state

    def _fail(self, error: SpotifyError) -> None:
        logger.error(f"Login failed during {self._state}: {error}")
        self._last_error = error
        self._state = AuthState.FAILED
