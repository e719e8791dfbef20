"""
Spotify API integration module.

This module provides the OAuth loopback flow and the Web API operations
InfoSpot needs.

Architecture:
    - credentials.py: SpotifyCredentials for config/DI
    - auth.py: SpotifyAuthManager for authorize URLs, code exchange, refresh
    - callback_server.py: LoopbackCallbackServer, the one-shot redirect receiver
    - api.py: SpotifyAPI for data operations
    - error_handling.py: retry/backoff and exception translation
    - exceptions.py: Exception hierarchy

Usage:
    from infospot.spotify import (
        SpotifyCredentials,
        SpotifyAuthManager,
        LoopbackCallbackServer,
        SpotifyAPI,
        generate_state,
    )
    from infospot.session import AuthSession

    credentials = SpotifyCredentials.from_env()
    auth_manager = SpotifyAuthManager(credentials)

    state = generate_state()
    with LoopbackCallbackServer(credentials.callback_port) as server:
        webbrowser.open(auth_manager.get_auth_url(state))
        result = server.await_one_redirect(timeout=300)

    session = AuthSession(auth_manager.exchange_code(result.code))
    api = SpotifyAPI(session, auth_manager)
    playlists = api.get_user_playlists()
"""

# Credentials (for dependency injection)
from .credentials import (
    SpotifyCredentials,
    DEFAULT_REDIRECT_URI,
    DEFAULT_CALLBACK_PORT,
    parse_callback_port,
)

# Auth (token management)
from .auth import (
    SpotifyAuthManager,
    TokenInfo,
    DEFAULT_SCOPES,
    build_authorization_url,
    generate_state,
    exchange_code_for_token,
)

# Loopback redirect receiver
from .callback_server import (
    LoopbackCallbackServer,
    CallbackResult,
    parse_redirect_args,
    run_loopback_listener,
)

# API (data operations)
from .api import SpotifyAPI

# Exceptions
from .exceptions import (
    SpotifyError,
    ConfigurationError,
    SpotifyAuthError,
    BrowserLaunchError,
    CallbackTimeoutError,
    RedirectParseError,
    AuthorizationDeniedError,
    AuthorizationCancelledError,
    StateMismatchError,
    SpotifyTokenError,
    TokenExchangeError,
    SpotifyTokenExpiredError,
    SpotifyAPIError,
    SpotifyRateLimitError,
    SpotifyNotFoundError,
)


__all__ = [
    # Credentials
    'SpotifyCredentials',
    'DEFAULT_REDIRECT_URI',
    'DEFAULT_CALLBACK_PORT',
    'parse_callback_port',

    # Auth
    'SpotifyAuthManager',
    'TokenInfo',
    'DEFAULT_SCOPES',
    'build_authorization_url',
    'generate_state',
    'exchange_code_for_token',

    # Loopback
    'LoopbackCallbackServer',
    'CallbackResult',
    'parse_redirect_args',
    'run_loopback_listener',

    # API
    'SpotifyAPI',

    # Exceptions
    'SpotifyError',
    'ConfigurationError',
    'SpotifyAuthError',
    'BrowserLaunchError',
    'CallbackTimeoutError',
    'RedirectParseError',
    'AuthorizationDeniedError',
    'AuthorizationCancelledError',
    'StateMismatchError',
    'SpotifyTokenError',
    'TokenExchangeError',
    'SpotifyTokenExpiredError',
    'SpotifyAPIError',
    'SpotifyRateLimitError',
    'SpotifyNotFoundError',
]
