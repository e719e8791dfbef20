"""
Spotify API data operations.

Handles the Spotify Web API calls InfoSpot needs: user profile, listening
statistics, playlists and playlist mutations. Authentication is delegated
to the session and the auth manager.
"""

import logging
from typing import Dict, List, Any, Iterable, Optional, TYPE_CHECKING

import spotipy

from .auth import SpotifyAuthManager, TokenInfo
from .error_handling import api_error_handler
from .exceptions import SpotifyTokenExpiredError

if TYPE_CHECKING:
    from infospot.session import AuthSession

logger = logging.getLogger(__name__)

# Silence spotipy's verbose logging
logging.getLogger("spotipy").setLevel(logging.WARNING)

TIME_RANGES = ("short_term", "medium_term", "long_term")


def _chunks(items: List[Any], size: int) -> Iterable[List[Any]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


def track_id_from_uri(value: str) -> str:
    """Return the bare track ID from a ``spotify:track:<id>`` URI or an ID."""
    return value.split(":")[-1] if ":" in value else value


class SpotifyAPI:
    """
    Spotify Web API client for data operations.

    Every call first makes sure the session token is usable, refreshing
    it through the auth manager when it is about to expire.

    Example:
        session = AuthSession(token_info)
        api = SpotifyAPI(session, auth_manager)
        playlists = api.get_user_playlists()
    """

    # Batch sizes imposed by the Spotify API
    BATCH_SIZE = 100
    TRACK_LOOKUP_BATCH_SIZE = 50
    PAGE_SIZE = 50

    def __init__(
        self,
        session: "AuthSession",
        auth_manager: Optional[SpotifyAuthManager] = None,
        refresh_margin: float = 60,
        requests_timeout: int = 30,
    ):
        """
        Initialize the API client.

        Args:
            session: AuthSession holding the current token.
            auth_manager: Optional auth manager for token refresh.
            refresh_margin: Refresh when the token expires within this
                many seconds.
            requests_timeout: Per-request timeout passed to spotipy.
        """
        self._session = session
        self._auth_manager = auth_manager
        self._refresh_margin = refresh_margin
        self._requests_timeout = requests_timeout
        self._sp: Optional[spotipy.Spotify] = None
        self._sp_token: Optional[str] = None
        self._user_id: Optional[str] = None

    @property
    def session(self) -> "AuthSession":
        return self._session

    def _ensure_valid_token(self) -> TokenInfo:
        """
        Ensure the session token is valid, refreshing if necessary.

        Raises:
            SpotifyTokenError: If nobody is logged in or refresh fails.
            SpotifyTokenExpiredError: If expired and no refresh is possible.
        """
        token_info = self._session.require_token()

        if token_info.expires_within(self._refresh_margin):
            if self._auth_manager is not None and token_info.refresh_token:
                logger.info("Token near expiry, refreshing...")
                refreshed = self._auth_manager.refresh_token(token_info)
                token_info = self._session.replace_if_current(token_info, refreshed)
            elif token_info.is_expired:
                raise SpotifyTokenExpiredError(
                    "Your Spotify session has expired. Please log in again."
                )

        if self._sp is None or self._sp_token != token_info.access_token:
            # retries are handled by api_error_handler
            self._sp = spotipy.Spotify(
                auth=token_info.access_token,
                requests_timeout=self._requests_timeout,
                retries=0,
                status_retries=0,
            )
            self._sp_token = token_info.access_token
        return token_info

    def _get_user_id(self) -> str:
        """Get the current user's ID, caching the result."""
        if self._user_id is None:
            user = self.get_current_user()
            self._user_id = user["id"]
        return self._user_id

    def _collect_pages(self, results: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        items = []
        while results:
            items.extend(results.get("items") or [])
            results = self._sp.next(results) if results.get("next") else None
        return items

    # =========================================================================
    # User Operations
    # =========================================================================

    @api_error_handler
    def get_current_user(self) -> Dict[str, Any]:
        """
        Get the current user's profile.

        Raises:
            SpotifyAPIError: If the request fails.
        """
        self._ensure_valid_token()
        user = self._sp.current_user()
        self._user_id = user["id"]
        logger.debug(f"Retrieved user: {user.get('display_name', 'Unknown')}")
        return user

    # =========================================================================
    # Listening Statistics
    # =========================================================================

    @api_error_handler
    def get_top_tracks(
        self, limit: int = 20, time_range: str = "medium_term"
    ) -> List[Dict[str, Any]]:
        """Get the user's top tracks for a time range."""
        self._ensure_valid_token()
        results = self._sp.current_user_top_tracks(limit=limit, time_range=time_range)
        tracks = results.get("items", []) if results else []
        logger.debug(f"Retrieved {len(tracks)} top tracks ({time_range})")
        return tracks

    @api_error_handler
    def get_top_artists(
        self, limit: int = 20, time_range: str = "medium_term"
    ) -> List[Dict[str, Any]]:
        """Get the user's top artists for a time range."""
        self._ensure_valid_token()
        results = self._sp.current_user_top_artists(limit=limit, time_range=time_range)
        artists = results.get("items", []) if results else []
        logger.debug(f"Retrieved {len(artists)} top artists ({time_range})")
        return artists

    @api_error_handler
    def get_recently_played(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Get recently played items (each with ``track`` and ``played_at``)."""
        self._ensure_valid_token()
        results = self._sp.current_user_recently_played(limit=limit)
        items = results.get("items", []) if results else []
        logger.debug(f"Retrieved {len(items)} recently played tracks")
        return items

    # =========================================================================
    # Playlist Operations
    # =========================================================================

    @api_error_handler
    def get_user_playlists(self) -> List[Dict[str, Any]]:
        """
        Get all of the user's playlists, following pagination.

        Raises:
            SpotifyAPIError: If the request fails.
        """
        self._ensure_valid_token()
        playlists = self._collect_pages(
            self._sp.current_user_playlists(limit=self.PAGE_SIZE)
        )
        # Spotify occasionally returns null entries
        playlists = [p for p in playlists if p]
        logger.debug(f"Retrieved {len(playlists)} playlists")
        return playlists

    @api_error_handler
    def get_playlist(self, playlist_id: str) -> Dict[str, Any]:
        """
        Get a single playlist by ID.

        Raises:
            SpotifyNotFoundError: If playlist doesn't exist.
            SpotifyAPIError: If the request fails.
        """
        self._ensure_valid_token()
        playlist = self._sp.playlist(playlist_id)
        logger.debug(f"Retrieved playlist: {playlist.get('name', 'Unknown')}")
        return playlist

    @api_error_handler
    def get_playlist_items(self, playlist_id: str) -> List[Dict[str, Any]]:
        """
        Get every item of a playlist in playlist order.

        Items whose track is unavailable are kept so that list indices
        match the positions Spotify uses for removal.

        Raises:
            SpotifyNotFoundError: If playlist doesn't exist.
            SpotifyAPIError: If the request fails.
        """
        self._ensure_valid_token()
        items = self._collect_pages(self._sp.playlist_items(playlist_id))
        logger.debug(f"Retrieved {len(items)} items from playlist {playlist_id}")
        return items

    @api_error_handler
    def get_tracks(self, track_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Look up full track objects by ID or URI.

        Unavailable tracks are dropped from the result.
        """
        self._ensure_valid_token()
        ids = [track_id_from_uri(t) for t in track_ids if t]
        tracks = []
        for batch in _chunks(ids, self.TRACK_LOOKUP_BATCH_SIZE):
            results = self._sp.tracks(batch)
            tracks.extend(t for t in (results or {}).get("tracks", []) if t)
        logger.debug(f"Looked up {len(tracks)} of {len(ids)} tracks")
        return tracks

    @api_error_handler(idempotent=False)
    def create_playlist(
        self, name: str, description: str = "", public: bool = False
    ) -> Dict[str, Any]:
        """Create a playlist owned by the current user."""
        self._ensure_valid_token()
        user_id = self._get_user_id()
        playlist = self._sp.user_playlist_create(
            user_id, name, public=public, description=description
        )
        logger.info(f"Created playlist '{name}' ({playlist.get('id')})")
        return playlist

    def add_tracks_to_playlist(self, playlist_id: str, track_uris: List[str]) -> int:
        """
        Append tracks to a playlist in batches of 100.

        Each batch is retried on its own, so a rate-limited batch never
        resends the batches already added.

        Returns:
            Number of tracks added.
        """
        for batch in _chunks(list(track_uris), self.BATCH_SIZE):
            self._add_batch(playlist_id, batch)
        logger.info(f"Added {len(track_uris)} tracks to playlist {playlist_id}")
        return len(track_uris)

    @api_error_handler(idempotent=False)
    def _add_batch(self, playlist_id: str, batch: List[str]) -> None:
        self._ensure_valid_token()
        self._sp.playlist_add_items(playlist_id, batch)

    @api_error_handler(idempotent=False)
    def remove_track_positions(
        self,
        playlist_id: str,
        uri: str,
        positions: List[int],
        snapshot_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Remove specific occurrences of one track.

        Args:
            playlist_id: The Spotify playlist ID.
            uri: Track URI present at every given position.
            positions: Zero-based positions to remove.
            snapshot_id: Playlist snapshot the positions refer to.

        Returns:
            The new snapshot ID reported by Spotify.
        """
        self._ensure_valid_token()
        result = self._sp.playlist_remove_specific_occurrences_of_items(
            playlist_id,
            [{"uri": uri, "positions": list(positions)}],
            snapshot_id=snapshot_id,
        )
        logger.debug(f"Removed {uri} at {list(positions)} from {playlist_id}")
        return (result or {}).get("snapshot_id")
