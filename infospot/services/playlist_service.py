"""
Playlist service for reading the user's Spotify playlists.

Handles playlist listing and loading a full playlist snapshot.
"""

import logging
from typing import Dict, List, Any

from infospot.models.playlist import Playlist
from infospot.spotify.api import SpotifyAPI
from infospot.spotify.exceptions import SpotifyError, SpotifyNotFoundError

logger = logging.getLogger(__name__)


class PlaylistError(Exception):
    """Base exception for playlist operations."""
    pass


class PlaylistNotFoundError(PlaylistError):
    """Raised when a playlist cannot be found."""
    pass


class PlaylistService:
    """Service for Spotify playlist retrieval."""

    def __init__(self, api: SpotifyAPI):
        """
        Initialize the playlist service.

        Args:
            api: SpotifyAPI bound to a logged-in session.
        """
        self._api = api

    def get_user_playlists(self) -> List[Dict[str, Any]]:
        """
        Fetch every playlist of the current user.

        Raises:
            PlaylistError: If fetching playlists fails.
        """
        try:
            playlists = self._api.get_user_playlists()
        except SpotifyError as e:
            logger.error(f"Failed to get user playlists: {e}")
            raise PlaylistError(f"Failed to fetch playlists: {e}")
        logger.debug(f"Retrieved {len(playlists)} user playlists")
        return playlists

    def get_playlist(self, playlist_id: str) -> Playlist:
        """
        Fetch a single playlist with all of its items.

        Raises:
            PlaylistNotFoundError: If the ID is empty or unknown.
            PlaylistError: If fetching fails for other reasons.
        """
        if not playlist_id:
            raise PlaylistNotFoundError("Playlist ID is required")

        try:
            playlist = Playlist.from_spotify(self._api, playlist_id)
        except SpotifyNotFoundError:
            logger.error(f"Playlist not found: {playlist_id}")
            raise PlaylistNotFoundError(f"Playlist not found: {playlist_id}")
        except (ValueError, SpotifyError) as e:
            logger.error(f"Failed to get playlist {playlist_id}: {e}")
            raise PlaylistError(f"Failed to fetch playlist: {e}")

        logger.debug(
            f"Retrieved playlist '{playlist.name}' with {len(playlist)} items"
        )
        return playlist

    def get_track_uris(self, playlist_id: str) -> List[str]:
        """Playable track URIs of a playlist, in order."""
        return self.get_playlist(playlist_id).get_track_uris()
