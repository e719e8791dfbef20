"""
Listening statistics service.

Profile, top tracks and artists, recently played and a top-genres
summary derived from the user's top artists.
"""

import logging
from collections import Counter
from typing import Dict, List, Any, Union

from infospot.enums import TimeRange
from infospot.spotify.api import SpotifyAPI

logger = logging.getLogger(__name__)

MAX_LIMIT = 50
GENRE_SAMPLE_SIZE = 50


class StatsError(Exception):
    """Raised for invalid statistics requests."""
    pass


def _time_range(value: Union[str, TimeRange]) -> TimeRange:
    try:
        return TimeRange(value)
    except ValueError:
        valid = ", ".join(t.value for t in TimeRange)
        raise StatsError(f"Invalid time range '{value}'. Valid: {valid}")


def _limit(value: int) -> int:
    if not 1 <= value <= MAX_LIMIT:
        raise StatsError(f"Limit must be between 1 and {MAX_LIMIT}, got {value}")
    return value


class StatsService:
    """Service for the user's profile and listening statistics."""

    def __init__(self, api: SpotifyAPI):
        self._api = api

    def get_profile(self) -> Dict[str, Any]:
        return self._api.get_current_user()

    def get_user_playlists(self) -> List[Dict[str, Any]]:
        return self._api.get_user_playlists()

    def get_top_tracks(
        self, limit: int = 20, time_range: Union[str, TimeRange] = TimeRange.MEDIUM_TERM
    ) -> List[Dict[str, Any]]:
        return self._api.get_top_tracks(
            limit=_limit(limit), time_range=_time_range(time_range).value
        )

    def get_top_artists(
        self, limit: int = 20, time_range: Union[str, TimeRange] = TimeRange.MEDIUM_TERM
    ) -> List[Dict[str, Any]]:
        return self._api.get_top_artists(
            limit=_limit(limit), time_range=_time_range(time_range).value
        )

    def get_recently_played(self, limit: int = 20) -> List[Dict[str, Any]]:
        return self._api.get_recently_played(limit=_limit(limit))

    def get_top_genres(
        self, time_range: Union[str, TimeRange] = TimeRange.MEDIUM_TERM, limit: int = 10
    ) -> List[str]:
        """
        Most common genres across the user's top 50 artists.

        Ties keep the order in which genres were first seen.
        """
        artists = self._api.get_top_artists(
            limit=GENRE_SAMPLE_SIZE, time_range=_time_range(time_range).value
        )
        counts = Counter(
            genre for artist in artists for genre in (artist.get("genres") or [])
        )
        genres = [genre for genre, _ in counts.most_common(limit)]
        logger.debug(f"Top genres from {len(artists)} artists: {genres}")
        return genres
