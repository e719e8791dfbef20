"""
InfoSpot Models Package.

Usage:
    from infospot.models import Playlist, TrackOccurrence
"""

from infospot.models.playlist import (
    Playlist,
    TrackOccurrence,
    TRACK_URI_PREFIX,
    track_uri,
)

__all__ = [
    "Playlist",
    "TrackOccurrence",
    "TRACK_URI_PREFIX",
    "track_uri",
]
