from typing import Dict, Iterator, List, Any, Optional
from dataclasses import dataclass, field
import logging

from infospot.spotify.api import SpotifyAPI

logger = logging.getLogger(__name__)

TRACK_URI_PREFIX = "spotify:track:"


def track_uri(track_id: str) -> str:
    """Build the ``spotify:track:<id>`` URI for a track ID."""
    return f"{TRACK_URI_PREFIX}{track_id}"


@dataclass(frozen=True)
class TrackOccurrence:
    """One appearance of a track at a zero-based playlist position."""

    track_id: str
    position: int

    @property
    def uri(self) -> str:
        return track_uri(self.track_id)


@dataclass
class Playlist:
    """Represents a Spotify playlist snapshot with its items in order."""

    id: str
    name: str
    owner_id: str
    owner_name: Optional[str] = None
    description: Optional[str] = None
    snapshot_id: Optional[str] = None
    total_tracks: Optional[int] = None
    url: Optional[str] = None
    tracks: List[Optional[Dict[str, Any]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.id:
            logger.error("Playlist ID is required")
            raise ValueError("Playlist ID is required")

    @classmethod
    def from_spotify(cls, api: SpotifyAPI, playlist_id: str) -> "Playlist":
        """
        Load playlist metadata and every item.

        ``tracks`` keeps one entry per playlist slot so that list index
        equals the remote position. Slots holding a local file, an episode
        or an unavailable track are stored as None.
        """
        playlist_data = api.get_playlist(playlist_id)
        raw_items = api.get_playlist_items(playlist_id)

        tracks: List[Optional[Dict[str, Any]]] = []
        for item in raw_items:
            track = (item or {}).get("track")
            if (
                not track
                or not track.get("id")
                or track.get("is_local")
                or track.get("type", "track") != "track"
            ):
                tracks.append(None)
                continue
            tracks.append(
                {
                    "id": track["id"],
                    "name": track.get("name"),
                    "uri": track.get("uri") or track_uri(track["id"]),
                    "duration_ms": track.get("duration_ms"),
                    "artists": [
                        artist.get("name") for artist in track.get("artists", [])
                    ],
                    "album_name": track.get("album", {}).get("name"),
                    "added_at": item.get("added_at"),
                }
            )

        owner = playlist_data.get("owner") or {}
        total_tracks_meta = playlist_data.get("tracks")
        total_tracks = (
            total_tracks_meta.get("total")
            if isinstance(total_tracks_meta, dict)
            else None
        )

        return cls(
            id=playlist_data["id"],
            name=playlist_data.get("name", ""),
            owner_id=owner.get("id", ""),
            owner_name=owner.get("display_name"),
            description=playlist_data.get("description"),
            snapshot_id=playlist_data.get("snapshot_id"),
            total_tracks=total_tracks,
            url=(playlist_data.get("external_urls") or {}).get("spotify"),
            tracks=tracks,
        )

    def occurrences(self) -> Iterator[TrackOccurrence]:
        """Yield a TrackOccurrence for every playable track slot."""
        for position, track in enumerate(self.tracks):
            if track is not None:
                yield TrackOccurrence(track_id=track["id"], position=position)

    def get_track_uris(self) -> List[str]:
        """Return the URIs of playable tracks in order."""
        return [track["uri"] for track in self.tracks if track is not None]

    def track_at(self, position: int) -> Optional[Dict[str, Any]]:
        return self.tracks[position]

    def __len__(self) -> int:
        return len(self.tracks)
