"""
Duplicate service: find and remove repeated tracks in a playlist.

Wraps the pure planning functions in ``infospot.duplicates`` with
playlist loading, a readable report, and removal against the snapshot
the report was computed from.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple

from infospot.duplicates import (
    RemovalPlan,
    RemovalResult,
    apply_removal_plan,
    build_removal_plan,
    find_duplicates,
)
from infospot.models.playlist import Playlist
from infospot.services.playlist_service import PlaylistService

logger = logging.getLogger(__name__)


class DuplicateRemovalError(Exception):
    """Raised when removal requests fail and the caller asked to be strict."""

    def __init__(self, message: str, result: Optional[RemovalResult] = None):
        super().__init__(message)
        self.result = result


@dataclass
class DuplicateGroup:
    """A track that appears more than once."""

    track_id: str
    name: str
    artists: List[str]
    positions: List[int]

    @property
    def extra_copies(self) -> int:
        return len(self.positions) - 1


@dataclass
class DuplicateReport:
    """Duplicates found in one playlist snapshot."""

    playlist: Playlist
    groups: List[DuplicateGroup] = field(default_factory=list)
    plan: RemovalPlan = field(default_factory=RemovalPlan)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.plan)

    @property
    def total_removable(self) -> int:
        return self.plan.total_removed


class DuplicateService:
    """Service for duplicate detection and cleanup."""

    def __init__(self, api, playlist_service: Optional[PlaylistService] = None):
        self._api = api
        self._playlists = playlist_service or PlaylistService(api)

    def scan(self, playlist_id: str) -> DuplicateReport:
        """
        Load a playlist and report its duplicate tracks.

        Raises:
            PlaylistNotFoundError: If the playlist doesn't exist.
            PlaylistError: If loading fails.
        """
        playlist = self._playlists.get_playlist(playlist_id)
        return self.scan_playlist(playlist)

    def scan_playlist(self, playlist: Playlist) -> DuplicateReport:
        """Build a report for an already loaded playlist."""
        duplicates = find_duplicates(playlist.occurrences())
        groups = []
        for track_id, positions in duplicates.items():
            track: Dict[str, Any] = playlist.track_at(positions[0]) or {}
            groups.append(
                DuplicateGroup(
                    track_id=track_id,
                    name=track.get("name") or track_id,
                    artists=[a for a in track.get("artists", []) if a],
                    positions=positions,
                )
            )
        plan = build_removal_plan(duplicates)
        logger.info(
            f"Playlist '{playlist.name}': {len(groups)} duplicated track(s), "
            f"{plan.total_removed} extra copies"
        )
        return DuplicateReport(playlist=playlist, groups=groups, plan=plan)

    def remove_duplicates(
        self,
        report: DuplicateReport,
        stop_on_error: bool = False,
        strict: bool = False,
    ) -> Tuple[RemovalResult, Optional[Playlist]]:
        """
        Apply a report's removal plan, then reload the playlist.

        Args:
            report: Report from ``scan``; its snapshot ID anchors positions.
            stop_on_error: Abort at the first failed removal request.
            strict: Raise DuplicateRemovalError when any request failed.

        Returns:
            The RemovalResult and the reloaded playlist (None if nothing
            was removed).
        """
        playlist = report.playlist
        result = apply_removal_plan(
            report.plan,
            playlist.id,
            self._api,
            snapshot_id=playlist.snapshot_id,
            stop_on_error=stop_on_error,
        )

        if strict and not result.ok:
            first = result.failed[0]
            raise DuplicateRemovalError(
                f"Failed to remove {len(result.failed)} duplicate group(s); "
                f"first error: {first.error}",
                result=result,
            )

        refreshed = None
        if result.applied_count:
            refreshed = self._playlists.get_playlist(playlist.id)
        return result, refreshed
