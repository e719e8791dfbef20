"""
Duplicate track detection and removal planning.

Groups track occurrences by track ID, keeps the first occurrence of each
track and plans the removal of every later one. Removal is expressed as
(uri, position) pairs in descending position order, and is applied with
one request per distinct URI against the snapshot the plan was computed
from, so no pending position is ever invalidated by an earlier removal.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from infospot.models.playlist import TrackOccurrence, track_uri
from infospot.spotify.exceptions import SpotifyAPIError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovalEntry:
    uri: str
    position: int


@dataclass
class RemovalPlan:
    """Ordered removals, strictly descending by position."""

    entries: List[RemovalEntry] = field(default_factory=list)
    total_removed: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def positions(self) -> List[int]:
        return [entry.position for entry in self.entries]

    def group_by_uri(self) -> Dict[str, List[int]]:
        """
        Regroup entries by URI.

        Groups are ordered by their highest position, and positions
        within a group stay descending.
        """
        groups: Dict[str, List[int]] = {}
        for entry in self.entries:
            groups.setdefault(entry.uri, []).append(entry.position)
        return groups


@dataclass
class GroupResult:
    """Outcome of the removal request for one URI."""

    uri: str
    positions: List[int]
    error: Optional[SpotifyAPIError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RemovalResult:
    """Aggregate outcome of applying a RemovalPlan."""

    groups: List[GroupResult] = field(default_factory=list)
    snapshot_id: Optional[str] = None

    @property
    def applied_count(self) -> int:
        return sum(len(g.positions) for g in self.groups if g.ok)

    @property
    def failed(self) -> List[GroupResult]:
        return [g for g in self.groups if not g.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise the first group error, if any."""
        for group in self.groups:
            if group.error is not None:
                raise group.error


def find_duplicates(occurrences: Iterable[TrackOccurrence]) -> Dict[str, List[int]]:
    """
    Group occurrence positions by track ID.

    Args:
        occurrences: Track occurrences in playlist order.

    Returns:
        Mapping of track ID to its positions in traversal order, limited
        to tracks that appear at least twice. Groups are ordered by first
        appearance. Empty input gives an empty mapping.
    """
    groups: Dict[str, List[int]] = {}
    for occurrence in occurrences:
        groups.setdefault(occurrence.track_id, []).append(occurrence.position)
    return {
        track_id: positions
        for track_id, positions in groups.items()
        if len(positions) > 1
    }


def build_removal_plan(duplicates: Dict[str, List[int]]) -> RemovalPlan:
    """
    Plan the removal of every occurrence but the first of each track.

    Args:
        duplicates: Output of find_duplicates.

    Returns:
        RemovalPlan sorted by position descending.
    """
    entries = [
        RemovalEntry(uri=track_uri(track_id), position=position)
        for track_id, positions in duplicates.items()
        for position in positions[1:]
    ]
    entries.sort(key=lambda entry: entry.position, reverse=True)
    total = sum(len(positions) - 1 for positions in duplicates.values())
    return RemovalPlan(entries=entries, total_removed=total)


def apply_removal_plan(
    plan: RemovalPlan,
    playlist_id: str,
    api,
    snapshot_id: Optional[str] = None,
    stop_on_error: bool = False,
) -> RemovalResult:
    """
    Send one removal request per distinct URI in the plan.

    Every request is made against ``snapshot_id`` so Spotify resolves
    positions in the ordering the plan was computed from.

    Args:
        plan: Plan from build_removal_plan.
        playlist_id: Target playlist.
        api: Object exposing ``remove_track_positions``.
        snapshot_id: Snapshot the plan refers to.
        stop_on_error: Abort at the first failed group instead of
            continuing with the rest.

    Returns:
        RemovalResult with one GroupResult per attempted URI.
    """
    result = RemovalResult(snapshot_id=snapshot_id)
    if not plan:
        logger.debug(f"Nothing to remove from playlist {playlist_id}")
        return result

    if snapshot_id is None:
        logger.warning(
            f"Removing from playlist {playlist_id} without a snapshot ID; "
            "positions refer to the live playlist"
        )

    for uri, positions in plan.group_by_uri().items():
        try:
            new_snapshot = api.remove_track_positions(
                playlist_id, uri, positions, snapshot_id=snapshot_id
            )
        except SpotifyAPIError as e:
            logger.error(f"Failed to remove {uri} at {positions}: {e}")
            result.groups.append(GroupResult(uri=uri, positions=positions, error=e))
            if stop_on_error:
                break
            continue

        result.groups.append(GroupResult(uri=uri, positions=positions))
        if new_snapshot:
            result.snapshot_id = new_snapshot

    logger.info(
        f"Removed {result.applied_count} of {plan.total_removed} duplicate "
        f"track(s) from playlist {playlist_id}"
    )
    return result
