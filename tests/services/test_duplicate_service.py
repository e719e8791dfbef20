"""
Tests for DuplicateService.
"""

import pytest

from infospot.services.duplicate_service import (
    DuplicateRemovalError,
    DuplicateService,
)
from infospot.services.playlist_service import PlaylistNotFoundError
from infospot.spotify.exceptions import SpotifyAPIError, SpotifyNotFoundError


class TestDuplicateServiceScan:
    """Tests for scan."""

    def test_reports_groups(self, mock_api):
        report = DuplicateService(mock_api).scan('playlist1')

        assert report.has_duplicates
        assert report.total_removable == 2
        assert [(g.track_id, g.positions) for g in report.groups] == [
            ('A', [0, 2]),
            ('B', [1, 4]),
        ]
        assert report.groups[0].name == 'Track A'
        assert report.groups[0].artists == ['Artist']
        assert report.groups[0].extra_copies == 1
        assert report.plan.positions() == [4, 2]

    def test_no_duplicates(self, mock_api, items_factory):
        mock_api.get_playlist_items.return_value = items_factory(['A', 'B', 'C'])

        report = DuplicateService(mock_api).scan('playlist1')

        assert not report.has_duplicates
        assert report.groups == []

    def test_missing_playlist(self, mock_api):
        mock_api.get_playlist.side_effect = SpotifyNotFoundError('gone')

        with pytest.raises(PlaylistNotFoundError):
            DuplicateService(mock_api).scan('nope')


class TestDuplicateServiceRemove:
    """Tests for remove_duplicates."""

    def test_removes_against_snapshot_and_reloads(self, mock_api):
        service = DuplicateService(mock_api)
        report = service.scan('playlist1')

        result, refreshed = service.remove_duplicates(report)

        assert result.ok
        assert result.applied_count == 2
        for call in mock_api.remove_track_positions.call_args_list:
            assert call.kwargs['snapshot_id'] == 'snap-1'
        assert refreshed is not None
        assert mock_api.get_playlist.call_count == 2

    def test_nothing_to_remove(self, mock_api, items_factory):
        mock_api.get_playlist_items.return_value = items_factory(['A'])
        service = DuplicateService(mock_api)

        result, refreshed = service.remove_duplicates(service.scan('playlist1'))

        mock_api.remove_track_positions.assert_not_called()
        assert refreshed is None
        assert result.applied_count == 0

    def test_partial_failure_is_reported(self, mock_api):
        mock_api.remove_track_positions.side_effect = [
            SpotifyAPIError('boom', status_code=500), 'snap-2'
        ]
        service = DuplicateService(mock_api)

        result, _ = service.remove_duplicates(service.scan('playlist1'))

        assert len(result.failed) == 1
        assert result.applied_count == 1

    def test_strict_raises(self, mock_api):
        mock_api.remove_track_positions.side_effect = SpotifyAPIError('boom')
        service = DuplicateService(mock_api)

        with pytest.raises(DuplicateRemovalError) as exc_info:
            service.remove_duplicates(service.scan('playlist1'), strict=True)

        assert exc_info.value.result.applied_count == 0
