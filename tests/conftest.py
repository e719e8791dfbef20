"""
Pytest configuration and shared fixtures for InfoSpot tests.

This module provides common fixtures used across all test modules,
including credentials, tokens, sessions, sample Spotify payloads and a
mock SpotifyAPI.
"""

import pytest
from unittest.mock import Mock
import time

from infospot.models.playlist import Playlist
from infospot.session import AuthSession
from infospot.spotify.auth import SpotifyAuthManager, TokenInfo
from infospot.spotify.credentials import SpotifyCredentials


# =============================================================================
# Credentials & Token Fixtures
# =============================================================================

@pytest.fixture
def credentials():
    """Valid SpotifyCredentials for testing."""
    return SpotifyCredentials(
        client_id='test_client_id',
        client_secret='test_client_secret',
        redirect_uri='http://127.0.0.1:8888/callback',
    )


@pytest.fixture
def auth_manager(credentials):
    """SpotifyAuthManager instance for testing."""
    return SpotifyAuthManager(credentials)


@pytest.fixture
def sample_token():
    """A valid Spotify OAuth token payload."""
    return {
        'access_token': 'test_access_token_12345',
        'token_type': 'Bearer',
        'expires_in': 3600,
        'expires_at': time.time() + 3600,
        'refresh_token': 'test_refresh_token_67890',
        'scope': 'user-top-read playlist-modify-private',
    }


@pytest.fixture
def expired_token():
    """An expired Spotify OAuth token payload."""
    return {
        'access_token': 'expired_access_token',
        'token_type': 'Bearer',
        'expires_in': 3600,
        'expires_at': time.time() - 100,  # Expired
        'refresh_token': 'test_refresh_token',
    }


@pytest.fixture
def token_info(sample_token):
    """TokenInfo built from the valid payload."""
    return TokenInfo.from_dict(sample_token)


@pytest.fixture
def auth_session(token_info):
    """An AuthSession that is logged in."""
    return AuthSession(token_info)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def sample_user():
    """Sample Spotify user data."""
    return {
        'id': 'user123',
        'display_name': 'Test User',
        'email': 'test@example.com',
        'country': 'US',
        'product': 'premium',
        'followers': {'total': 42},
        'uri': 'spotify:user:user123',
    }


@pytest.fixture
def sample_playlists():
    """List of sample playlists."""
    return [
        {
            'id': 'playlist1',
            'name': 'Playlist One',
            'owner': {'id': 'user123', 'display_name': 'Test User'},
            'tracks': {'total': 5},
        },
        {
            'id': 'playlist2',
            'name': 'Road/Trip: Mix?',
            'owner': {'id': 'user123', 'display_name': 'Test User'},
            'tracks': {'total': 3},
        },
    ]


def make_track(track_id, name=None, artist='Artist'):
    """Build a Spotify track object."""
    return {
        'id': track_id,
        'name': name or f'Track {track_id}',
        'uri': f'spotify:track:{track_id}',
        'duration_ms': 200000,
        'is_local': False,
        'type': 'track',
        'artists': [{'name': artist}],
        'album': {'name': 'Album', 'release_date': '2020-01-05'},
    }


def make_items(track_ids):
    """Build playlist items for the given track IDs (None = unavailable)."""
    items = []
    for track_id in track_ids:
        track = make_track(track_id) if track_id else None
        items.append({'added_at': '2024-01-01T00:00:00Z', 'track': track})
    return items


@pytest.fixture
def sample_playlist_data():
    """Sample Spotify playlist metadata."""
    return {
        'id': 'playlist1',
        'name': 'Playlist One',
        'description': 'A playlist for testing',
        'owner': {'id': 'user123', 'display_name': 'Test User'},
        'snapshot_id': 'snap-1',
        'tracks': {'total': 5},
        'external_urls': {'spotify': 'https://open.spotify.com/playlist/playlist1'},
    }


@pytest.fixture
def duplicate_items():
    """Playlist items A, B, A, C, B."""
    return make_items(['A', 'B', 'A', 'C', 'B'])


@pytest.fixture
def duplicate_playlist(sample_playlist_data, duplicate_items):
    """Playlist model over items A, B, A, C, B."""
    api = Mock()
    api.get_playlist.return_value = sample_playlist_data
    api.get_playlist_items.return_value = duplicate_items
    return Playlist.from_spotify(api, 'playlist1')


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_api(sample_user, sample_playlists, sample_playlist_data, duplicate_items):
    """A mock SpotifyAPI with pre-configured responses."""
    mock = Mock()

    mock.get_current_user.return_value = sample_user
    mock.get_user_playlists.return_value = sample_playlists
    mock.get_playlist.return_value = sample_playlist_data
    mock.get_playlist_items.return_value = duplicate_items
    mock.get_tracks.side_effect = lambda ids: [make_track(t.split(':')[-1]) for t in ids]
    mock.create_playlist.return_value = {'id': 'new_playlist', 'name': 'Created'}
    mock.add_tracks_to_playlist.side_effect = lambda playlist_id, uris: len(uris)
    mock.remove_track_positions.return_value = 'snap-2'

    return mock


@pytest.fixture
def track_factory():
    """Factory building Spotify track objects."""
    return make_track


@pytest.fixture
def items_factory():
    """Factory building playlist items from track IDs (None = unavailable)."""
    return make_items
