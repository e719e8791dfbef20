"""
Tests for api_error_handler and the retry helpers.

Tests cover error classification, backoff, and the different retry
policies for reads and mutations.
"""

import pytest
from unittest.mock import Mock, patch

import spotipy
from requests.exceptions import ConnectionError

from infospot.spotify.error_handling import (
    MAX_DELAY,
    MAX_RETRIES,
    _calculate_backoff_delay,
    _classify_error,
    _should_retry,
    api_error_handler,
)
from infospot.spotify.exceptions import (
    SpotifyAPIError,
    SpotifyNotFoundError,
    SpotifyRateLimitError,
    SpotifyTokenError,
    SpotifyTokenExpiredError,
)


def _spotify_error(status, headers=None):
    return spotipy.SpotifyException(status, -1, f'HTTP {status}', headers=headers)


class TestClassifyError:
    """Tests for _classify_error."""

    @pytest.mark.parametrize('status,category', [
        (404, 'not_found'),
        (401, 'token_expired'),
        (429, 'rate_limited'),
        (500, 'server_error'),
        (503, 'server_error'),
        (400, 'client_error'),
        (403, 'client_error'),
    ])
    def test_spotify_statuses(self, status, category):
        assert _classify_error(_spotify_error(status)) == category

    def test_network_error(self):
        assert _classify_error(ConnectionError('down')) == 'network_error'

    def test_unexpected(self):
        assert _classify_error(KeyError('x')) == 'unexpected'


class TestShouldRetry:
    """Tests for _should_retry."""

    def test_reads_retry_transient_errors(self):
        assert _should_retry('rate_limited') is True
        assert _should_retry('server_error') is True
        assert _should_retry('network_error') is True
        assert _should_retry('client_error') is False

    def test_mutations_only_retry_rate_limits(self):
        assert _should_retry('rate_limited', idempotent=False) is True
        assert _should_retry('server_error', idempotent=False) is False
        assert _should_retry('network_error', idempotent=False) is False


class TestBackoff:
    """Tests for _calculate_backoff_delay."""

    def test_doubles(self):
        assert _calculate_backoff_delay(0) == 2
        assert _calculate_backoff_delay(1) == 4
        assert _calculate_backoff_delay(2) == 8

    def test_capped(self):
        assert _calculate_backoff_delay(10) == MAX_DELAY


@patch('infospot.spotify.error_handling.time.sleep')
class TestApiErrorHandler:
    """Tests for the api_error_handler decorator."""

    def test_success_passes_through(self, mock_sleep):
        func = Mock(return_value='ok', __name__='func')
        assert api_error_handler(func)() == 'ok'
        mock_sleep.assert_not_called()

    def test_retries_server_error_then_succeeds(self, mock_sleep):
        func = Mock(side_effect=[_spotify_error(502), 'ok'], __name__='func')

        assert api_error_handler(func)() == 'ok'
        assert func.call_count == 2
        mock_sleep.assert_called_once_with(2)

    def test_gives_up_after_max_retries(self, mock_sleep):
        func = Mock(side_effect=_spotify_error(500), __name__='func')

        with pytest.raises(SpotifyAPIError) as exc_info:
            api_error_handler(func)()

        assert func.call_count == MAX_RETRIES + 1
        assert exc_info.value.status_code == 500

    def test_not_found(self, mock_sleep):
        func = Mock(side_effect=_spotify_error(404), __name__='func')

        with pytest.raises(SpotifyNotFoundError) as exc_info:
            api_error_handler(func)()
        assert exc_info.value.status_code == 404
        assert func.call_count == 1

    def test_unauthorized_maps_to_token_expired(self, mock_sleep):
        func = Mock(side_effect=_spotify_error(401), __name__='func')

        with pytest.raises(SpotifyTokenExpiredError):
            api_error_handler(func)()

    def test_client_error_keeps_status_and_body(self, mock_sleep):
        func = Mock(side_effect=_spotify_error(400), __name__='func')

        with pytest.raises(SpotifyAPIError) as exc_info:
            api_error_handler(func)()
        assert exc_info.value.status_code == 400
        assert exc_info.value.body == 'HTTP 400'

    def test_rate_limit_respects_retry_after(self, mock_sleep):
        func = Mock(
            side_effect=[_spotify_error(429, headers={'Retry-After': '7'}), 'ok'],
            __name__='func',
        )

        assert api_error_handler(func)() == 'ok'
        mock_sleep.assert_called_once_with(7)

    def test_rate_limit_exhausted(self, mock_sleep):
        func = Mock(side_effect=_spotify_error(429, headers={'Retry-After': '1'}), __name__='func')

        with pytest.raises(SpotifyRateLimitError) as exc_info:
            api_error_handler(func)()
        assert exc_info.value.retry_after == 1

    def test_mutation_not_retried_on_server_error(self, mock_sleep):
        """A removal must never be resent after an ambiguous failure."""
        func = Mock(side_effect=_spotify_error(500), __name__='func')

        with pytest.raises(SpotifyAPIError):
            api_error_handler(idempotent=False)(func)()

        assert func.call_count == 1
        mock_sleep.assert_not_called()

    def test_mutation_not_retried_on_network_error(self, mock_sleep):
        func = Mock(side_effect=ConnectionError('reset'), __name__='func')

        with pytest.raises(SpotifyAPIError):
            api_error_handler(idempotent=False)(func)()
        assert func.call_count == 1

    def test_mutation_retried_on_rate_limit(self, mock_sleep):
        func = Mock(side_effect=[_spotify_error(429), 'ok'], __name__='func')

        assert api_error_handler(idempotent=False)(func)() == 'ok'
        assert func.call_count == 2

    def test_own_errors_pass_through(self, mock_sleep):
        func = Mock(side_effect=SpotifyTokenError('not logged in'), __name__='func')

        with pytest.raises(SpotifyTokenError):
            api_error_handler(func)()
        assert func.call_count == 1
