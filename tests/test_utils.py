"""
Tests for formatting helpers.
"""

import pytest

from infospot.utils import (
    format_artists,
    format_duration,
    format_release_date,
    sanitize_filename,
)


class TestFormatDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize('ms,expected', [
        (0, '0:00'),
        (59999, '0:59'),
        (61000, '1:01'),
        (215000, '3:35'),
        (3600000, '60:00'),
    ])
    def test_values(self, ms, expected):
        assert format_duration(ms) == expected

    def test_none(self):
        assert format_duration(None) == '0:00'


class TestFormatReleaseDate:
    """Tests for format_release_date."""

    def test_full_date(self):
        assert format_release_date('2020-01-05') == 'January 5, 2020'

    def test_two_digit_day(self):
        assert format_release_date('1999-12-31') == 'December 31, 1999'

    def test_year_only_unchanged(self):
        assert format_release_date('1987') == '1987'

    def test_bad_month_unchanged(self):
        assert format_release_date('2020-13-01') == '2020-13-01'

    def test_empty(self):
        assert format_release_date('') == ''


class TestSanitizeFilename:
    """Tests for sanitize_filename."""

    def test_replaces_invalid_characters(self):
        assert sanitize_filename('a/b\\c:d*e?f"g<h>i|j') == 'a_b_c_d_e_f_g_h_i_j'

    def test_keeps_valid_characters(self):
        assert sanitize_filename('My Mix (2024) - vol.1') == 'My Mix (2024) - vol.1'


class TestFormatArtists:
    """Tests for format_artists."""

    def test_objects_and_names(self):
        assert format_artists([{'name': 'A'}, 'B']) == 'A, B'

    def test_empty(self):
        assert format_artists([]) == 'Unknown Artist'
