"""
Small formatting helpers shared by the services and the CLI.
"""

import re

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def format_duration(ms: int) -> str:
    """Format milliseconds as ``M:SS``."""
    total_seconds = max(int(ms or 0), 0) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def format_release_date(date: str) -> str:
    """
    Format a ``YYYY-MM-DD`` release date as ``Month D, YYYY``.

    Year-only or year-month precision dates, and anything else that does
    not parse, are returned unchanged.
    """
    if not date:
        return ""
    parts = date.split("-")
    if len(parts) != 3:
        return date
    year, month, day = parts
    if not month.isdigit() or not 1 <= int(month) <= 12:
        return date
    day = day.lstrip("0") or "0"
    return f"{_MONTHS[int(month) - 1]} {day}, {year}"


def sanitize_filename(name: str) -> str:
    """Replace characters that are invalid in file names with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def format_artists(artists) -> str:
    """Join artist names, accepting Spotify artist objects or plain names."""
    names = []
    for artist in artists or []:
        name = artist.get("name") if isinstance(artist, dict) else artist
        if name:
            names.append(name)
    return ", ".join(names) or "Unknown Artist"
