"""
Validation schemas for files InfoSpot reads and writes.
"""

from pydantic import ValidationError

from .playlist_export import (
    PlaylistExport,
    PlaylistInfo,
    DEFAULT_IMPORT_NAME,
)

__all__ = [
    "PlaylistExport",
    "PlaylistInfo",
    "DEFAULT_IMPORT_NAME",
    "ValidationError",
]
