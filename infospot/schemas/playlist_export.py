"""
Playlist export file schema using Pydantic.

Validates the JSON document written by export and read back by import:

    {
        "info": {"name": ..., "id": ..., "author": ..., "description": ...},
        "tracks": ["spotify:track:...", ...]
    }
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from infospot.models.playlist import TRACK_URI_PREFIX

DEFAULT_IMPORT_NAME = "Imported Playlist"


class PlaylistInfo(BaseModel):
    """Playlist metadata block of an export file."""

    model_config = ConfigDict(extra="ignore")

    name: str = DEFAULT_IMPORT_NAME
    id: Optional[str] = None
    author: str = "Unknown"
    description: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def default_blank_name(cls, v):
        """Fall back to the default name when missing or blank."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_IMPORT_NAME
        return v

    @field_validator("author", mode="before")
    @classmethod
    def default_blank_author(cls, v):
        return v or "Unknown"

    @field_validator("description", mode="before")
    @classmethod
    def default_blank_description(cls, v):
        return v or ""


class PlaylistExport(BaseModel):
    """Complete export document."""

    model_config = ConfigDict(extra="ignore")

    info: PlaylistInfo = Field(default_factory=PlaylistInfo)
    tracks: List[str] = Field(default_factory=list)

    @field_validator("tracks", mode="before")
    @classmethod
    def keep_string_entries(cls, v):
        """Drop entries that are not strings, like the reader always has."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("tracks must be a list of track URIs")
        return [item.strip() for item in v if isinstance(item, str) and item.strip()]

    def track_ids(self) -> List[str]:
        """IDs of entries that are ``spotify:track:<id>`` URIs."""
        return [
            uri[len(TRACK_URI_PREFIX):]
            for uri in self.tracks
            if uri.startswith(TRACK_URI_PREFIX) and len(uri) > len(TRACK_URI_PREFIX)
        ]
