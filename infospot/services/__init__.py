"""
InfoSpot Services Package

Service layer between the Spotify client and the CLI.
All services can be imported directly from this package.

Usage:
    from infospot.services import AuthService, DuplicateService, ExportService

    # Or import specific exceptions
    from infospot.services import PlaylistError, PlaylistImportError

Example:
    from infospot.services import DuplicateService

    service = DuplicateService(api)
    report = service.scan(playlist_id)
    if report.has_duplicates:
        result, refreshed = service.remove_duplicates(report)
"""

# Auth Service
from infospot.services.auth_service import AuthService

# Playlist Service
from infospot.services.playlist_service import (
    PlaylistService,
    PlaylistError,
    PlaylistNotFoundError,
)

# Duplicate Service
from infospot.services.duplicate_service import (
    DuplicateService,
    DuplicateReport,
    DuplicateGroup,
    DuplicateRemovalError,
)

# Export Service
from infospot.services.export_service import (
    ExportService,
    PlaylistExportError,
    PlaylistImportError,
    export_filename,
)

# Stats Service
from infospot.services.stats_service import (
    StatsService,
    StatsError,
)

__all__ = [
    # Services
    "AuthService",
    "PlaylistService",
    "DuplicateService",
    "ExportService",
    "StatsService",
    # Data
    "DuplicateReport",
    "DuplicateGroup",
    "export_filename",
    # Exceptions
    "PlaylistError",
    "PlaylistNotFoundError",
    "DuplicateRemovalError",
    "PlaylistExportError",
    "PlaylistImportError",
    "StatsError",
]
