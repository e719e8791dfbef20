"""
Export service for saving playlists to JSON and importing them back.

Export files look like::

    {
        "info": {"name": ..., "id": ..., "author": ..., "description": ...},
        "tracks": ["spotify:track:...", ...]
    }

Several playlists can also be bundled into one ZIP archive.
"""

import logging
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List, Any, Optional, Union

from pydantic import ValidationError

from infospot.models.playlist import Playlist
from infospot.schemas.playlist_export import PlaylistExport, PlaylistInfo
from infospot.services.playlist_service import PlaylistError, PlaylistService
from infospot.spotify.exceptions import SpotifyError
from infospot.utils import sanitize_filename

logger = logging.getLogger(__name__)

EXPORT_SUFFIX = ".json"
PathLike = Union[str, Path]


class PlaylistExportError(Exception):
    """Raised when a playlist cannot be exported."""
    pass


class PlaylistImportError(Exception):
    """Raised when an export file cannot be read or imported."""
    pass


def export_filename(name: str) -> str:
    """File name used for a playlist's export."""
    return f"{sanitize_filename(name) or 'playlist'}{EXPORT_SUFFIX}"


class ExportService:
    """Service for playlist JSON export, import and ZIP bundles."""

    def __init__(
        self,
        api,
        export_dir: PathLike,
        playlist_service: Optional[PlaylistService] = None,
    ):
        """
        Initialize the export service.

        Args:
            api: SpotifyAPI bound to a logged-in session.
            export_dir: Default directory for written files.
            playlist_service: Used to load playlists; built from ``api``
                when omitted.
        """
        self._api = api
        self._export_dir = Path(export_dir).expanduser()
        self._playlists = playlist_service or PlaylistService(api)

    @property
    def export_dir(self) -> Path:
        return self._export_dir

    # =========================================================================
    # Export
    # =========================================================================

    @staticmethod
    def build_export(playlist: Playlist) -> PlaylistExport:
        """Build the export document for a loaded playlist."""
        return PlaylistExport(
            info=PlaylistInfo(
                name=playlist.name,
                id=playlist.id,
                author=playlist.owner_name,
                description=playlist.description,
            ),
            tracks=playlist.get_track_uris(),
        )

    def resolve_export_path(self, name: str, destination: Optional[PathLike] = None) -> Path:
        """
        Work out where an export should be written.

        No destination means the export directory; a directory means a
        file named after the playlist inside it; anything else is used as
        the file path, with ``.json`` appended when missing.
        """
        if destination is None:
            return self._export_dir / export_filename(name)
        path = Path(destination).expanduser()
        if path.is_dir():
            return path / export_filename(name)
        if path.suffix.lower() != EXPORT_SUFFIX:
            path = path.with_name(path.name + EXPORT_SUFFIX)
        return path

    def export_playlist(self, playlist_id: str, destination: Optional[PathLike] = None) -> Path:
        """
        Export one playlist as JSON.

        Returns:
            Path of the written file.

        Raises:
            PlaylistExportError: If loading or writing fails.
        """
        try:
            playlist = self._playlists.get_playlist(playlist_id)
        except PlaylistError as e:
            raise PlaylistExportError(f"Failed to export playlist: {e}")

        path = self.resolve_export_path(playlist.name, destination)
        document = self.build_export(playlist)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write export {path}: {e}")
            raise PlaylistExportError(f"Failed to write {path}: {e}")

        logger.info(
            f"Exported playlist '{playlist.name}' ({len(document.tracks)} tracks) to {path}"
        )
        return path

    def export_playlists_zip(
        self, playlist_ids: Iterable[str], destination: Optional[PathLike] = None
    ) -> Path:
        """
        Export several playlists into one deflated ZIP archive.

        Entry names are the sanitized playlist names; clashing names get a
        numeric suffix.

        Raises:
            PlaylistExportError: If no playlist is given, or loading or
                writing fails.
        """
        playlist_ids = list(playlist_ids)
        if not playlist_ids:
            raise PlaylistExportError("No playlists selected for export")

        path = Path(destination).expanduser() if destination else (
            self._export_dir / "playlists.zip"
        )
        if path.suffix.lower() != ".zip":
            path = path.with_name(path.name + ".zip")

        used_names = set()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for playlist_id in playlist_ids:
                    playlist = self._playlists.get_playlist(playlist_id)
                    entry = self._unique_entry_name(playlist.name, used_names)
                    archive.writestr(
                        entry, self.build_export(playlist).model_dump_json(indent=2)
                    )
                    logger.debug(f"Added {entry} to {path.name}")
        except PlaylistError as e:
            path.unlink(missing_ok=True)
            raise PlaylistExportError(f"Failed to export playlists: {e}")
        except OSError as e:
            logger.error(f"Failed to write archive {path}: {e}")
            path.unlink(missing_ok=True)
            raise PlaylistExportError(f"Failed to write {path}: {e}")

        logger.info(f"Exported {len(playlist_ids)} playlist(s) to {path}")
        return path

    @staticmethod
    def _unique_entry_name(name: str, used_names: set) -> str:
        entry = export_filename(name)
        stem = entry[: -len(EXPORT_SUFFIX)]
        counter = 2
        while entry in used_names:
            entry = f"{stem} ({counter}){EXPORT_SUFFIX}"
            counter += 1
        used_names.add(entry)
        return entry

    # =========================================================================
    # Import
    # =========================================================================

    @staticmethod
    def load_export(path: PathLike) -> PlaylistExport:
        """
        Read and validate an export file.

        Raises:
            PlaylistImportError: If the file can't be read, isn't valid
                JSON in the export format, or lists no tracks.
        """
        path = Path(path).expanduser()
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PlaylistImportError(f"Failed to read file: {e}")

        try:
            document = PlaylistExport.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Rejected export file {path}: {e.error_count()} error(s)")
            raise PlaylistImportError(f"Failed to parse JSON file: {e}")

        if not document.tracks:
            raise PlaylistImportError("No tracks found in the selected file")
        return document

    def preview_import(self, document: PlaylistExport) -> List[Dict[str, Any]]:
        """
        Look up the tracks an import would add.

        Unavailable tracks are left out of the preview.
        """
        try:
            return self._api.get_tracks(document.track_ids())
        except SpotifyError as e:
            raise PlaylistImportError(f"Failed to fetch track details: {e}")

    def import_playlist(self, document: PlaylistExport) -> Dict[str, Any]:
        """
        Create a private playlist from an export document.

        Returns:
            The created playlist object.

        Raises:
            PlaylistImportError: If there are no tracks, or creating the
                playlist or adding its tracks fails.
        """
        if not document.tracks:
            raise PlaylistImportError("No tracks found in the selected file")

        try:
            playlist = self._api.create_playlist(
                document.info.name,
                description=document.info.description,
                public=False,
            )
            self._api.add_tracks_to_playlist(playlist["id"], document.tracks)
        except SpotifyError as e:
            logger.error(f"Import of '{document.info.name}' failed: {e}")
            raise PlaylistImportError(f"Failed to import playlist: {e}")

        logger.info(
            f"Imported '{document.info.name}' with {len(document.tracks)} tracks"
        )
        return playlist
