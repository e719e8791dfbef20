"""
Interactive command line interface.

Parses a few startup options, then runs a numbered menu until the user
exits.
"""

import argparse
import logging
import sys
from typing import Dict, List, Any, Optional

from pydantic import ValidationError

from config import config, validate_required_env_vars
from infospot import __version__, configure_logging
from infospot.app import InfoSpotApp
from infospot.enums import TimeRange
from infospot.error_handlers import EXIT_CONFIG, EXIT_OK, describe_error, exit_code_for
from infospot.services import (
    DuplicateRemovalError,
    PlaylistError,
    PlaylistExportError,
    PlaylistImportError,
    StatsError,
)
from infospot.spotify.exceptions import SpotifyAuthError, SpotifyError
from infospot.utils import format_artists, format_duration

logger = logging.getLogger(__name__)

# Errors reported to the user without leaving the menu
HANDLED_ERRORS = (
    SpotifyError,
    PlaylistError,
    PlaylistExportError,
    PlaylistImportError,
    DuplicateRemovalError,
    StatsError,
    ValidationError,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="infospot",
        description="Spotify listening statistics and playlist tools.",
    )
    parser.add_argument(
        "--env",
        choices=sorted(config),
        default="default",
        help="Configuration to use (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Override LOG_LEVEL from the environment",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Seconds to wait for the login redirect",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Print the login URL instead of opening a browser",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def create_app(args: argparse.Namespace) -> InfoSpotApp:
    """Build the application from the selected config and CLI overrides."""
    config_class = config[args.env]
    overrides: Dict[str, Any] = {"on_auth_url": show_auth_url}
    if args.timeout is not None:
        overrides["callback_timeout"] = args.timeout
    if args.no_browser:
        overrides["open_browser"] = False
    return InfoSpotApp.from_config(config_class, **overrides)


# =============================================================================
# Display helpers
# =============================================================================

def show_auth_url(url: str) -> None:
    print("\nOpening Spotify login in your browser...")
    print(f"If it doesn't open, visit:\n{url}\n")


def display_tracks(tracks: List[Dict[str, Any]]) -> None:
    for idx, track in enumerate(tracks, 1):
        artists = format_artists(track.get("artists"))
        duration = format_duration(track.get("duration_ms") or 0)
        print(f"{idx:>2}. {track.get('name', 'Unknown')} - {artists} ({duration})")


def display_playlists(playlists: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Displays playlists with numbering."""
    print("\nYour Playlists:")
    for idx, playlist in enumerate(playlists, 1):
        track_count = (playlist.get("tracks") or {}).get("total", 0)
        owner_name = (playlist.get("owner") or {}).get("display_name") or "Unknown"
        print(f"{idx}. {playlist.get('name', '')} ({track_count} tracks) - by {owner_name}")
    return playlists


def prompt(message: str) -> str:
    return input(message).strip()


def confirm(message: str) -> bool:
    return prompt(f"{message} [y/N]: ").lower() in ("y", "yes")


def choose_time_range() -> TimeRange:
    ranges = list(TimeRange)
    print("\nTime range:")
    for idx, time_range in enumerate(ranges, 1):
        print(f"{idx}. {time_range.label}")
    choice = prompt("Select a time range (Enter for last 6 months): ")
    if choice.isdigit() and 1 <= int(choice) <= len(ranges):
        return ranges[int(choice) - 1]
    return TimeRange.MEDIUM_TERM


def choose_playlist(app: InfoSpotApp) -> Optional[Dict[str, Any]]:
    playlists = app.playlists.get_user_playlists()
    if not playlists:
        print("No playlists found!")
        return None
    display_playlists(playlists)
    while True:
        choice = prompt("\nEnter playlist number (0 to go back): ")
        if not choice.isdigit():
            print("Please enter a valid number.")
            continue
        selection = int(choice)
        if selection == 0:
            return None
        if 1 <= selection <= len(playlists):
            return playlists[selection - 1]
        print("Invalid selection. Please try again.")


# =============================================================================
# Menu actions
# =============================================================================

def show_profile(app: InfoSpotApp) -> None:
    user = app.stats.get_profile()
    print(f"\n{user.get('display_name') or 'Unknown User'}")
    print(f"Followers: {(user.get('followers') or {}).get('total', 0)}")
    if user.get("country"):
        print(f"Country: {user['country']}")
    if user.get("product"):
        print(f"Plan: {user['product']}")


def show_top_tracks(app: InfoSpotApp) -> None:
    time_range = choose_time_range()
    print(f"\nTop tracks ({time_range.label}):")
    display_tracks(app.stats.get_top_tracks(limit=20, time_range=time_range))


def show_top_artists(app: InfoSpotApp) -> None:
    time_range = choose_time_range()
    print(f"\nTop artists ({time_range.label}):")
    for idx, artist in enumerate(app.stats.get_top_artists(limit=20, time_range=time_range), 1):
        genres = ", ".join((artist.get("genres") or [])[:3])
        suffix = f" [{genres}]" if genres else ""
        print(f"{idx:>2}. {artist.get('name', 'Unknown')}{suffix}")


def show_top_genres(app: InfoSpotApp) -> None:
    time_range = choose_time_range()
    genres = app.stats.get_top_genres(time_range=time_range)
    print(f"\nTop genres ({time_range.label}):")
    if not genres:
        print("No genres found.")
    for idx, genre in enumerate(genres, 1):
        print(f"#{idx} {genre}")


def show_recently_played(app: InfoSpotApp) -> None:
    items = app.stats.get_recently_played(limit=20)
    print("\nRecently played:")
    display_tracks([item["track"] for item in items if item.get("track")])


def show_playlists(app: InfoSpotApp) -> None:
    playlists = app.playlists.get_user_playlists()
    if not playlists:
        print("No playlists found!")
        return
    display_playlists(playlists)


def clean_duplicates(app: InfoSpotApp) -> None:
    selected = choose_playlist(app)
    if selected is None:
        return

    report = app.duplicates.scan(selected["id"])
    if not report.has_duplicates:
        print(f"\nNo duplicates in '{report.playlist.name}'.")
        return

    print(f"\nDuplicates in '{report.playlist.name}':")
    for group in report.groups:
        positions = ", ".join(str(p + 1) for p in group.positions)
        print(f"- {group.name} - {format_artists(group.artists)} (positions {positions})")

    if not confirm(f"Remove {report.total_removable} extra copies?"):
        print("Nothing removed.")
        return

    result, refreshed = app.duplicates.remove_duplicates(report)
    print(f"✨ Removed {result.applied_count} duplicate track(s).")
    for group in result.failed:
        print(f"⚠️ Could not remove {group.uri}: {describe_error(group.error)}")
    if refreshed is not None:
        print(f"'{refreshed.name}' now has {len(refreshed)} tracks.")


def export_playlist(app: InfoSpotApp) -> None:
    selected = choose_playlist(app)
    if selected is None:
        return
    destination = prompt(f"Save to (Enter for {app.exports.export_dir}): ") or None
    path = app.exports.export_playlist(selected["id"], destination)
    print(f"✨ Playlist exported to {path}")


def import_playlist(app: InfoSpotApp) -> None:
    source = prompt("Path to the playlist JSON file: ")
    if not source:
        return
    exports = app.exports
    document = exports.load_export(source)
    print(f"\n{document.info.name} by {document.info.author}")
    if document.info.description:
        print(document.info.description)
    tracks = exports.preview_import(document)
    display_tracks(tracks)
    print(f"{len(tracks)} of {len(document.tracks)} tracks available.")
    if not confirm("Create this playlist?"):
        print("Import cancelled.")
        return
    playlist = exports.import_playlist(document)
    print(f"✨ Created playlist '{playlist.get('name', document.info.name)}'")


def export_all_playlists(app: InfoSpotApp) -> None:
    playlists = app.playlists.get_user_playlists()
    if not playlists:
        print("No playlists found!")
        return
    destination = prompt(f"ZIP file (Enter for {app.exports.export_dir}/playlists.zip): ") or None
    path = app.exports.export_playlists_zip([p["id"] for p in playlists], destination)
    print(f"✨ Exported {len(playlists)} playlists to {path}")


MENU = (
    ("1", "Profile", show_profile),
    ("2", "Top tracks", show_top_tracks),
    ("3", "Top artists", show_top_artists),
    ("4", "Top genres", show_top_genres),
    ("5", "Recently played", show_recently_played),
    ("6", "Playlists", show_playlists),
    ("7", "Find and remove duplicates", clean_duplicates),
    ("8", "Export a playlist", export_playlist),
    ("9", "Import a playlist", import_playlist),
    ("10", "Export all playlists (ZIP)", export_all_playlists),
)


def display_menu(app: InfoSpotApp) -> str:
    print("\nInfoSpot Menu:")
    if app.is_authenticated:
        for key, label, _ in MENU:
            print(f"{key}. {label}")
        print("L. Log out")
    else:
        print("1. Log in with Spotify")
    print("0. Exit")
    return prompt("Select an option: ").upper()


def run_menu(app: InfoSpotApp) -> None:
    actions = {key: action for key, _, action in MENU}
    while True:
        choice = display_menu(app)
        if choice == "0":
            print("Thanks for using InfoSpot!")
            return

        if not app.is_authenticated:
            if choice != "1":
                print("Invalid option. Please try again.")
                continue
            try:
                app.login()
                print("✨ Logged in! ✨")
            except SpotifyAuthError as e:
                print(describe_error(e))
            continue

        if choice == "L":
            app.logout()
            print("Logged out.")
            continue

        action = actions.get(choice)
        if action is None:
            print("Invalid option. Please try again.")
            continue
        try:
            action(app)
        except HANDLED_ERRORS as e:
            logger.debug(f"Menu action {choice} failed: {e}")
            print(describe_error(e))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config_class = config[args.env]
    configure_logging(args.log_level or config_class.LOG_LEVEL)

    missing = validate_required_env_vars(config_class)
    if missing:
        print(
            f"Missing required settings: {', '.join(missing)}. "
            "Set them in your environment or .env file.",
            file=sys.stderr,
        )
        return EXIT_CONFIG

    print("Welcome to InfoSpot!")
    print("--------------------")
    try:
        app = create_app(args)
        run_menu(app)
    except (KeyboardInterrupt, EOFError) as e:
        print("\nGoodbye!")
        return exit_code_for(e) if isinstance(e, KeyboardInterrupt) else EXIT_OK
    except HANDLED_ERRORS as e:
        print(describe_error(e), file=sys.stderr)
        return exit_code_for(e)
    return EXIT_OK
