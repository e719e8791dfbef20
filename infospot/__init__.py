"""
InfoSpot: Spotify listening statistics and playlist tools.

Logs in through the browser with a local loopback redirect, then shows
listening statistics and manages playlists (duplicate cleanup, JSON
export and import).
"""

import logging
from typing import Union

__version__ = "0.3.0"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that are noisy at INFO/DEBUG
_QUIET_LOGGERS = ("spotipy", "urllib3", "werkzeug")


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """
    Configure root logging for the application.

    Args:
        level: Level name (``"DEBUG"``) or number.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
