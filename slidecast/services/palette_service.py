"""Background colors handed out to new tags and playlists."""

import logging

from slidecast.config import settings
from slidecast.display.preferences import Preferences

logger = logging.getLogger(__name__)


def next_color(kind: str) -> str:
    """Next palette color for a "tag" or "playlist".

    Each kind has its own counter in the preferences file, so colors keep
    cycling across restarts.
    """
    palette = settings.color_palette
    if not palette:
        return settings.default_color
    prefs = Preferences.load(settings.preferences_path)
    color = palette[prefs.next_color_index(kind, len(palette))]
    logger.debug("Assigned %s color %s", kind, color)
    return color
