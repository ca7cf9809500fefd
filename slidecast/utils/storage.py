"""Storage utilities: filename sanitizing and file paths."""

import logging
import re
import time
from pathlib import Path

from slidecast.config import settings

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 200

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str) -> str:
    """Reduce an uploaded filename to a safe basename.

    Unsafe characters collapse to '_', long names are truncated keeping the
    extension, and empty results get an `untitled-<ms>` name.
    """
    base = Path(name or "").name
    ext = Path(base).suffix.lower()
    stem = _UNSAFE_CHARS.sub("_", Path(base).stem).strip("._")
    ext = _UNSAFE_CHARS.sub("", ext)

    if len(stem) + len(ext) > MAX_FILENAME_LENGTH:
        stem = stem[: MAX_FILENAME_LENGTH - len(ext)]

    if not stem:
        return f"untitled-{int(time.time() * 1000)}{ext or '.bin'}"
    return f"{stem}{ext}"


def image_path(filename: str) -> Path:
    return settings.image_dir / filename


def thumbnail_path(filename: str) -> Path:
    return settings.thumbnail_dir / filename


def remove_image_files(filename: str) -> None:
    """Delete an image and its thumbnail; missing files are not an error."""
    for path in (image_path(filename), thumbnail_path(filename)):
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("File already gone: %s", path)
        except OSError as e:
            logger.warning("Error deleting file %s: %s", path, e)
