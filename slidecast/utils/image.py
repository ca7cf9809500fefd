"""Image processing: thumbnails and decode checks."""

import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

# Register HEIF/HEIC support
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
except ImportError:
    pass


def generate_thumbnail(image_data: bytes, out_path: Path, width: int | None = None) -> Path:
    """Write a thumbnail scaled to `width` pixels wide, keeping the aspect ratio.

    `width` defaults to `settings.thumbnail_size`. The output format follows the extension of `out_path`.
    """
    if width is None:
        from slidecast.config import settings
        width = settings.thumbnail_size
    img = Image.open(BytesIO(image_data))

    # Auto-rotate based on EXIF orientation
    img = _auto_orient(img)

    if img.width > width:
        height = max(1, round(img.height * width / img.width))
        img = img.resize((width, height), Image.LANCZOS)

    # JPEG cannot store alpha or palette images
    if out_path.suffix.lower() in (".jpg", ".jpeg") and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    out_path.parent.mkdir(parents=True, exist_ok=True)
    img.save(out_path)
    return out_path


def decode_image(image_data: bytes) -> tuple[int, int]:
    """Fully decode image bytes and return (width, height).

    Raises whatever Pillow raises for truncated or unknown data.
    """
    img = Image.open(BytesIO(image_data))
    img.load()
    return img.size


def _auto_orient(img: Image.Image) -> Image.Image:
    """Apply the EXIF orientation (rotation and mirroring) to the pixels."""
    try:
        return ImageOps.exif_transpose(img)
    except Exception as e:
        logger.debug("Could not apply EXIF orientation: %s", e)
        return img
