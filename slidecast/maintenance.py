"""Offline maintenance commands: rebuild thumbnails and respread tag colors.

    slidecast-thumbnails [--width N]
    slidecast-tag-colors [--seed N]
"""

import argparse
import logging
import random
from pathlib import Path

from sqlmodel import Session, select

from slidecast.config import settings
from slidecast.models.image import Tag
from slidecast.utils.image import generate_thumbnail

logger = logging.getLogger(__name__)

THUMBNAIL_SOURCE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


def regenerate_thumbnails(
    image_dir: Path | None = None,
    thumbnail_dir: Path | None = None,
    width: int | None = None,
) -> tuple[int, int]:
    """Rewrite the thumbnail of every image file, keeping its filename.

    Returns (written, failed). One bad file does not stop the run.
    """
    image_dir = Path(image_dir or settings.image_dir)
    thumbnail_dir = Path(thumbnail_dir or settings.thumbnail_dir)

    written = failed = 0
    for path in sorted(image_dir.iterdir()):
        if not path.is_file() or path.suffix.lower() not in THUMBNAIL_SOURCE_EXTENSIONS:
            continue
        try:
            generate_thumbnail(path.read_bytes(), thumbnail_dir / path.name, width)
        except Exception as e:
            logger.error("Error generating thumbnail for %s: %s", path.name, e)
            failed += 1
            continue
        logger.info("Generated thumbnail for %s", path.name)
        written += 1
    return written, failed


def spread_tag_colors(
    session: Session,
    palette: list[str] | None = None,
    rng: random.Random | None = None,
) -> dict[int, str]:
    """Give every tag except Hidden a palette color, using each color evenly.

    With n tags and p colors each color is used n // p times, and the first
    n % p colors once more. The assignment is shuffled. Returns {tag id: color}.
    """
    palette = list(palette or settings.color_palette)
    if not palette:
        raise ValueError("Color palette is empty.")
    rng = rng or random.Random()

    tags = session.exec(
        select(Tag).where(Tag.name != settings.hidden_tag_name).order_by(Tag.id)
    ).all()
    rounds, extra = divmod(len(tags), len(palette))
    colors = palette * rounds + palette[:extra]
    rng.shuffle(colors)

    for tag, color in zip(tags, colors):
        tag.color = color
        session.add(tag)
    session.commit()
    logger.info("Updated colors for %d tags", len(tags))
    return {tag.id: tag.color for tag in tags}


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def thumbnails_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Regenerate thumbnails for every stored image")
    parser.add_argument("--width", type=int, default=settings.thumbnail_size, help="thumbnail width in pixels")
    parser.add_argument("--image-dir", type=Path, default=settings.image_dir)
    parser.add_argument("--thumbnail-dir", type=Path, default=settings.thumbnail_dir)
    args = parser.parse_args(argv)
    if args.width <= 0:
        parser.error("--width must be positive")

    _setup_logging()
    written, failed = regenerate_thumbnails(args.image_dir, args.thumbnail_dir, args.width)
    logger.info("Thumbnails written: %d, failed: %d", written, failed)
    return 1 if failed else 0


def tag_colors_main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Spread the color palette evenly over all tags")
    parser.add_argument("--seed", type=int, default=None, help="shuffle seed, for a repeatable assignment")
    args = parser.parse_args(argv)

    _setup_logging()
    from slidecast.database import engine, init_db

    init_db()
    with Session(engine) as session:
        spread_tag_colors(session, rng=random.Random(args.seed))
    return 0
