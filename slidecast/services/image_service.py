"""Image catalog, upload and deletion business logic."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

from sqlmodel import Session, col, func, select

from slidecast.config import settings
from slidecast.exceptions import InvalidUploadError, NotFoundError
from slidecast.models.image import Image, ImageTag, Tag
from slidecast.models.playlist import PlaylistImage
from slidecast.schemas.image import ImageResponse, Pagination, TagRef
from slidecast.utils.image import generate_thumbnail
from slidecast.utils.storage import (
    image_path,
    remove_image_files,
    sanitize_filename,
    thumbnail_path,
)

logger = logging.getLogger(__name__)

SORT_KEYS = {
    "id": Image.id,
    "filename": Image.filename,
    "title": Image.title,
    "description": Image.description,
    "dateAdded": Image.date_added,
}

# Legacy synthetic tag that must never reach clients
ALL_TAG_NAME = "all"


@dataclass
class ImageQuery:
    search: str | None = None
    tags: list[str] | None = None
    playlist_id: int | None = None
    ids: list[int] | None = None
    include_hidden: bool = False
    sort_key: str = "dateAdded"
    sort_dir: str = "desc"
    page: int = 1
    limit: int = 20


@dataclass
class UploadResult:
    filename: str
    image_id: int | None = None
    created: bool = False
    overwritten: bool = False
    needs_overwrite: bool = False


def _tag_filter(tag_name: str):
    """Subquery of image ids carrying a tag (case-insensitive)."""
    return (
        select(ImageTag.image_id)
        .join(Tag, Tag.id == ImageTag.tag_id)
        .where(func.lower(Tag.name) == tag_name.lower())
    )


def load_tags(image_ids: list[int], session: Session) -> dict[int, list[TagRef]]:
    """Resolve image_id -> tags for a batch, dropping the synthetic 'all' tag."""
    if not image_ids:
        return {}
    rows = session.exec(
        select(ImageTag.image_id, Tag)
        .join(Tag, Tag.id == ImageTag.tag_id)
        .where(col(ImageTag.image_id).in_(image_ids))
        .order_by(Tag.name)
    ).all()
    result: dict[int, list[TagRef]] = {}
    for image_id, tag in rows:
        if not tag.name or tag.name.strip().lower() == ALL_TAG_NAME:
            continue
        result.setdefault(image_id, []).append(
            TagRef(id=tag.id, name=tag.name, color=tag.color or settings.default_color)
        )
    return result


def image_to_response(image: Image, tags: list[TagRef]) -> ImageResponse:
    encoded = quote(image.filename)
    return ImageResponse(
        id=image.id,
        title=image.title,
        description=image.description or "",
        tags=tags,
        tag_ids=[t.id for t in tags if t.id is not None],
        date_added=image.date_added.isoformat() if image.date_added else "",
        url=f"/images/{encoded}",
        thumbnail_url=f"/thumbnails/{encoded}",
    )


def list_images(query: ImageQuery, session: Session) -> tuple[list[ImageResponse], Pagination]:
    """Filter, sort and paginate the catalog.

    An explicit id list overrides every other filter and disables pagination.
    """
    stmt = select(Image)

    if query.ids:
        stmt = stmt.where(col(Image.id).in_(query.ids))
    else:
        if query.search:
            term = f"%{query.search.strip().lower()}%"
            stmt = stmt.where(
                func.lower(Image.title).like(term) | func.lower(Image.description).like(term)
            )
        for tag_name in query.tags or []:
            stmt = stmt.where(col(Image.id).in_(_tag_filter(tag_name)))
        if query.playlist_id is not None:
            stmt = stmt.where(
                col(Image.id).in_(
                    select(PlaylistImage.image_id).where(PlaylistImage.playlist_id == query.playlist_id)
                )
            )
        if not query.include_hidden:
            stmt = stmt.where(col(Image.id).not_in(_tag_filter(settings.hidden_tag_name)))

    sort_column = col(SORT_KEYS.get(query.sort_key, Image.date_added))
    stmt = stmt.order_by(sort_column.asc() if query.sort_dir.lower() == "asc" else sort_column.desc())

    if query.ids:
        images = list(session.exec(stmt).all())
        total_items = len(query.ids)
        total_pages = 1
        page = 1
    else:
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total_items = session.exec(count_stmt).one()
        total_pages = max(1, math.ceil(total_items / query.limit))
        page = min(max(query.page, 1), total_pages)
        images = list(session.exec(stmt.offset((page - 1) * query.limit).limit(query.limit)).all())

    tag_map = load_tags([i.id for i in images], session)
    pagination = Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        items_per_page=query.limit,
    )
    return [image_to_response(i, tag_map.get(i.id, [])) for i in images], pagination


def get_image(image_id: int, session: Session) -> Image:
    image = session.get(Image, image_id)
    if not image:
        raise NotFoundError("Image not found.")
    return image


def update_image(image_id: int, title: str, description: str | None, session: Session) -> Image:
    """Update title and description; title must not be blank."""
    title = title.strip()
    if not title:
        raise ValueError("Image title is required and must be a non-empty string.")
    image = get_image(image_id, session)
    image.title = title
    image.description = description or ""
    session.add(image)
    session.commit()
    session.refresh(image)
    return image


def _delete_links(image_ids: list[int], session: Session) -> None:
    for link in session.exec(select(ImageTag).where(col(ImageTag.image_id).in_(image_ids))).all():
        session.delete(link)
    for link in session.exec(select(PlaylistImage).where(col(PlaylistImage.image_id).in_(image_ids))).all():
        session.delete(link)


def delete_image(image_id: int, session: Session) -> str:
    """Delete one image with its tag/playlist links and files. Returns the filename."""
    image = get_image(image_id, session)
    filename = image.filename
    _delete_links([image_id], session)
    session.delete(image)
    session.commit()
    remove_image_files(filename)
    logger.info("Deleted image %s (%s)", image_id, filename)
    return filename


def bulk_delete_images(image_ids: list[int], session: Session) -> int:
    """Delete every existing image in `image_ids`. Returns the number deleted."""
    images = list(session.exec(select(Image).where(col(Image.id).in_(image_ids))).all())
    if not images:
        raise NotFoundError("No images found for the provided IDs.")
    _delete_links([i.id for i in images], session)
    filenames = [i.filename for i in images]
    for image in images:
        session.delete(image)
    session.commit()
    for filename in filenames:
        remove_image_files(filename)
    logger.info("Bulk deleted %d images", len(images))
    return len(images)


def save_upload(
    file_data: bytes,
    original_name: str,
    content_type: str,
    session: Session,
    overwrite: bool = False,
) -> UploadResult:
    """Store an uploaded image.

    1. Validate type & size
    2. Check for an existing record with the same filename
    3. Save original file
    4. Insert or update DB record (new images get the Hidden tag)
    5. Generate thumbnail
    """
    # 1. Validation
    if not content_type.startswith("image/"):
        raise InvalidUploadError("Invalid file type. Only images are allowed.")
    if not file_data:
        raise InvalidUploadError("No file uploaded or file rejected.")
    if len(file_data) > settings.max_upload_bytes:
        raise InvalidUploadError("File too large.")

    filename = sanitize_filename(original_name)
    title = Path(filename).stem

    # 2. Duplicate check
    existing = session.exec(select(Image).where(Image.filename == filename)).first()
    if existing and not overwrite:
        return UploadResult(filename=filename, image_id=existing.id, needs_overwrite=True)

    # 3. Save original
    image_path(filename).write_bytes(file_data)

    # 4. DB record
    now = datetime.now(timezone.utc)
    if existing:
        existing.title = title
        existing.description = ""
        existing.date_added = now
        session.add(existing)
        session.commit()
        result = UploadResult(filename=filename, image_id=existing.id, overwritten=True)
    else:
        image = Image(filename=filename, title=title, description="", date_added=now)
        session.add(image)
        session.commit()
        session.refresh(image)
        hidden = session.exec(
            select(Tag).where(func.lower(Tag.name) == settings.hidden_tag_name.lower())
        ).first()
        if hidden:
            session.add(ImageTag(image_id=image.id, tag_id=hidden.id))
            session.commit()
        else:
            logger.warning("Could not add image %s to '%s' tag: tag not found", image.id, settings.hidden_tag_name)
        result = UploadResult(filename=filename, image_id=image.id, created=True)

    # 5. Thumbnail; a failure here does not fail the upload
    try:
        generate_thumbnail(file_data, thumbnail_path(filename))
    except Exception as e:
        logger.error("Error generating thumbnail for %s: %s", filename, e)

    return result
