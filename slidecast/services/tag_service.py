"""Tag CRUD and bulk tagging logic."""

import logging

from sqlmodel import Session, col, func, select

from slidecast.config import settings
from slidecast.exceptions import ConflictError, NotFoundError, ProtectedTagError
from slidecast.models.image import Image, ImageTag, Tag
from slidecast.services.palette_service import next_color

logger = logging.getLogger(__name__)


def _is_hidden_name(name: str) -> bool:
    return name.strip().lower() == settings.hidden_tag_name.lower()


def find_tag(name: str, session: Session) -> Tag | None:
    """Look up a tag by name, case-insensitive."""
    return session.exec(
        select(Tag).where(func.lower(Tag.name) == name.strip().lower())
    ).first()


def list_tags(session: Session) -> list[Tag]:
    return list(session.exec(select(Tag).order_by(Tag.name)).all())


def create_tag(name: str, color: str | None, session: Session) -> Tag:
    name = name.strip()
    if not name:
        raise ValueError("Tag name is required and must be a non-empty string.")
    if _is_hidden_name(name):
        raise ProtectedTagError(f"Cannot create the protected '{settings.hidden_tag_name}' tag manually.")
    if find_tag(name, session):
        raise ConflictError("Tag already exists.")

    tag = Tag(name=name, color=color or next_color("tag"))
    session.add(tag)
    session.commit()
    session.refresh(tag)
    logger.info("Created tag %s (%s)", tag.id, tag.name)
    return tag


def rename_tag(tag_id: int, name: str, session: Session) -> Tag:
    name = name.strip()
    if not name:
        raise ValueError("New tag name is required and must be a non-empty string.")
    tag = session.get(Tag, tag_id)
    if not tag:
        raise NotFoundError("Tag not found.")
    if tag.name == settings.hidden_tag_name:
        raise ProtectedTagError(f"Cannot rename the protected '{settings.hidden_tag_name}' tag.")
    if _is_hidden_name(name):
        raise ProtectedTagError(f"Cannot rename tag to the protected name '{settings.hidden_tag_name}'.")

    clash = find_tag(name, session)
    if clash and clash.id != tag_id:
        raise ConflictError("Tag name already exists.")

    tag.name = name
    session.add(tag)
    session.commit()
    session.refresh(tag)
    return tag


def delete_tag(tag_id: int, session: Session) -> None:
    tag = session.get(Tag, tag_id)
    if not tag:
        raise NotFoundError("Tag not found.")
    if tag.name == settings.hidden_tag_name:
        raise ProtectedTagError(f"Cannot delete the protected '{settings.hidden_tag_name}' tag.")

    for link in session.exec(select(ImageTag).where(ImageTag.tag_id == tag_id)).all():
        session.delete(link)
    session.delete(tag)
    session.commit()
    logger.info("Deleted tag %s (%s)", tag_id, tag.name)


def add_tag_to_images(image_ids: list[int], tag_name: str, session: Session) -> int:
    """Attach a tag to many images. Existing links are left alone.

    Returns the number of new links created.
    """
    tag = find_tag(tag_name, session)
    if not tag:
        raise NotFoundError(f'Tag "{tag_name.strip()}" not found.')

    existing_ids = set(session.exec(select(Image.id).where(col(Image.id).in_(image_ids))).all())
    linked = set(
        session.exec(
            select(ImageTag.image_id).where(
                ImageTag.tag_id == tag.id, col(ImageTag.image_id).in_(image_ids)
            )
        ).all()
    )
    created = 0
    for image_id in dict.fromkeys(image_ids):
        if image_id not in existing_ids or image_id in linked:
            continue
        session.add(ImageTag(image_id=image_id, tag_id=tag.id))
        created += 1
    session.commit()
    return created


def remove_tag_from_images(image_ids: list[int], tag_name: str, session: Session) -> int:
    """Detach a tag from many images. An unknown tag removes nothing."""
    tag = find_tag(tag_name, session)
    if not tag:
        return 0
    links = session.exec(
        select(ImageTag).where(ImageTag.tag_id == tag.id, col(ImageTag.image_id).in_(image_ids))
    ).all()
    for link in links:
        session.delete(link)
    session.commit()
    return len(links)
