"""Translate slideshow control requests into real-time broadcast events."""

import logging
from typing import Any

from pydantic import ValidationError
from sqlmodel import Session, func, select

from slidecast.config import settings
from slidecast.models.image import ImageTag, Tag
from slidecast.schemas.slideshow import (
    EventType,
    OrderingPolicy,
    PlayImageEvent,
    PlaySelectEvent,
    SettingsUpdateEvent,
    SlideActionEvent,
    SlideImagePayload,
    SlideshowUpdateRequest,
)

logger = logging.getLogger(__name__)


class PayloadTooLargeError(ValueError):
    pass


def hidden_image_ids(session: Session) -> set[int]:
    hidden = session.exec(
        select(Tag).where(func.lower(Tag.name) == settings.hidden_tag_name.lower())
    ).first()
    if not hidden:
        return set()
    return set(session.exec(select(ImageTag.image_id).where(ImageTag.tag_id == hidden.id)).all())


def _parse_policy(order: str | None) -> OrderingPolicy:
    try:
        return OrderingPolicy(order)
    except ValueError:
        raise ValueError(f"Unknown slideshow order: {order}")


def _valid_speed(speed: float | None) -> bool:
    return speed is not None and speed > 0


def filter_playable(images: list[dict[str, Any]], hidden_ids: set[int]) -> list[SlideImagePayload]:
    """Keep images that validate, carry an id and are not hidden."""
    playable = []
    for raw in images:
        try:
            image = SlideImagePayload.model_validate(raw)
        except ValidationError as e:
            logger.warning("Skipping malformed image in playSelect: %s", e.errors()[:1])
            continue
        if image.id is None or image.id in hidden_ids:
            continue
        playable.append(image)
    return playable


def build_event(request: SlideshowUpdateRequest, session: Session) -> tuple[str, dict[str, Any]]:
    """Validate a control request and return (event_type, payload) to broadcast.

    Raises ValueError on invalid payloads and PayloadTooLargeError when a
    playSelect carries too many images.
    """
    action = request.action

    if action in ("next", "prev"):
        event = SlideActionEvent(action=action)
        return EventType.SLIDE_ACTION.value, event.model_dump()

    if action == "updateSettings":
        if not _valid_speed(request.speed):
            raise ValueError("Invalid payload for updateSettings action (requires valid speed and order).")
        event = SettingsUpdateEvent(speed=request.speed, order=_parse_policy(request.order))
        return EventType.SETTINGS_UPDATE.value, event.model_dump(mode="json")

    if action == "play":
        if not request.image_url or not request.title:
            raise ValueError("Invalid payload for play action (requires imageUrl and title strings).")
        event = PlayImageEvent(
            image_url=request.image_url,
            title=request.title,
            description=request.description or "",
        )
        return EventType.PLAY_IMAGE.value, event.model_dump(by_alias=True)

    if action == "playSelect":
        if request.images is None or not _valid_speed(request.speed):
            raise ValueError(
                "Invalid payload for playSelect action (requires images array, valid speed, and order)."
            )
        if len(request.images) > settings.max_play_select_images:
            raise PayloadTooLargeError(
                f"Payload too large. Maximum {settings.max_play_select_images} images allowed."
            )
        order = _parse_policy(request.order)
        playable = filter_playable(request.images, hidden_image_ids(session))
        logger.info(
            "playSelect: %d of %d images playable",
            len(playable), len(request.images),
        )
        event = PlaySelectEvent(
            images=[img.model_dump(by_alias=True) for img in playable],
            speed=request.speed,
            order=order,
        )
        return EventType.PLAY_SELECT.value, event.model_dump(mode="json")

    raise ValueError(f"Unknown action: {action}")
