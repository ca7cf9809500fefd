"""Slideshow control requests and real-time event payloads.

The same models validate frames on the server hub and on display clients.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from slidecast.schemas.image import TagRef


class OrderingPolicy(str, Enum):
    ALPHABETICAL = "alphabetical"
    RANDOM = "random"
    GROUPS = "groups"


class EventType(str, Enum):
    NAVIGATION = "navigation"
    SLIDE_ACTION = "slideAction"
    SETTINGS_UPDATE = "settingsUpdate"
    PLAY_IMAGE = "playImage"
    PLAY_SELECT = "playSelect"


class SlideImagePayload(BaseModel):
    """One image inside a playSelect batch or a catalog listing."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    url: str = Field(min_length=1)
    title: str
    description: str = ""
    thumbnail_url: str = Field(default="", alias="thumbnailUrl")
    tags: list[TagRef] = Field(default_factory=list)
    date_added: Optional[str] = Field(default=None, alias="dateAdded")


class NavigationEvent(BaseModel):
    action: Literal["next", "prev", "reset"]
    index: int = Field(ge=0)


class SlideActionEvent(BaseModel):
    action: Literal["play", "pause", "next", "prev"]


class SettingsUpdateEvent(BaseModel):
    speed: float = Field(gt=0)  # seconds
    order: OrderingPolicy


class PlayImageEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(min_length=1, alias="imageUrl")
    title: str
    description: str = ""


class PlaySelectEvent(BaseModel):
    # Items are validated one by one so a bad entry does not reject the batch
    images: list[Any] = Field(default_factory=list)
    speed: Optional[float] = Field(default=None, gt=0)
    order: Optional[OrderingPolicy] = None


EVENT_MODELS: dict[str, type[BaseModel]] = {
    EventType.NAVIGATION.value: NavigationEvent,
    EventType.SLIDE_ACTION.value: SlideActionEvent,
    EventType.SETTINGS_UPDATE.value: SettingsUpdateEvent,
    EventType.PLAY_IMAGE.value: PlayImageEvent,
    EventType.PLAY_SELECT.value: PlaySelectEvent,
}


class SlideshowUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str
    speed: Optional[float] = None
    order: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    title: Optional[str] = None
    description: Optional[str] = None
    images: Optional[list[dict[str, Any]]] = None
