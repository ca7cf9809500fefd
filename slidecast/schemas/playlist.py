"""Playlist request/response schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PlaylistPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    name: str = Field(min_length=1)
    color: Optional[str] = None
    hidden: bool = False
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    image_ids: list[int] = Field(default_factory=list, alias="imageIds")


class PlaylistSaveRequest(BaseModel):
    playlists: list[PlaylistPayload]


class PlaylistResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    color: str
    hidden: bool
    created_at: str = Field(alias="createdAt")
    image_ids: list[int] = Field(alias="imageIds")
