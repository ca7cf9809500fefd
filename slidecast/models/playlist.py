"""Playlist models."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class Playlist(SQLModel, table=True):
    __tablename__ = "playlists"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    color: Optional[str] = None
    is_hidden: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PlaylistImage(SQLModel, table=True):
    __tablename__ = "playlist_images"

    playlist_id: int = Field(foreign_key="playlists.id", primary_key=True)
    image_id: int = Field(foreign_key="images.id", primary_key=True)
