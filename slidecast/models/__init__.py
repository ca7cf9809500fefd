"""Slidecast Database Models."""

from slidecast.models.image import Image, ImageTag, Tag
from slidecast.models.playlist import Playlist, PlaylistImage

__all__ = [
    "Image",
    "ImageTag",
    "Tag",
    "Playlist",
    "PlaylistImage",
]
