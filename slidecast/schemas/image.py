"""Image request/response schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TagRef(BaseModel):
    id: Optional[int] = None
    name: str
    color: str


class ImageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: str
    tags: list[TagRef]
    tag_ids: list[int] = Field(alias="tagIds")
    date_added: str = Field(alias="dateAdded")
    url: str
    thumbnail_url: str = Field(alias="thumbnailUrl")


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_items: int = Field(alias="totalItems")
    items_per_page: int = Field(alias="itemsPerPage")


class ImageListResponse(BaseModel):
    images: list[ImageResponse]
    pagination: Pagination


class ImageUpdateRequest(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    image_id: Optional[int] = Field(default=None, alias="imageId")
    overwrite_prompt: Optional[bool] = Field(default=None, alias="overwritePrompt")
