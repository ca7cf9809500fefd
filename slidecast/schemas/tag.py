"""Tag request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class TagCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    color: Optional[str] = None


class TagUpdateRequest(BaseModel):
    name: str = Field(min_length=1)


class TagResponse(BaseModel):
    id: int
    name: str
    color: str


class EntryTagsRequest(BaseModel):
    ids: list[int] = Field(min_length=1)
    tag: str = Field(min_length=1)
