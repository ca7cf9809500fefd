"""Tag API endpoints, including bulk tagging of image entries."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from slidecast.config import settings
from slidecast.database import get_session
from slidecast.exceptions import ConflictError, NotFoundError, ProtectedTagError
from slidecast.models.image import Tag
from slidecast.schemas.image import MessageResponse
from slidecast.schemas.tag import (
    EntryTagsRequest,
    TagCreateRequest,
    TagResponse,
    TagUpdateRequest,
)
from slidecast.services.tag_service import (
    add_tag_to_images,
    create_tag,
    delete_tag,
    list_tags,
    remove_tag_from_images,
    rename_tag,
)

router = APIRouter(tags=["tags"])


def _tag_to_response(tag: Tag) -> TagResponse:
    return TagResponse(id=tag.id, name=tag.name, color=tag.color or settings.default_color)


def _raise_for(e: Exception):
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ProtectedTagError):
        raise HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ConflictError):
        raise HTTPException(status_code=409, detail=str(e))
    raise HTTPException(status_code=400, detail=str(e))


@router.get("/tags", response_model=list[TagResponse])
def get_tags(session: Session = Depends(get_session)):
    """All tags ordered by name."""
    return [_tag_to_response(t) for t in list_tags(session)]


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def post_tag(request: TagCreateRequest, session: Session = Depends(get_session)):
    try:
        tag = create_tag(request.name, request.color, session)
    except (ValueError, ProtectedTagError, ConflictError) as e:
        _raise_for(e)
    return _tag_to_response(tag)


@router.put("/tags/{tag_id}", response_model=MessageResponse)
def put_tag(tag_id: int, request: TagUpdateRequest, session: Session = Depends(get_session)):
    """Rename a tag. The Hidden tag is protected."""
    try:
        rename_tag(tag_id, request.name, session)
    except (ValueError, NotFoundError, ProtectedTagError, ConflictError) as e:
        _raise_for(e)
    return MessageResponse(message="Tag updated successfully.")


@router.delete("/tags/{tag_id}", response_model=MessageResponse)
def remove_tag(tag_id: int, session: Session = Depends(get_session)):
    try:
        delete_tag(tag_id, session)
    except (NotFoundError, ProtectedTagError) as e:
        _raise_for(e)
    return MessageResponse(message="Tag deleted successfully.")


@router.post("/entries/tags", response_model=MessageResponse)
def tag_entries(request: EntryTagsRequest, session: Session = Depends(get_session)):
    """Add a tag (by name) to many images."""
    try:
        add_tag_to_images(request.ids, request.tag, session)
    except NotFoundError as e:
        _raise_for(e)
    return MessageResponse(message=f'Tag "{request.tag.strip()}" added to selected entries.')


@router.delete("/entries/tags", response_model=MessageResponse)
def untag_entries(request: EntryTagsRequest, session: Session = Depends(get_session)):
    """Remove a tag (by name) from many images. Unknown tags are not an error."""
    remove_tag_from_images(request.ids, request.tag, session)
    return MessageResponse(message=f'Tag "{request.tag.strip()}" removed from selected entries.')
