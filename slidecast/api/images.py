"""Image catalog API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from slidecast.database import get_session
from slidecast.exceptions import NotFoundError
from slidecast.schemas.image import (
    BulkDeleteRequest,
    ImageListResponse,
    ImageUpdateRequest,
    MessageResponse,
)
from slidecast.services.image_service import (
    ImageQuery,
    bulk_delete_images,
    delete_image,
    list_images,
    update_image,
)

router = APIRouter(prefix="/images", tags=["images"])


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_ids(value: str | None) -> list[int]:
    ids = []
    for part in _split_csv(value):
        try:
            ids.append(int(part))
        except ValueError:
            continue
    return ids


@router.get("", response_model=ImageListResponse)
def get_images(
    search: str | None = Query(default=None),
    tags: str | None = Query(default=None),
    playlist_id: int | None = Query(default=None, alias="playlistId"),
    ids: str | None = Query(default=None),
    include_hidden: bool = Query(default=False, alias="includeHidden"),
    sort_key: str = Query(default="dateAdded", alias="sortKey"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=1000),
    session: Session = Depends(get_session),
):
    """List images with filtering, sorting and pagination."""
    query = ImageQuery(
        search=search,
        tags=_split_csv(tags),
        playlist_id=playlist_id,
        ids=_parse_ids(ids),
        include_hidden=include_hidden,
        sort_key=sort_key,
        sort_dir=sort_dir,
        page=page,
        limit=limit,
    )
    images, pagination = list_images(query, session)
    return ImageListResponse(images=images, pagination=pagination)


@router.put("/{image_id}", response_model=MessageResponse)
def put_image(
    image_id: int,
    request: ImageUpdateRequest,
    session: Session = Depends(get_session),
):
    """Update an image's title and description."""
    try:
        update_image(image_id, request.title, request.description, session)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageResponse(message="Image updated successfully.")


@router.delete("/{image_id}", response_model=MessageResponse)
def remove_image(image_id: int, session: Session = Depends(get_session)):
    """Delete a single image, its tag/playlist links and its files."""
    try:
        filename = delete_image(image_id, session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageResponse(message=f"Image {filename} deleted successfully.")


@router.delete("", response_model=MessageResponse)
def remove_images(request: BulkDeleteRequest, session: Session = Depends(get_session)):
    """Bulk delete images by id."""
    try:
        count = bulk_delete_images(request.ids, session)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return MessageResponse(message=f"{count} images deleted successfully.")
