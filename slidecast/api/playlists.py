"""Playlist API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from slidecast.database import get_session
from slidecast.exceptions import ConflictError
from slidecast.schemas.image import MessageResponse
from slidecast.schemas.playlist import PlaylistResponse, PlaylistSaveRequest
from slidecast.services.playlist_service import list_playlists, replace_playlists

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.get("", response_model=list[PlaylistResponse])
def get_playlists(session: Session = Depends(get_session)):
    """All playlists with their image ids."""
    return list_playlists(session)


@router.post("", response_model=MessageResponse)
def save_playlists(request: PlaylistSaveRequest, session: Session = Depends(get_session)):
    """Replace all playlists with the submitted set."""
    try:
        replace_playlists(request.playlists, session)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return MessageResponse(message="Playlists saved successfully.")
