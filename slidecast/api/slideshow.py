"""Slideshow control endpoint: turns management actions into broadcasts."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from slidecast.database import get_session
from slidecast.schemas.image import MessageResponse
from slidecast.schemas.slideshow import EventType, SlideshowUpdateRequest
from slidecast.services.slideshow_service import PayloadTooLargeError, build_event
from slidecast.ws.hub import manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["slideshow"])

_CONFIRMATIONS = {
    EventType.SLIDE_ACTION.value: "Navigation action '{action}' broadcasted.",
    EventType.SETTINGS_UPDATE.value: "Slideshow settings update broadcasted.",
    EventType.PLAY_IMAGE.value: "Play specific image broadcasted.",
    EventType.PLAY_SELECT.value: "Play selection broadcasted.",
}


@router.post("/updateSlideshow", response_model=MessageResponse)
async def update_slideshow(
    request: SlideshowUpdateRequest,
    session: Session = Depends(get_session),
):
    """Broadcast next/prev, updateSettings, play or playSelect to all clients."""
    try:
        event_type, payload = build_event(request, session)
    except PayloadTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        logger.warning("/updateSlideshow rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    reached = await manager.broadcast(event_type, payload)
    logger.info("Broadcast %s to %d clients", event_type, reached)
    return MessageResponse(message=_CONFIRMATIONS[event_type].format(action=request.action))
