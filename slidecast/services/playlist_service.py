"""Playlist storage: listing and bulk replacement."""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from slidecast.config import settings
from slidecast.exceptions import ConflictError
from slidecast.models.image import Image
from slidecast.models.playlist import Playlist, PlaylistImage
from slidecast.schemas.playlist import PlaylistPayload, PlaylistResponse
from slidecast.services.palette_service import next_color

logger = logging.getLogger(__name__)


def list_playlists(session: Session) -> list[PlaylistResponse]:
    """All playlists ordered by name (case-insensitive) with their image ids."""
    playlists = session.exec(select(Playlist).order_by(func.lower(Playlist.name))).all()
    links = session.exec(select(PlaylistImage)).all()
    images_by_playlist: dict[int, list[int]] = {}
    for link in links:
        images_by_playlist.setdefault(link.playlist_id, []).append(link.image_id)

    return [
        PlaylistResponse(
            id=p.id,
            name=p.name,
            color=p.color or settings.default_color,
            hidden=bool(p.is_hidden),
            created_at=p.created_at.isoformat() if p.created_at else "",
            image_ids=images_by_playlist.get(p.id, []),
        )
        for p in playlists
    ]


def _parse_created_at(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Ignoring invalid playlist createdAt: %s", value)
    return datetime.now(timezone.utc)


def replace_playlists(payloads: list[PlaylistPayload], session: Session) -> int:
    """Replace every playlist with `payloads` in one transaction.

    Image ids that do not exist are skipped. Returns the number of playlists saved.
    """
    names = [p.name.strip().lower() for p in payloads]
    if len(names) != len(set(names)):
        raise ConflictError("Playlist name conflict during save.")

    known_images = set(session.exec(select(Image.id)).all())

    session.exec(delete(PlaylistImage))
    session.exec(delete(Playlist))

    associations = 0
    try:
        for payload in payloads:
            playlist = Playlist(
                id=payload.id,
                name=payload.name.strip(),
                color=payload.color or next_color("playlist"),
                is_hidden=payload.hidden,
                created_at=_parse_created_at(payload.created_at),
            )
            session.add(playlist)
            session.flush()
            for image_id in dict.fromkeys(payload.image_ids):
                if image_id not in known_images:
                    continue
                session.add(PlaylistImage(playlist_id=playlist.id, image_id=image_id))
                associations += 1
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("Playlist name conflict during save.")
    logger.info("Saved %d playlists and %d image associations", len(payloads), associations)
    return len(payloads)

