"""Read-only image records for the display client, and the catalog fetcher."""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from slidecast.exceptions import CatalogUnavailableError
from slidecast.schemas.slideshow import SlideImagePayload

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


@dataclass(frozen=True)
class TagInfo:
    name: str
    color: str = ""


@dataclass(frozen=True)
class SlideImage:
    """A catalog image as seen by the slideshow. Immutable working copy."""
    url: str
    title: str
    id: int | None = None
    description: str = ""
    thumbnail_url: str = ""
    tags: tuple[TagInfo, ...] = field(default_factory=tuple)
    date_added: str | None = None

    @property
    def key(self) -> int | str:
        """Identity used for random-cycle bookkeeping: the id, or the url when unsaved."""
        return self.id if self.id is not None else self.url

    @classmethod
    def from_payload(cls, payload: SlideImagePayload) -> "SlideImage":
        return cls(
            id=payload.id,
            url=payload.url,
            title=payload.title,
            description=payload.description or "",
            thumbnail_url=payload.thumbnail_url,
            tags=tuple(TagInfo(name=t.name, color=t.color) for t in payload.tags),
            date_added=payload.date_added,
        )


def parse_images(items: Iterable[Any]) -> list[SlideImage]:
    """Validate raw image dicts, skipping (and logging) the malformed ones."""
    images = []
    for position, raw in enumerate(items):
        try:
            payload = SlideImagePayload.model_validate(raw)
        except ValidationError as e:
            logger.warning("Skipping malformed image #%d: %s", position, e.errors()[:1])
            continue
        images.append(SlideImage.from_payload(payload))
    return images


class CatalogClient:
    """Fetches the full image list from the server's catalog API."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def fetch_images(self) -> list[SlideImage]:
        """Return every visible image, following pagination.

        Raises CatalogUnavailableError on any transport or HTTP error.
        """
        images: list[SlideImage] = []
        page = 1
        while True:
            try:
                resp = await self._client.get(
                    "/api/images",
                    params={"page": page, "limit": PAGE_SIZE, "sortKey": "title", "sortDir": "asc"},
                )
                resp.raise_for_status()
                data = resp.json()
            except (httpx.HTTPError, ValueError) as e:
                raise CatalogUnavailableError(f"Catalog fetch failed: {e}") from e

            images.extend(parse_images(data.get("images", [])))
            total_pages = data.get("pagination", {}).get("totalPages", 1)
            if page >= total_pages:
                break
            page += 1

        logger.info("Fetched %d images from catalog", len(images))
        return images
