"""Two-buffer crossfade renderer.

Two stacked slides alternate roles: "current" is on screen, "next" is
off screen. A new image is loaded into "next", made visible, and after the
transition delay the role references swap.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

import httpx

from slidecast.display.catalog import SlideImage
from slidecast.exceptions import ImageLoadError
from slidecast.utils.image import decode_image

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading images..."
EMPTY_MESSAGE = "No images available"
ERROR_MESSAGE = "Error loading images"


class ImageLoader(Protocol):
    async def load(self, url: str) -> tuple[int, int]:
        """Fetch and decode an image, returning its size. Raises ImageLoadError."""
        ...


class HttpImageLoader:
    """Downloads images with httpx and decodes them with Pillow off the loop."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def load(self, url: str) -> tuple[int, int]:
        try:
            resp = await self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ImageLoadError(url, str(e)) from e

        try:
            return await asyncio.to_thread(decode_image, resp.content)
        except Exception as e:
            raise ImageLoadError(url, f"Decode failed: {e}") from e


@dataclass
class SlideBuffer:
    """One image layer plus its caption layer."""
    name: str
    src: str = ""
    title: str = ""
    subtitle: str = ""
    visible: bool = False
    size: tuple[int, int] | None = None


class TransitionRenderer:

    def __init__(
        self,
        loader: ImageLoader,
        transition_seconds: float = 1.0,
        on_change: Callable[[SlideBuffer], None] | None = None,
    ):
        self._loader = loader
        self.transition_seconds = transition_seconds
        self._on_change = on_change
        self.current = SlideBuffer("slide1")
        self.next = SlideBuffer("slide2")
        self.alert_message: str | None = None
        self.swap_count = 0
        self._generation = 0
        self._retire_handle: asyncio.TimerHandle | None = None

    @property
    def visible(self) -> SlideBuffer | None:
        """The buffer currently on screen, if any."""
        for buf in (self.next, self.current):
            if buf.visible:
                return buf
        return None

    @property
    def showing_url(self) -> str:
        buf = self.visible
        return buf.src if buf else ""

    async def crossfade_to(self, index: int, images: Sequence[SlideImage]) -> bool:
        """Load images[index] into the off-screen buffer and fade it in.

        Returns False, leaving the screen untouched, when the list is empty,
        the load fails, or a newer transition started while loading.
        """
        if not images:
            logger.warning("Crossfade requested with an empty image list")
            return False

        image = images[index % len(images)]
        self._generation += 1
        generation = self._generation

        try:
            size = await self._loader.load(image.url)
        except ImageLoadError as e:
            logger.warning("%s", e)
            return False

        if generation != self._generation:
            logger.debug("Discarding stale load of %s", image.url)
            return False

        target = self.next
        target.src = image.url
        target.title = image.title
        target.subtitle = image.description
        target.size = size
        target.visible = True
        if self.current is not target:
            self.current.visible = False
        self.swap_count += 1

        self._schedule_retire()
        if self._on_change:
            self._on_change(target)
        logger.debug("Showing %s in %s", image.url, target.name)
        return True

    def _schedule_retire(self) -> None:
        # Only one role swap may be pending; mid-animation calls reuse it
        if self._retire_handle is not None:
            self._retire_handle.cancel()
        loop = asyncio.get_running_loop()
        self._retire_handle = loop.call_later(self.transition_seconds, self._swap_roles)

    def _swap_roles(self) -> None:
        self._retire_handle = None
        self.current, self.next = self.next, self.current

    def show_message(self, title: str, subtitle: str = "") -> None:
        """Display static text with no image."""
        self._generation += 1
        self.close()
        for buf in (self.current, self.next):
            buf.src = ""
            buf.size = None
            buf.visible = False
            buf.title = ""
            buf.subtitle = ""
        self.current.title = title
        self.current.subtitle = subtitle
        if self._on_change:
            self._on_change(self.current)
        logger.info("Display message: %s", title)

    def alert(self, message: str) -> None:
        """User-visible alert hook handed to the sequencer."""
        self.alert_message = message
        logger.warning("Alert: %s", message)

    def close(self) -> None:
        if self._retire_handle is not None:
            self._retire_handle.cancel()
            self._retire_handle = None
