"""Playback session: the single controller of a display client.

The session owns the Sequencer and drives the Renderer. Local triggers,
timer ticks and remote events all go through the same methods; an origin
flag decides whether the change is broadcast back onto the channel.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Sequence

from pydantic import ValidationError

from slidecast.display.catalog import CatalogClient, SlideImage, parse_images
from slidecast.display.channel import Channel
from slidecast.display.preferences import Preferences
from slidecast.display.renderer import EMPTY_MESSAGE, ERROR_MESSAGE, TransitionRenderer
from slidecast.display.scheduler import IntervalScheduler
from slidecast.display.sequencer import Direction, NavigationResult, Sequencer
from slidecast.exceptions import CatalogUnavailableError
from slidecast.schemas.slideshow import (
    EVENT_MODELS,
    EventType,
    NavigationEvent,
    OrderingPolicy,
    PlayImageEvent,
    PlaySelectEvent,
    SettingsUpdateEvent,
    SlideActionEvent,
)

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class Origin(str, Enum):
    LOCAL = "local"      # user input on this device; broadcast
    TIMER = "timer"      # auto-advance; broadcast, does not re-arm
    REMOTE = "remote"    # came off the channel; never rebroadcast
    STORAGE = "storage"  # preferences file changed; not broadcast or persisted


class PlaybackSession:

    def __init__(
        self,
        sequencer: Sequencer,
        renderer: TransitionRenderer,
        channel: Channel | None = None,
        scheduler: IntervalScheduler | None = None,
        catalog: CatalogClient | None = None,
        preferences: Preferences | None = None,
        interval_seconds: float = DEFAULT_INTERVAL,
    ):
        self.sequencer = sequencer
        self.renderer = renderer
        self.channel = channel
        self.scheduler = scheduler or IntervalScheduler()
        self.catalog = catalog
        self.preferences = preferences
        self.interval_seconds = interval_seconds
        self.state = PlaybackState.STOPPED
        self.paused = False
        self._timer = None
        self._catalog_images: list[SlideImage] = []
        self._lock = asyncio.Lock()

    @property
    def timer_active(self) -> bool:
        return self._timer is not None

    # --- Timer ---

    def start(self) -> None:
        """Arm the auto-advance timer unless one is live or playback is paused."""
        if self._timer is not None or self.paused:
            return
        if len(self.sequencer) < 2:
            logger.debug("Not starting timer with %d image(s)", len(self.sequencer))
            return
        self._timer = self.scheduler.create(self._tick, self.interval_seconds)
        logger.debug("Timer started (%.1fs)", self.interval_seconds)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self.scheduler.cancel(self._timer)
            self._timer = None

    def _restart_timer(self) -> None:
        self._clear_timer()
        self.start()

    async def _tick(self) -> None:
        try:
            await self.navigate(Direction.NEXT, origin=Origin.TIMER)
        except Exception:
            logger.exception("Auto-advance failed")

    # --- Channel ---

    async def _publish(self, event_type: EventType, data: dict[str, Any], origin: Origin) -> None:
        if origin in (Origin.REMOTE, Origin.STORAGE) or self.channel is None:
            return
        try:
            await self.channel.publish(event_type.value, data)
        except Exception as e:
            logger.warning("Failed to broadcast %s: %s", event_type.value, e)

    # --- Showing images ---

    async def _show(self, result: NavigationResult | None) -> bool:
        if result is None:
            return False
        return await self.renderer.crossfade_to(result.index, result.images)

    async def _show_first(self) -> NavigationResult | None:
        result = self.sequencer.prime()
        if result is None:
            self.renderer.show_message(EMPTY_MESSAGE)
            return None
        await self._show(result)
        if self.state == PlaybackState.STOPPED:
            self.state = PlaybackState.PAUSED if self.paused else PlaybackState.PLAYING
        return result

    async def load_catalog(self, images: Sequence[SlideImage]) -> None:
        """Install a freshly fetched catalog and begin the slideshow."""
        async with self._lock:
            self._catalog_images = list(images)
            self.sequencer.load(self._catalog_images)
            await self._show_first()
            self._restart_timer()

    async def refresh_catalog(self) -> list[SlideImage]:
        """Fetch the full catalog from the server, falling back to the last copy."""
        if self.catalog is None:
            return self._catalog_images
        try:
            self._catalog_images = await self.catalog.fetch_images()
        except CatalogUnavailableError as e:
            logger.error("%s", e)
            if not self._catalog_images:
                raise
        return self._catalog_images

    # --- Navigation ---

    async def navigate(self, direction: Direction, origin: Origin = Origin.LOCAL) -> NavigationResult | None:
        """Advance one step, broadcast the new index and crossfade to it.

        Timer ticks that arrive while another navigation is running are dropped.
        """
        if origin == Origin.TIMER and self._lock.locked():
            logger.debug("Navigation in progress, skipping timer tick")
            return None

        async with self._lock:
            result = self.sequencer.advance(direction)
            if result is None:
                return None
            await self._publish(
                EventType.NAVIGATION,
                {"action": Direction(direction).value, "index": result.index},
                origin,
            )
            await self._show(result)
            if origin != Origin.TIMER and self._timer is not None:
                self._restart_timer()
            return result

    async def apply_navigation(self, event: NavigationEvent) -> NavigationResult | None:
        """Remote navigation: the sender's index is authoritative."""
        async with self._lock:
            if event.action == "reset":
                self.sequencer.reset()
            previous = self.sequencer.current_index
            showing = self.renderer.showing_url
            result = self.sequencer.jump_to(event.index)
            if result is None:
                return None
            if result.index == previous and showing and showing == result.image.url:
                logger.debug("Already showing index %d", result.index)
                return result
            await self._show(result)
            if self._timer is not None:
                self._restart_timer()
            return result

    async def reset(self, origin: Origin = Origin.LOCAL) -> NavigationResult | None:
        """Start the current list over from a fresh derivation."""
        async with self._lock:
            self._clear_timer()
            self.sequencer.reset()
            result = await self._show_first()
            if result is not None:
                await self._publish(EventType.NAVIGATION, {"action": "reset", "index": result.index}, origin)
            self.start()
            return result

    # --- Play / pause ---

    async def pause(self, origin: Origin = Origin.LOCAL) -> None:
        if self.paused and self._timer is None:
            return
        self._clear_timer()
        self.paused = True
        if self.state != PlaybackState.STOPPED:
            self.state = PlaybackState.PAUSED
        logger.info("Slideshow paused")
        await self._publish(EventType.SLIDE_ACTION, {"action": "pause"}, origin)

    async def play(self, origin: Origin = Origin.LOCAL) -> None:
        if not self.paused and self._timer is not None:
            return
        self.paused = False
        if self.state != PlaybackState.STOPPED:
            self.state = PlaybackState.PLAYING
        self.start()
        logger.info("Slideshow playing")
        await self._publish(EventType.SLIDE_ACTION, {"action": "play"}, origin)

    async def toggle(self) -> None:
        if self.paused:
            await self.play()
        else:
            await self.pause()

    # --- Settings ---

    async def settings_changed(
        self,
        order: OrderingPolicy | None = None,
        interval_seconds: float | None = None,
        origin: Origin = Origin.LOCAL,
    ) -> None:
        if interval_seconds is not None and interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")

        async with self._lock:
            if order is not None:
                self.sequencer.set_policy(order)
            if interval_seconds is not None:
                self.interval_seconds = interval_seconds
            if self.preferences is not None and origin != Origin.STORAGE:
                self.preferences.update(order=order, transition_time=interval_seconds)
            if self._timer is not None:
                self._restart_timer()

        logger.info("Settings: order=%s interval=%.1fs", self.sequencer.policy.value, self.interval_seconds)
        await self._publish(
            EventType.SETTINGS_UPDATE,
            {"speed": self.interval_seconds, "order": self.sequencer.policy.value},
            origin,
        )

    # --- Direct play ---

    async def play_image(self, url: str, title: str, description: str = "", origin: Origin = Origin.LOCAL) -> bool:
        """Pin one image on screen and stay paused until playback resumes."""
        async with self._lock:
            self._clear_timer()
            self.paused = True
            self.state = PlaybackState.PAUSED

            index = self.sequencer.locate(url)
            if index is not None:
                shown = await self._show(self.sequencer.jump_to(index))
            else:
                pinned = SlideImage(url=url, title=title, description=description)
                shown = await self.renderer.crossfade_to(0, [pinned])

        await self._publish(
            EventType.PLAY_IMAGE,
            {"imageUrl": url, "title": title, "description": description},
            origin,
        )
        return shown

    async def play_select(
        self,
        images: Sequence[Any],
        speed: float | None = None,
        order: OrderingPolicy | None = None,
        origin: Origin = Origin.LOCAL,
    ) -> None:
        """Replace the working subset and restart playback from its first image."""
        selection = [img for img in images if isinstance(img, SlideImage)]
        selection += parse_images(img for img in images if not isinstance(img, SlideImage))

        async with self._lock:
            self._clear_timer()
            self.paused = False
            if speed is not None and speed > 0:
                self.interval_seconds = speed
            if order is not None:
                self.sequencer.set_policy(order)
            if self.preferences is not None:
                self.preferences.update(order=order, transition_time=speed if speed and speed > 0 else None)

            if selection:
                catalog = self._catalog_images
            else:
                logger.info("Empty selection, playing the full catalog")
                try:
                    catalog = await self.refresh_catalog()
                except CatalogUnavailableError:
                    self.renderer.show_message(ERROR_MESSAGE)
                    return

            self.sequencer.load(catalog, subset=selection)
            self.state = PlaybackState.PLAYING
            await self._show_first()
            self.start()

        logger.info("Playing selection of %d images", len(self.sequencer))
        await self._publish(
            EventType.PLAY_SELECT,
            {
                "images": [_image_dict(img) for img in selection],
                "speed": self.interval_seconds,
                "order": self.sequencer.policy.value,
            },
            origin,
        )

    # --- Remote events ---

    async def handle_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Apply an event received from the channel. Malformed events are dropped."""
        model = EVENT_MODELS.get(event_type)
        if model is None:
            logger.warning("Ignoring unknown event type: %s", event_type)
            return
        try:
            event = model.model_validate(data or {})
        except ValidationError as e:
            logger.warning("Dropping malformed %s event: %s", event_type, e.errors()[:1])
            return

        try:
            await self._dispatch(event)
        except Exception:
            logger.exception("Failed to apply %s event", event_type)

    async def _dispatch(self, event) -> None:
        if isinstance(event, NavigationEvent):
            await self.apply_navigation(event)
        elif isinstance(event, SlideActionEvent):
            if event.action == "play":
                await self.play(origin=Origin.REMOTE)
            elif event.action == "pause":
                await self.pause(origin=Origin.REMOTE)
            else:
                await self.navigate(Direction(event.action), origin=Origin.REMOTE)
        elif isinstance(event, SettingsUpdateEvent):
            await self.settings_changed(event.order, event.speed, origin=Origin.REMOTE)
        elif isinstance(event, PlayImageEvent):
            await self.play_image(event.image_url, event.title, event.description, origin=Origin.REMOTE)
        elif isinstance(event, PlaySelectEvent):
            await self.play_select(event.images, event.speed, event.order, origin=Origin.REMOTE)

    async def close(self) -> None:
        self._clear_timer()
        self.renderer.close()


def _image_dict(image: SlideImage) -> dict[str, Any]:
    return {
        "id": image.id,
        "url": image.url,
        "title": image.title,
        "description": image.description,
        "thumbnailUrl": image.thumbnail_url,
        "tags": [{"name": t.name, "color": t.color} for t in image.tags],
        "dateAdded": image.date_added,
    }
