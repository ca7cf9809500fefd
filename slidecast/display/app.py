"""Display client runtime: wires catalog, preferences, channel and session."""

import asyncio
import logging
import signal

import httpx

from slidecast.display.catalog import CatalogClient
from slidecast.display.channel import WebSocketChannel
from slidecast.display.config import DisplaySettings
from slidecast.display.preferences import Preferences, StoredPreferences
from slidecast.display.renderer import ERROR_MESSAGE, LOADING_MESSAGE, HttpImageLoader, TransitionRenderer
from slidecast.display.sequencer import Sequencer
from slidecast.display.session import Origin, PlaybackSession
from slidecast.exceptions import CatalogUnavailableError

logger = logging.getLogger(__name__)


class DisplayClient:
    """One display device: fetches the catalog, plays it and follows remote events."""

    def __init__(self, config: DisplaySettings):
        self.config = config
        self.session: PlaybackSession | None = None
        self._stopping = asyncio.Event()

    def build_session(self, http: httpx.AsyncClient, channel: WebSocketChannel) -> PlaybackSession:
        defaults = StoredPreferences(order=self.config.default_order, transition_time=self.config.default_interval)
        prefs = Preferences.load(self.config.preferences_path, defaults)
        renderer = TransitionRenderer(HttpImageLoader(http), self.config.transition_seconds)
        sequencer = Sequencer(prefs.order, alert=renderer.alert)
        return PlaybackSession(
            sequencer,
            renderer,
            channel=channel,
            catalog=CatalogClient(http),
            preferences=prefs,
            interval_seconds=prefs.transition_time,
        )

    async def run(self) -> None:
        channel = WebSocketChannel(self.config.ws_url)
        async with httpx.AsyncClient(
            base_url=self.config.server_url, timeout=self.config.request_timeout
        ) as http:
            session = self.build_session(http, channel)
            self.session = session

            session.renderer.show_message(LOADING_MESSAGE)
            try:
                images = await session.refresh_catalog()
            except CatalogUnavailableError:
                session.renderer.show_message(ERROR_MESSAGE)
            else:
                await session.load_catalog(images)

            watcher = asyncio.create_task(self._watch_preferences(session))
            follower = asyncio.create_task(self._follow_channel(channel, session))
            stopper = asyncio.create_task(self._stopping.wait())
            try:
                await asyncio.wait({follower, stopper}, return_when=asyncio.FIRST_COMPLETED)
                if follower.done():
                    follower.result()
            finally:
                for task in (watcher, follower, stopper):
                    task.cancel()
                await asyncio.gather(watcher, follower, stopper, return_exceptions=True)
                await session.close()
                await channel.close()
            logger.info("Display client stopped")

    def install_signal_handlers(self) -> None:
        """Stop cleanly on SIGINT and SIGTERM. Must run inside the event loop."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError, ValueError):
                # Windows loops and non-main threads have no signal support
                logger.debug("Cannot handle %s here; relying on KeyboardInterrupt", sig.name)
                return

    def stop(self) -> None:
        """Ask `run()` to close the session and channel and return."""
        self._stopping.set()

    async def _follow_channel(self, channel: WebSocketChannel, session: PlaybackSession) -> None:
        """Apply remote events, reconnecting with exponential backoff."""
        delay = self.config.reconnect_initial_delay
        while not self._stopping.is_set():
            try:
                await channel.connect()
            except (OSError, asyncio.TimeoutError) as e:
                logger.warning("Channel connect failed: %s (retrying in %.0fs)", e, delay)
            except Exception as e:
                logger.warning("Channel handshake failed: %s (retrying in %.0fs)", e, delay)
            else:
                delay = self.config.reconnect_initial_delay
                async for event_type, data in channel.events():
                    await session.handle_event(event_type, data)
                    if self._stopping.is_set():
                        return
                logger.info("Channel disconnected, reconnecting in %.0fs", delay)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            delay = min(delay * self.config.reconnect_multiplier, self.config.reconnect_max_delay)

    async def _watch_preferences(self, session: PlaybackSession) -> None:
        """Apply edits made to the preferences file while running."""
        prefs = session.preferences
        while True:
            await asyncio.sleep(self.config.preferences_poll_seconds)
            if prefs is None or not prefs.reload_if_changed():
                continue
            logger.info("Preferences changed on disk")
            try:
                await session.settings_changed(prefs.order, prefs.transition_time, origin=Origin.STORAGE)
            except ValueError as e:
                logger.warning("Ignoring preferences change: %s", e)
