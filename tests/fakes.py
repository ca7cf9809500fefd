"""In-memory stand-ins for the display client's I/O edges."""

import asyncio

from slidecast.display.catalog import SlideImage, TagInfo
from slidecast.exceptions import CatalogUnavailableError, ImageLoadError


def image(id, title, *tags, url=None):
    return SlideImage(
        id=id,
        url=url or f"/images/{id}.jpg",
        title=title,
        tags=tuple(TagInfo(name=t, color="#cccccc") for t in tags),
    )


class FakeLoader:
    """Succeeds for every url except those in `failing`. Loads can be held with `gate`."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.loaded = []
        self.gate: asyncio.Event | None = None
        self.gates: dict[str, asyncio.Event] = {}

    async def load(self, url):
        gate = self.gates.get(url) or self.gate
        if gate is not None:
            await gate.wait()
        if url in self.failing:
            raise ImageLoadError(url, "boom")
        self.loaded.append(url)
        return (640, 480)


class FakeChannel:
    def __init__(self):
        self.published = []

    async def publish(self, event_type, data):
        self.published.append((event_type, data))

    def of_type(self, event_type):
        return [data for t, data in self.published if t == event_type]


class FakeScheduler:
    """Records timer creation and cancellation; ticks only when told to."""

    def __init__(self):
        self.created = 0
        self.cancelled = 0
        self.live = set()
        self._callbacks = {}
        self.intervals = []

    def create(self, callback, seconds):
        self.created += 1
        handle = self.created
        self.live.add(handle)
        self._callbacks[handle] = callback
        self.intervals.append(seconds)
        return handle

    def cancel(self, handle):
        self.cancelled += 1
        self.live.discard(handle)

    async def fire(self):
        """Run the callback of the single live timer."""
        assert len(self.live) == 1, f"expected one live timer, found {len(self.live)}"
        await self._callbacks[next(iter(self.live))]()


class FakeCatalog:
    def __init__(self, images=(), fail=False):
        self.images = list(images)
        self.fail = fail
        self.calls = 0

    async def fetch_images(self):
        self.calls += 1
        if self.fail:
            raise CatalogUnavailableError("server down")
        return list(self.images)
