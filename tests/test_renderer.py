"""Crossfade renderer and HTTP image loader."""

import asyncio

import httpx
import pytest

from conftest import make_png
from fakes import FakeLoader, image
from slidecast.display.renderer import EMPTY_MESSAGE, HttpImageLoader, TransitionRenderer
from slidecast.exceptions import ImageLoadError

IMAGES = [image(1, "one"), image(2, "two"), image(3, "three")]


def test_crossfade_swaps_buffers_after_load():
    async def scenario():
        renderer = TransitionRenderer(FakeLoader(), transition_seconds=0.01)
        assert await renderer.crossfade_to(0, IMAGES)
        first = renderer.visible
        assert first.src == "/images/1.jpg"
        assert first.title == "one"

        await asyncio.sleep(0.03)
        assert renderer.current is first

        assert await renderer.crossfade_to(1, IMAGES)
        second = renderer.visible
        assert second is not first
        assert second.src == "/images/2.jpg"
        assert not first.visible
        assert renderer.swap_count == 2

    asyncio.run(scenario())


def test_failed_load_leaves_screen_untouched():
    async def scenario():
        loader = FakeLoader(failing={"/images/2.jpg"})
        renderer = TransitionRenderer(loader, transition_seconds=0.01)
        await renderer.crossfade_to(0, IMAGES)
        await asyncio.sleep(0.03)
        before = (renderer.visible.name, renderer.visible.src, renderer.next.src)

        assert await renderer.crossfade_to(1, IMAGES) is False
        assert (renderer.visible.name, renderer.visible.src, renderer.next.src) == before
        assert renderer.swap_count == 1

    asyncio.run(scenario())


def test_buffers_untouched_while_load_pending():
    async def scenario():
        loader = FakeLoader()
        renderer = TransitionRenderer(loader, transition_seconds=0.01)
        await renderer.crossfade_to(0, IMAGES)
        await asyncio.sleep(0.03)

        loader.gate = asyncio.Event()
        pending = asyncio.create_task(renderer.crossfade_to(2, IMAGES))
        await asyncio.sleep(0)
        assert renderer.visible.src == "/images/1.jpg"
        assert renderer.next.src == ""

        loader.gate.set()
        assert await pending
        assert renderer.visible.src == "/images/3.jpg"

    asyncio.run(scenario())


def test_index_is_normalized():
    async def scenario():
        renderer = TransitionRenderer(FakeLoader(), transition_seconds=0.01)
        assert await renderer.crossfade_to(4, IMAGES)
        assert renderer.visible.src == "/images/2.jpg"
        assert await renderer.crossfade_to(0, []) is False
        renderer.close()

    asyncio.run(scenario())


def test_stale_load_is_discarded():
    async def scenario():
        loader = FakeLoader()
        renderer = TransitionRenderer(loader, transition_seconds=0.01)
        loader.gates["/images/1.jpg"] = asyncio.Event()
        slow = asyncio.create_task(renderer.crossfade_to(0, IMAGES))
        await asyncio.sleep(0)

        assert await renderer.crossfade_to(1, IMAGES)

        loader.gates["/images/1.jpg"].set()
        assert await slow is False
        assert renderer.visible.src == "/images/2.jpg"
        renderer.close()

    asyncio.run(scenario())


def test_mid_animation_calls_keep_one_visible_buffer():
    async def scenario():
        renderer = TransitionRenderer(FakeLoader(), transition_seconds=0.02)
        await renderer.crossfade_to(0, IMAGES)
        await renderer.crossfade_to(1, IMAGES)
        await asyncio.sleep(0.05)
        visible = [b for b in (renderer.current, renderer.next) if b.visible]
        assert len(visible) == 1
        assert renderer.current is visible[0]
        assert renderer.current.src == "/images/2.jpg"

    asyncio.run(scenario())


def test_show_message_clears_images():
    async def scenario():
        renderer = TransitionRenderer(FakeLoader(), transition_seconds=0.01)
        await renderer.crossfade_to(0, IMAGES)
        renderer.show_message(EMPTY_MESSAGE)
        assert renderer.visible is None
        assert renderer.current.title == EMPTY_MESSAGE
        assert renderer.showing_url == ""

    asyncio.run(scenario())


# --- HTTP loader ---

def _transport(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/images/ok.png":
        return httpx.Response(200, content=make_png(40, 30))
    if request.url.path == "/images/garbage.png":
        return httpx.Response(200, content=b"definitely not an image")
    return httpx.Response(404)


def test_http_loader_decodes_image():
    async def scenario():
        async with httpx.AsyncClient(base_url="http://display.test", transport=httpx.MockTransport(_transport)) as c:
            loader = HttpImageLoader(c)
            assert await loader.load("/images/ok.png") == (40, 30)

            with pytest.raises(ImageLoadError):
                await loader.load("/images/missing.png")
            with pytest.raises(ImageLoadError):
                await loader.load("/images/garbage.png")

    asyncio.run(scenario())
