"""Playback session: timer discipline, local and remote control."""

import asyncio
import random

from fakes import FakeCatalog, FakeChannel, FakeLoader, FakeScheduler, image
from slidecast.display.preferences import Preferences
from slidecast.display.renderer import EMPTY_MESSAGE, ERROR_MESSAGE, TransitionRenderer
from slidecast.display.sequencer import Direction, Sequencer
from slidecast.display.session import Origin, PlaybackSession, PlaybackState
from slidecast.schemas.slideshow import OrderingPolicy

CATALOG = [image(1, "apple"), image(2, "banana"), image(3, "cherry"), image(4, "damson")]


def build(policy=OrderingPolicy.ALPHABETICAL, loader=None, catalog=None, preferences=None):
    renderer = TransitionRenderer(loader or FakeLoader(), transition_seconds=0.01)
    sequencer = Sequencer(policy, rng=random.Random(3), alert=renderer.alert)
    return PlaybackSession(
        sequencer,
        renderer,
        channel=FakeChannel(),
        scheduler=FakeScheduler(),
        catalog=catalog,
        preferences=preferences,
        interval_seconds=3.0,
    )


async def started(**kwargs):
    session = build(**kwargs)
    await session.load_catalog(CATALOG)
    return session


# --- Timer discipline ---

def test_load_catalog_shows_first_image_and_arms_timer():
    async def scenario():
        session = await started()
        assert session.state == PlaybackState.PLAYING
        assert session.renderer.showing_url == "/images/1.jpg"
        assert session.scheduler.created == 1
        assert session.timer_active

    asyncio.run(scenario())


def test_start_is_idempotent():
    async def scenario():
        session = await started()
        session.start()
        session.start()
        assert session.scheduler.created == 1
        assert len(session.scheduler.live) == 1

    asyncio.run(scenario())


def test_pause_is_idempotent():
    async def scenario():
        session = await started()
        await session.pause()
        await session.pause()
        assert session.paused
        assert session.state == PlaybackState.PAUSED
        assert session.scheduler.cancelled == 1
        assert session.channel.of_type("slideAction") == [{"action": "pause"}]

    asyncio.run(scenario())


def test_start_does_nothing_while_paused():
    async def scenario():
        session = await started()
        await session.pause()
        session.start()
        assert not session.timer_active

        await session.play()
        assert session.timer_active
        assert session.state == PlaybackState.PLAYING
        assert session.channel.of_type("slideAction")[-1] == {"action": "play"}

    asyncio.run(scenario())


def test_never_more_than_one_live_timer():
    async def scenario():
        session = await started()
        ops = [
            session.pause,
            session.play,
            session.toggle,
            lambda: session.settings_changed(interval_seconds=2.0),
            lambda: session.settings_changed(order=OrderingPolicy.RANDOM),
            lambda: session.navigate(Direction.NEXT),
            session.reset,
        ]
        rng = random.Random(11)
        for _ in range(60):
            await rng.choice(ops)()
            session.start()
            scheduler = session.scheduler
            assert scheduler.created <= scheduler.cancelled + 1
            assert len(scheduler.live) <= 1

    asyncio.run(scenario())


def test_settings_change_replaces_live_timer():
    async def scenario():
        session = await started()
        await session.settings_changed(OrderingPolicy.GROUPS, 7.5)
        assert session.scheduler.cancelled == 1
        assert session.scheduler.created == 2
        assert session.scheduler.intervals[-1] == 7.5
        assert session.sequencer.policy == OrderingPolicy.GROUPS
        assert session.channel.of_type("settingsUpdate") == [{"speed": 7.5, "order": "groups"}]

    asyncio.run(scenario())


def test_settings_change_while_paused_does_not_start_timer():
    async def scenario():
        session = await started()
        await session.pause()
        await session.settings_changed(interval_seconds=5.0)
        assert not session.timer_active
        assert session.interval_seconds == 5.0

    asyncio.run(scenario())


def test_settings_change_persists_preferences(tmp_path):
    async def scenario():
        prefs = Preferences(tmp_path / "prefs.json")
        session = await started(preferences=prefs)
        await session.settings_changed(OrderingPolicy.RANDOM, 4.0)
        reloaded = Preferences.load(tmp_path / "prefs.json")
        assert reloaded.order == OrderingPolicy.RANDOM
        assert reloaded.transition_time == 4.0

    asyncio.run(scenario())


# --- Navigation ---

def test_manual_navigation_broadcasts_and_rearms():
    async def scenario():
        session = await started()
        result = await session.navigate(Direction.NEXT)
        assert result.image.title == "banana"
        assert session.channel.of_type("navigation") == [{"action": "next", "index": 1}]
        assert session.scheduler.created == 2
        assert session.renderer.showing_url == "/images/2.jpg"

    asyncio.run(scenario())


def test_timer_tick_broadcasts_without_rearming():
    async def scenario():
        session = await started()
        await session.scheduler.fire()
        assert session.sequencer.current.title == "banana"
        assert session.channel.of_type("navigation") == [{"action": "next", "index": 1}]
        assert session.scheduler.created == 1

    asyncio.run(scenario())


def test_timer_tick_dropped_while_navigation_in_flight():
    async def scenario():
        loader = FakeLoader()
        session = await started(loader=loader)
        loader.gate = asyncio.Event()

        manual = asyncio.create_task(session.navigate(Direction.NEXT))
        await asyncio.sleep(0)
        await session.scheduler.fire()

        loader.gate.set()
        await manual
        assert session.sequencer.current.title == "banana"
        assert len(session.channel.of_type("navigation")) == 1

    asyncio.run(scenario())


def test_timer_tick_errors_are_contained():
    async def scenario():
        session = await started()

        async def broken(*args, **kwargs):
            raise RuntimeError("boom")

        session.navigate = broken
        await session.scheduler.fire()
        assert session.timer_active

    asyncio.run(scenario())


def test_reset_broadcasts_reset():
    async def scenario():
        session = await started()
        await session.navigate(Direction.NEXT)
        await session.reset()
        assert session.sequencer.current_index == 0
        assert session.channel.of_type("navigation")[-1] == {"action": "reset", "index": 0}
        assert session.timer_active

    asyncio.run(scenario())


def test_failed_image_keeps_stale_image_and_advances_next_tick():
    async def scenario():
        loader = FakeLoader(failing={"/images/2.jpg"})
        session = await started(loader=loader)
        await session.scheduler.fire()
        assert session.renderer.showing_url == "/images/1.jpg"
        await session.scheduler.fire()
        assert session.renderer.showing_url == "/images/3.jpg"

    asyncio.run(scenario())


def test_empty_catalog_shows_message():
    async def scenario():
        session = build()
        await session.load_catalog([])
        assert session.state == PlaybackState.STOPPED
        assert session.renderer.current.title == EMPTY_MESSAGE
        assert not session.timer_active
        assert await session.navigate(Direction.NEXT) is None

    asyncio.run(scenario())


def test_groups_without_tags_alerts_user():
    async def scenario():
        session = await started(policy=OrderingPolicy.GROUPS)
        assert await session.navigate(Direction.NEXT) is None
        assert session.renderer.alert_message.startswith("No group tags available")
        assert session.channel.of_type("navigation") == []

    asyncio.run(scenario())


# --- Remote events ---

def test_remote_pause_clears_timer_without_rebroadcast():
    async def scenario():
        session = await started()
        await session.handle_event("slideAction", {"action": "pause"})
        assert session.paused
        assert not session.timer_active
        assert session.scheduler.cancelled == 1
        assert session.channel.published == []

        # a local pause on an already paused display changes nothing
        await session.pause()
        assert session.scheduler.cancelled == 1
        assert session.channel.published == []

    asyncio.run(scenario())


def test_remote_next_moves_without_rebroadcast():
    async def scenario():
        session = await started()
        await session.handle_event("slideAction", {"action": "next"})
        assert session.sequencer.current.title == "banana"
        assert session.channel.published == []

    asyncio.run(scenario())


def test_remote_navigation_jumps_to_index():
    async def scenario():
        session = await started()
        await session.handle_event("navigation", {"action": "next", "index": 2})
        assert session.sequencer.current_index == 2
        assert session.renderer.showing_url == "/images/3.jpg"
        swaps = session.renderer.swap_count

        await session.handle_event("navigation", {"action": "next", "index": 2})
        assert session.renderer.swap_count == swaps
        assert session.channel.published == []

    asyncio.run(scenario())


def test_remote_settings_update():
    async def scenario():
        session = await started()
        await session.handle_event("settingsUpdate", {"speed": 9, "order": "random"})
        assert session.interval_seconds == 9
        assert session.sequencer.policy == OrderingPolicy.RANDOM
        assert session.channel.published == []

    asyncio.run(scenario())


def test_malformed_remote_events_are_dropped():
    async def scenario():
        session = await started()
        await session.handle_event("navigation", {"action": "sideways", "index": 1})
        await session.handle_event("settingsUpdate", {"speed": -1, "order": "random"})
        await session.handle_event("mystery", {})
        assert session.sequencer.current_index == 0
        assert session.interval_seconds == 3.0

    asyncio.run(scenario())


# --- Direct play ---

def test_play_image_pins_and_pauses():
    async def scenario():
        session = await started()
        assert await session.play_image("/images/3.jpg", "cherry")
        assert session.paused
        assert not session.timer_active
        assert session.sequencer.current_index == 2
        assert session.channel.of_type("playImage") == [
            {"imageUrl": "/images/3.jpg", "title": "cherry", "description": ""}
        ]

        await session.handle_event("playImage", {"imageUrl": "/images/elsewhere.jpg", "title": "Else"})
        assert session.renderer.showing_url == "/images/elsewhere.jpg"
        assert session.sequencer.current_index == 2

        await session.play()
        assert session.timer_active

    asyncio.run(scenario())


def test_play_select_replaces_working_list():
    async def scenario():
        session = await started()
        await session.pause()
        selection = [
            {"id": 4, "url": "/images/4.jpg", "title": "damson"},
            {"id": 2, "url": "/images/2.jpg", "title": "banana"},
            {"url": "/images/nameless.jpg"},
        ]
        await session.handle_event("playSelect", {"images": selection, "speed": 2, "order": "alphabetical"})
        assert [i.id for i in session.sequencer.images] == [2, 4]
        assert not session.paused
        assert session.timer_active
        assert session.interval_seconds == 2
        assert session.renderer.showing_url == "/images/2.jpg"
        assert session.channel.published[-1][0] != "playSelect"

    asyncio.run(scenario())


def test_play_select_empty_falls_back_to_catalog():
    async def scenario():
        catalog = FakeCatalog(CATALOG)
        session = await started(catalog=catalog)
        await session.play_select([], order=OrderingPolicy.ALPHABETICAL)
        assert catalog.calls == 1
        assert len(session.sequencer) == 4
        assert session.channel.of_type("playSelect")[-1]["images"] == []

    asyncio.run(scenario())


def test_play_select_catalog_unavailable():
    async def scenario():
        session = build(catalog=FakeCatalog(fail=True))
        await session.play_select([])
        assert session.renderer.current.title == ERROR_MESSAGE

    asyncio.run(scenario())


def test_storage_origin_neither_broadcasts_nor_persists(tmp_path):
    async def scenario():
        prefs = Preferences(tmp_path / "prefs.json")
        session = await started(preferences=prefs)
        await session.settings_changed(OrderingPolicy.RANDOM, 6.0, origin=Origin.STORAGE)
        assert not (tmp_path / "prefs.json").exists()
        assert session.channel.published == []

    asyncio.run(scenario())
