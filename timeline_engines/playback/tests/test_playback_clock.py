"""
Tests for the playback clock.
"""

import asyncio

import pytest

from timeline_engines.config.runtime_config import TimelineSettings
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.logging.event_log import EventRecorder
from timeline_engines.playback.service import (
    AsyncioFrameScheduler,
    ManualScheduler,
    PlaybackClock,
    PlaybackState,
    default_scheduler,
)
from timeline_engines.timeline_core.ids import SequentialIds
from timeline_engines.timeline_core.service import TimelineStore

FRAME = 1 / 60


class TestPlaybackClock:

    @pytest.fixture
    def store(self):
        return TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())

    @pytest.fixture
    def scheduler(self):
        return ManualScheduler()

    @pytest.fixture
    def clock(self, store, scheduler):
        return PlaybackClock(store, scheduler, interval=FRAME)

    def test_play_advances_time(self, store, scheduler, clock):
        recorder = EventRecorder(store.bus)
        assert clock.play() is True
        assert clock.play() is False
        scheduler.advance(0.5)
        assert store.current_time == pytest.approx(0.5)
        assert clock.state == PlaybackState.PLAYING
        assert recorder.event_types().count(TimelineEvent.PLAY) == 1

    def test_pause_keeps_time(self, store, scheduler, clock):
        clock.play()
        scheduler.advance(0.25)
        assert clock.pause() is True
        assert scheduler.pending == 0
        scheduler.advance(1.0)
        assert store.current_time == pytest.approx(0.25)
        assert clock.pause() is False

    def test_resume_does_not_count_paused_time(self, store, scheduler, clock):
        clock.play()
        scheduler.advance(0.25)
        clock.pause()
        scheduler.advance(5)
        clock.play()
        scheduler.advance(0.25)
        assert store.current_time == pytest.approx(0.5)

    def test_stop_resets(self, store, scheduler, clock):
        recorder = EventRecorder(store.bus)
        clock.play()
        scheduler.advance(0.5)
        clock.stop()
        assert store.current_time == 0
        assert clock.state == PlaybackState.STOPPED
        types = recorder.event_types()
        assert types.index(TimelineEvent.PAUSE) < types.index(TimelineEvent.STOP)

    def test_toggle(self, clock):
        assert clock.toggle_play_pause() is True
        assert clock.is_playing()
        assert clock.toggle_play_pause() is False
        assert clock.state == PlaybackState.PAUSED

    def test_auto_extends_near_the_end(self, store, scheduler, clock):
        store.set_duration(5)
        store.set_current_time(4.5)
        clock.play()
        scheduler.advance(0.5)
        assert store.current_time == pytest.approx(5.0)
        assert store.duration > store.current_time + 9
        assert clock.is_playing()

    def test_loops_without_auto_extend(self, store, scheduler):
        recorder = EventRecorder(store.bus)
        clock = PlaybackClock(store, scheduler, interval=FRAME, auto_extend=False)
        store.set_duration(1)
        store.set_current_time(0.99)
        clock.play()
        scheduler.advance(FRAME)
        assert store.current_time == 0
        assert store.duration == 1
        assert TimelineEvent.PLAYBACK_LOOPED in recorder.event_types()
        assert clock.is_playing()

    def test_stops_at_end_without_loop(self, store, scheduler):
        clock = PlaybackClock(store, scheduler, interval=FRAME, auto_extend=False, loop=False)
        store.set_duration(1)
        store.set_current_time(0.99)
        clock.play()
        scheduler.advance(FRAME)
        assert store.current_time == 1
        assert clock.state == PlaybackState.PAUSED

    def test_broken_listener_does_not_halt_playback(self, store, scheduler, clock):
        def broken(_payload):
            raise RuntimeError("boom")

        store.bus.on(TimelineEvent.TIME_CHANGED, broken)
        clock.play()
        scheduler.advance(0.1)
        assert store.current_time == pytest.approx(0.1)


def test_asyncio_scheduler_drives_clock():
    async def run():
        store = TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())
        clock = PlaybackClock(store, AsyncioFrameScheduler(), interval=0.01)
        clock.play()
        await asyncio.sleep(0.1)
        clock.pause()
        return store.current_time

    assert asyncio.run(run()) > 0


def test_default_scheduler_without_running_loop():
    store = TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())
    clock = PlaybackClock(store, interval=FRAME)
    assert isinstance(clock.scheduler, ManualScheduler)
    clock.play()
    clock.scheduler.advance(0.5)
    assert store.current_time == pytest.approx(0.5)


def test_default_scheduler_inside_running_loop():
    async def run():
        return default_scheduler()

    assert isinstance(asyncio.run(run()), AsyncioFrameScheduler)
