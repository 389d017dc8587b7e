"""Playback clock and the schedulers that drive it."""
from __future__ import annotations

import asyncio
import itertools
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from timeline_engines.event_bus import events as ev
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.timeline_core.service import TimelineStore

logger = logging.getLogger(__name__)

EXTEND_WINDOW = 1.0


class Scheduler(Protocol):
    def time(self) -> float: ...
    def schedule(self, callback: Callable[[], None], delay: float) -> Any: ...
    def cancel(self, token: Any) -> None: ...


class ManualScheduler:
    """Host- or test-driven scheduler: time only moves on ``advance``."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._pending: Dict[int, Tuple[float, Callable[[], None]]] = {}
        self._tokens = itertools.count()

    def time(self) -> float:
        return self.now

    def schedule(self, callback: Callable[[], None], delay: float) -> int:
        token = next(self._tokens)
        self._pending[token] = (self.now + delay, callback)
        return token

    def cancel(self, token: int) -> None:
        self._pending.pop(token, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def advance(self, seconds: float) -> None:
        """Move time forward, running due callbacks in due order (including ones they schedule)."""
        target = self.now + seconds
        while self._pending:
            token, (due, callback) = min(self._pending.items(), key=lambda item: (item[1][0], item[0]))
            if due > target + 1e-9:
                break
            del self._pending[token]
            self.now = max(self.now, due)
            callback()
        self.now = target


class AsyncioFrameScheduler:
    """Real-time scheduler on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def schedule(self, callback: Callable[[], None], delay: float) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def cancel(self, token: asyncio.TimerHandle) -> None:
        token.cancel()


def default_scheduler() -> Scheduler:
    """Asyncio scheduler inside a running loop; a manual one for synchronous hosts."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.info("no running event loop; playback needs ManualScheduler.advance() to tick")
        return ManualScheduler()
    return AsyncioFrameScheduler(loop)


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackClock:
    """
    Advances the store's current time once per scheduled frame.

    With ``auto_extend`` the duration grows ahead of the playhead whenever it
    comes within a second of the end. Otherwise playback wraps to 0 at the end
    (``loop=True``) or pauses there.
    """

    def __init__(
        self,
        store: TimelineStore,
        scheduler: Optional[Scheduler] = None,
        interval: Optional[float] = None,
        auto_extend: bool = True,
        loop: bool = True,
    ) -> None:
        self.store = store
        self.scheduler: Scheduler = scheduler or default_scheduler()
        self.interval = interval if interval is not None else store.settings.playback_interval
        self.auto_extend = auto_extend
        self.loop = loop
        self._state = PlaybackState.STOPPED
        self._token: Any = None
        self._last: float = 0.0

    @property
    def state(self) -> PlaybackState:
        return self._state

    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    def _emit(self, event: TimelineEvent) -> None:
        self.store.bus.emit(event, ev.PlaybackEvent(time=self.store.current_time))

    def _cancel(self) -> None:
        if self._token is not None:
            self.scheduler.cancel(self._token)
            self._token = None

    def play(self) -> bool:
        if self.is_playing():
            return False
        self._state = PlaybackState.PLAYING
        self._last = self.scheduler.time()
        self._token = self.scheduler.schedule(self._tick, self.interval)
        logger.debug("Playback started at %s", self.store.current_time)
        self._emit(TimelineEvent.PLAY)
        return True

    def pause(self) -> bool:
        if not self.is_playing():
            return False
        self._cancel()
        self._state = PlaybackState.PAUSED
        logger.debug("Playback paused at %s", self.store.current_time)
        self._emit(TimelineEvent.PAUSE)
        return True

    def stop(self) -> None:
        self.pause()
        self.store.set_current_time(0)
        self._state = PlaybackState.STOPPED
        logger.debug("Playback stopped")
        self._emit(TimelineEvent.STOP)

    def toggle_play_pause(self) -> bool:
        """Returns True when playback is running afterwards."""
        if self.is_playing():
            self.pause()
            return False
        self.play()
        return True

    def _tick(self) -> None:
        self._token = None
        if not self.is_playing():
            return
        now = self.scheduler.time()
        delta = max(0.0, now - self._last)
        self._last = now

        store = self.store
        time = store.current_time + delta
        extended = False
        if self.auto_extend and time >= store.duration - EXTEND_WINDOW:
            extended = store.extend_duration_if_needed(time)
        if not extended and time >= store.duration:
            if not self.loop:
                store.set_current_time(store.duration, extend_duration=False)
                self.pause()
                return
            time = 0.0
            logger.debug("Playback looped")
            store.set_current_time(time, extend_duration=False)
            self._emit(TimelineEvent.PLAYBACK_LOOPED)
        else:
            store.set_current_time(time, extend_duration=False)

        if self.is_playing():
            self._token = self.scheduler.schedule(self._tick, self.interval)
