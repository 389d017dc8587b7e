"""Synchronous typed publish/subscribe for timeline events."""
from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from timeline_engines.event_bus.events import EVENT_PAYLOADS, TimelineEvent

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
Unsubscribe = Callable[[], None]
EventName = Union[TimelineEvent, str]


class EventBus:
    """
    Ordered listener lists per event.

    ``emit`` dispatches over a snapshot of the listener list. A listener that
    raises is logged and skipped; the remaining listeners still run and the
    emitter never sees the exception.
    """

    def __init__(self) -> None:
        self._listeners: Dict[TimelineEvent, List[Tuple[int, Listener]]] = {}
        self._tokens = itertools.count()

    @staticmethod
    def _resolve(event: EventName) -> TimelineEvent:
        return event if isinstance(event, TimelineEvent) else TimelineEvent(event)

    def on(self, event: EventName, callback: Listener) -> Unsubscribe:
        name = self._resolve(event)
        token = next(self._tokens)
        self._listeners.setdefault(name, []).append((token, callback))

        def unsubscribe() -> None:
            entries = self._listeners.get(name)
            if not entries:
                return
            self._listeners[name] = [entry for entry in entries if entry[0] != token]

        return unsubscribe

    def once(self, event: EventName, callback: Listener) -> Unsubscribe:
        unsubscribe: Optional[Unsubscribe] = None

        def wrapper(payload: Any) -> None:
            if unsubscribe is not None:
                unsubscribe()
            callback(payload)

        unsubscribe = self.on(event, wrapper)
        return unsubscribe

    def off(self, event: EventName, callback: Listener) -> bool:
        """Remove the first registration of ``callback``; False if it was not registered."""
        name = self._resolve(event)
        entries = self._listeners.get(name, [])
        for index, (_, registered) in enumerate(entries):
            if registered == callback:
                self._listeners[name] = entries[:index] + entries[index + 1:]
                return True
        return False

    def emit(self, event: EventName, payload: BaseModel) -> None:
        name = self._resolve(event)
        expected = EVENT_PAYLOADS[name]
        if not isinstance(payload, expected):
            raise TypeError(
                f"{name.value} expects {expected.__name__}, got {type(payload).__name__}"
            )
        for _, callback in list(self._listeners.get(name, ())):
            try:
                callback(payload)
            except Exception as exc:
                logger.warning("Listener for %s failed: %s", name.value, exc, exc_info=True)

    def remove_all_listeners(self, event: Optional[EventName] = None) -> None:
        if event is None:
            self._listeners.clear()
            return
        self._listeners.pop(self._resolve(event), None)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners.get(self._resolve(event), ()))
