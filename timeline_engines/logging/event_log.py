"""Event log entries recorded off the timeline bus (audit trail / undo hook)."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.event_bus.service import EventBus, Unsubscribe


class EventLogEntry(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    sequence: int
    event_type: TimelineEvent
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventRecorder:
    """
    Subscribes to the bus and keeps every event, in emission order.

    Payloads are stored as JSON-safe dumps taken at emit time, so later
    mutations of the live entities do not rewrite history.
    """

    def __init__(
        self,
        bus: EventBus,
        events: Optional[Iterable[TimelineEvent]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._bus = bus
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entries: List[EventLogEntry] = []
        self._unsubscribers: List[Unsubscribe] = []
        for event in events or list(TimelineEvent):
            self._unsubscribers.append(bus.on(event, self._make_listener(event)))

    def _make_listener(self, event: TimelineEvent) -> Callable[[BaseModel], None]:
        def record(payload: BaseModel) -> None:
            self._entries.append(
                EventLogEntry(
                    sequence=len(self._entries),
                    event_type=event,
                    payload=payload.model_dump(mode="json"),
                    created_at=self._clock(),
                )
            )

        return record

    @property
    def entries(self) -> List[EventLogEntry]:
        return list(self._entries)

    def event_types(self) -> List[TimelineEvent]:
        return [entry.event_type for entry in self._entries]

    def of_type(self, event: TimelineEvent) -> List[EventLogEntry]:
        return [entry for entry in self._entries if entry.event_type == event]

    def clear(self) -> None:
        self._entries.clear()

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
