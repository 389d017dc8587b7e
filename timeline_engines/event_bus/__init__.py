from timeline_engines.event_bus.events import EVENT_PAYLOADS, TimelineEvent
from timeline_engines.event_bus.service import EventBus

__all__ = ["EVENT_PAYLOADS", "EventBus", "TimelineEvent"]
