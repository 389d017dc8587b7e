from datetime import datetime, timezone

from timeline_engines.config.runtime_config import TimelineSettings
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.logging.event_log import EventRecorder
from timeline_engines.timeline_core.ids import SequentialIds
from timeline_engines.timeline_core.service import TimelineStore


def test_records_events_in_order_with_snapshots():
    store = TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())
    fixed = datetime(2026, 1, 1, tzinfo=timezone.utc)
    recorder = EventRecorder(store.bus, clock=lambda: fixed)

    layer = store.add_layer({"name": "Ball"})
    store.update_layer(layer.id, {"name": "Renamed"})

    entries = recorder.entries
    assert [e.sequence for e in entries] == [0, 1, 2]
    assert entries[0].event_type == TimelineEvent.LAYER_ADDED
    # payload captured at emit time
    assert entries[0].payload["layer"]["name"] == "Ball"
    assert entries[0].created_at == fixed


def test_filtered_subscription_and_close():
    store = TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())
    recorder = EventRecorder(store.bus, events=[TimelineEvent.TIME_CHANGED])
    store.add_layer()
    store.set_current_time(3)
    assert recorder.event_types() == [TimelineEvent.TIME_CHANGED]

    recorder.close()
    store.set_current_time(4)
    assert len(recorder.entries) == 1
    assert store.bus.listener_count(TimelineEvent.TIME_CHANGED) == 0
