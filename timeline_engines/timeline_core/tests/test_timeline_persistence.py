"""
Tests for flat JSON export/import.
"""

import json

import pytest

from timeline_engines.common.errors import TimelineValidationError
from timeline_engines.config.runtime_config import TimelineSettings
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.logging.event_log import EventRecorder
from timeline_engines.timeline_core.ids import SequentialIds
from timeline_engines.timeline_core.service import TimelineStore


def make_store():
    return TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())


@pytest.fixture
def populated():
    store = make_store()
    group = store.add_layer({"name": "Group"})
    ball = store.add_layer({"name": "Ball", "parent_id": group.id})
    k0 = store.add_keyframe(ball.id, {"time": 0, "properties": {"x": 0, "fill": "#fff"}})
    k1 = store.add_keyframe(ball.id, {"time": 4, "properties": {"x": 80}})
    store.add_motion_tween(ball.id, {"start_keyframe_id": k0.id, "end_keyframe_id": k1.id, "easing_function": "easeOutCubic"})
    store.select_keyframe(ball.id, k1.id)
    store.set_duration(700)
    store.set_current_time(12)
    store.set_time_scale(2)
    return store


def test_json_uses_camel_case(populated):
    data = json.loads(populated.to_json())
    assert set(data) == {"layers", "duration", "currentTime", "timeScale", "fps"}
    assert data["currentTime"] == 12
    ball = data["layers"][1]
    assert ball["parentId"] == data["layers"][0]["id"]
    assert len(ball["motionTweens"]) == 1
    assert ball["motionTweens"][0]["easingFunction"] == "easeOutCubic"


def test_round_trip(populated):
    text = populated.to_json()
    restored = make_store()
    recorder = EventRecorder(restored.bus)
    restored.from_json(text)

    assert restored.to_document() == populated.to_document()
    assert restored.current_time == 12
    assert restored.duration == 700
    assert restored.time_scale == 2
    ball = restored.get_layers()[1]
    assert restored.get_selected_keyframe_ids() == {ball.id: {"keyframe-2"}}
    assert recorder.event_types() == [
        TimelineEvent.KEYFRAME_SELECTED,
        TimelineEvent.DURATION_CHANGED,
        TimelineEvent.TIME_CHANGED,
        TimelineEvent.ZOOM_CHANGED,
        TimelineEvent.DATA_IMPORTED,
    ]
    selected = recorder.of_type(TimelineEvent.KEYFRAME_SELECTED)[0]
    assert selected.payload == {"layer_id": ball.id, "keyframe_id": "keyframe-2"}


def test_export_emits_event(populated):
    recorder = EventRecorder(populated.bus)
    populated.to_json()
    assert recorder.of_type(TimelineEvent.DATA_EXPORTED)[0].payload["layer_count"] == 2


@pytest.mark.parametrize(
    "text, message",
    [
        ("{ invalid json }", "Invalid JSON"),
        ("[]", "must be a JSON object"),
        ('{"duration": 10}', "missing layers field"),
        ('{"layers": []}', "missing duration field"),
        ('{"layers": [], "duration": -1}', "invalid timeline data"),
        ('{"layers": [{"name": "no id"}], "duration": 10}', "invalid timeline data"),
    ],
)
def test_malformed_input_rejected(text, message):
    store = make_store()
    with pytest.raises(TimelineValidationError, match=message):
        store.from_json(text)


def _doc(layers):
    return json.dumps({"layers": layers, "duration": 10, "currentTime": 0, "timeScale": 1})


def test_failed_import_leaves_store_untouched(populated):
    before = populated.to_document()
    bad = _doc(
        [
            {
                "id": "l",
                "name": "L",
                "keyframes": [{"id": "k0", "time": 0}],
                "motionTweens": [{"id": "t", "startKeyframeId": "k0", "endKeyframeId": "gone"}],
            }
        ]
    )
    with pytest.raises(TimelineValidationError, match="outside layer"):
        populated.from_json(bad)
    assert populated.to_document() == before


def test_parent_cycle_rejected():
    store = make_store()
    cyclic = _doc(
        [
            {"id": "a", "name": "A", "parentId": "b"},
            {"id": "b", "name": "B", "parentId": "a"},
        ]
    )
    with pytest.raises(TimelineValidationError, match="cycle"):
        store.from_json(cyclic)


def test_missing_parent_rejected():
    store = make_store()
    with pytest.raises(TimelineValidationError, match="missing parent"):
        store.from_json(_doc([{"id": "a", "name": "A", "parentId": "zz"}]))


def test_out_of_order_tween_rejected():
    store = make_store()
    doc = _doc(
        [
            {
                "id": "l",
                "name": "L",
                "keyframes": [{"id": "k0", "time": 5}, {"id": "k1", "time": 1}],
                "motionTweens": [{"id": "t", "startKeyframeId": "k0", "endKeyframeId": "k1"}],
            }
        ]
    )
    with pytest.raises(TimelineValidationError, match="out of order"):
        store.from_json(doc)


def test_current_time_clamped_to_duration():
    store = make_store()
    store.from_json(json.dumps({"layers": [], "duration": 5, "currentTime": 9}))
    assert store.current_time == 5


def test_import_deselects_previous_selection_through_events():
    store = make_store()
    layer = store.add_layer({"name": "A"})
    keyframe = store.add_keyframe(layer.id, {"time": 0, "properties": {"x": 1}})
    store.select_layer(layer.id)
    store.select_keyframe(layer.id, keyframe.id)
    recorder = EventRecorder(store.bus)

    store.from_json('{"layers": [], "duration": 10}')

    assert recorder.event_types() == [
        TimelineEvent.KEYFRAME_DESELECTED,
        TimelineEvent.LAYER_DESELECTED,
        TimelineEvent.DURATION_CHANGED,
        TimelineEvent.DATA_IMPORTED,
    ]
    assert recorder.of_type(TimelineEvent.LAYER_DESELECTED)[0].payload["layer_id"] == layer.id
    assert store.get_selected_layer_ids() == set()
    assert store.get_selected_keyframe_ids() == {}


def test_failed_import_keeps_selection():
    store = make_store()
    layer = store.add_layer({"name": "A"})
    store.select_layer(layer.id)
    recorder = EventRecorder(store.bus)
    with pytest.raises(TimelineValidationError):
        store.from_json('{"layers": []}')
    assert store.get_selected_layer_ids() == {layer.id}
    assert recorder.event_types() == []
