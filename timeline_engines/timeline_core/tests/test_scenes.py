import pytest

from timeline_engines.common.errors import DuplicateIdError, NotFoundError, TimelineValidationError
from timeline_engines.config.runtime_config import TimelineSettings
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.logging.event_log import EventRecorder
from timeline_engines.timeline_core.ids import SequentialIds
from timeline_engines.timeline_core.service import TimelineStore


class TestScenes:

    @pytest.fixture
    def store(self):
        return TimelineStore(id_generator=SequentialIds(), settings=TimelineSettings())

    def test_starts_with_one_scene(self, store):
        assert [s.name for s in store.get_scenes()] == ["Scene 1"]
        assert store.current_scene.id == "scene-1"

    def test_select_scene_switches_working_set(self, store):
        layer = store.add_layer()
        store.select_layer(layer.id)
        scene = store.add_scene("Outro")
        recorder = EventRecorder(store.bus)

        assert store.select_scene(scene.id) is True
        assert store.get_layers() == []
        assert store.get_selected_layer_ids() == set()
        assert recorder.event_types() == [TimelineEvent.LAYER_DESELECTED, TimelineEvent.SCENE_SELECTED]
        assert store.select_scene(scene.id) is False

        store.select_scene("scene-1")
        assert [l.id for l in store.get_layers()] == [layer.id]

    def test_layer_ids_unique_across_scenes(self, store):
        store.add_layer({"id": "hero"})
        store.select_scene(store.add_scene().id)
        with pytest.raises(DuplicateIdError):
            store.add_layer({"id": "hero"})

    def test_rename_and_unknown_scene(self, store):
        store.rename_scene("scene-1", "Intro")
        assert store.current_scene.name == "Intro"
        with pytest.raises(NotFoundError):
            store.select_scene("scene-9")
        with pytest.raises(DuplicateIdError):
            store.add_scene("Again", scene_id="scene-1")

    def test_remove_scene(self, store):
        with pytest.raises(TimelineValidationError, match="last scene"):
            store.remove_scene("scene-1")
        second = store.add_scene("Second")
        assert store.remove_scene("scene-1") is True
        assert store.current_scene.id == second.id
        assert [s.id for s in store.get_scenes()] == [second.id]
