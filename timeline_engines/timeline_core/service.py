"""
Timeline Store.

Single owner of scenes, layers, keyframes and motion tweens. Every mutation
validates first, mutates, then emits its events synchronously on the bus, so
listeners always observe a consistent store.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from pydantic import ValidationError

from timeline_engines.common.errors import (
    CircularReferenceError,
    DuplicateIdError,
    InvalidTweenError,
    NotFoundError,
    TimelineValidationError,
)
from timeline_engines.config.runtime_config import TimelineSettings, get_settings
from timeline_engines.event_bus import events as ev
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.event_bus.service import EventBus
from timeline_engines.interpolation.service import interpolate_properties
from timeline_engines.timeline_core.ids import IdGenerator, uuid_ids
from timeline_engines.timeline_core.models import (
    LAYER_COLORS,
    Keyframe,
    KeyframeCreate,
    KeyframeUpdate,
    Layer,
    LayerCreate,
    LayerRecord,
    LayerUpdate,
    ObjectState,
    Scene,
    TimelineDocument,
    TimelineState,
    Tween,
    TweenCreate,
    TweenUpdate,
)

logger = logging.getLogger(__name__)

EXACT_HIT_EPSILON = 0.001
KEYFRAME_TOLERANCE = 0.1

LayerSpec = Union[LayerCreate, Mapping[str, Any], None]
KeyframeSpec = Union[KeyframeCreate, Mapping[str, Any]]
TweenSpec = Union[TweenCreate, Mapping[str, Any]]


def _coerce(model_cls, spec):
    if spec is None:
        return model_cls()
    if isinstance(spec, model_cls):
        return spec
    return model_cls.model_validate(spec)


class TimelineStore:
    """
    In-memory entity store for one timeline.

    The working layer set is the current scene's layer map; switching scenes
    swaps which map the layer/keyframe/tween operations act on.
    """

    def __init__(
        self,
        bus: Optional[EventBus] = None,
        id_generator: Optional[IdGenerator] = None,
        settings: Optional[TimelineSettings] = None,
        scene_name: str = "Scene 1",
    ) -> None:
        self.bus = bus or EventBus()
        self.settings = settings or get_settings()
        self._ids = id_generator or uuid_ids
        first = Scene(id=self._ids("scene"), name=scene_name)
        self._scenes: Dict[str, Scene] = {first.id: first}
        self._current_scene_id = first.id
        self._state = TimelineState(
            duration=self.settings.default_duration,
            time_scale=self._clamp_time_scale(self.settings.default_time_scale),
            fps=self._clamp_fps(self.settings.default_fps),
        )

    # ------------------------------------------------------------------
    # Internals

    @property
    def _layers(self) -> Dict[str, Layer]:
        return self._scenes[self._current_scene_id].layers

    def _emit(self, event: TimelineEvent, payload) -> None:
        self.bus.emit(event, payload)

    def _layer_id_in_use(self, layer_id: str) -> bool:
        return any(layer_id in scene.layers for scene in self._scenes.values())

    def _clamp_time_scale(self, scale: float) -> float:
        return max(self.settings.min_time_scale, min(self.settings.max_time_scale, scale))

    def _clamp_fps(self, fps: float) -> float:
        return max(self.settings.min_fps, min(self.settings.max_fps, fps))

    def _get_keyframe(self, layer: Layer, keyframe_id: str) -> Keyframe:
        keyframe = layer.keyframes.get(keyframe_id)
        if keyframe is None:
            raise NotFoundError("keyframe", keyframe_id, scope=layer.id)
        return keyframe

    def _check_tween_order(self, layer: Layer, start_id: str, end_id: str) -> None:
        start = self._get_keyframe(layer, start_id)
        end = self._get_keyframe(layer, end_id)
        if start.time >= end.time:
            raise InvalidTweenError(
                f"Tween start keyframe {start_id} ({start.time}) must precede end keyframe {end_id} ({end.time})",
                {"start_keyframe_id": start_id, "end_keyframe_id": end_id},
            )

    def _selection_snapshot(self) -> List[str]:
        return sorted(self._state.selected_layer_ids)

    # ------------------------------------------------------------------
    # Queries

    @property
    def state(self) -> TimelineState:
        return self._state

    @property
    def current_time(self) -> float:
        return self._state.current_time

    @property
    def duration(self) -> float:
        return self._state.duration

    @property
    def time_scale(self) -> float:
        return self._state.time_scale

    @property
    def fps(self) -> float:
        return self._state.fps

    @property
    def current_scene(self) -> Scene:
        return self._scenes[self._current_scene_id]

    def get_scenes(self) -> List[Scene]:
        return list(self._scenes.values())

    def get_layers(self) -> List[Layer]:
        return list(self._layers.values())

    def get_layer(self, layer_id: str) -> Layer:
        layer = self._layers.get(layer_id)
        if layer is None:
            raise NotFoundError("layer", layer_id)
        return layer

    def has_layer(self, layer_id: str) -> bool:
        return layer_id in self._layers

    def get_keyframes(self, layer_id: str) -> List[Keyframe]:
        return self.get_layer(layer_id).sorted_keyframes()

    def get_tweens(self, layer_id: str) -> List[Tween]:
        return list(self.get_layer(layer_id).motion_tweens.values())

    def get_children(self, layer_id: str) -> List[Layer]:
        """Direct children, ordered by ``order`` then insertion."""
        children = [layer for layer in self._layers.values() if layer.parent_id == layer_id]
        return sorted(children, key=lambda layer: layer.order)

    def is_group(self, layer_id: str) -> bool:
        return any(layer.parent_id == layer_id for layer in self._layers.values())

    def get_ancestors(self, layer_id: str) -> List[str]:
        """
        Walk ``layer_id -> parent -> parent ...`` and return the ids visited,
        starting with ``layer_id`` itself. The walk is bounded by the layer
        count, so a corrupt graph cannot loop forever.
        """
        chain: List[str] = []
        current: Optional[str] = layer_id
        for _ in range(len(self._layers) + 1):
            if current is None or current in chain:
                break
            chain.append(current)
            layer = self._layers.get(current)
            current = layer.parent_id if layer else None
        return chain

    def get_selected_layer_ids(self) -> Set[str]:
        return set(self._state.selected_layer_ids)

    def get_selected_keyframe_ids(self) -> Dict[str, Set[str]]:
        return {layer_id: set(ids) for layer_id, ids in self._state.selected_keyframe_ids.items()}

    def get_keyframes_at_time(self, time: float, tolerance: float = KEYFRAME_TOLERANCE) -> List[Tuple[Layer, Keyframe]]:
        hits = []
        for layer in self._layers.values():
            for keyframe in layer.sorted_keyframes():
                if abs(keyframe.time - time) <= tolerance:
                    hits.append((layer, keyframe))
        return hits

    def get_layer_properties_at_time(self, layer: Layer, time: float) -> Dict[str, Any]:
        keyframes = layer.sorted_keyframes()
        prev: Optional[Keyframe] = None
        nxt: Optional[Keyframe] = None
        for keyframe in keyframes:
            if keyframe.time <= time:
                prev = keyframe
            else:
                nxt = keyframe
                break

        if prev is None:
            return {}
        if abs(prev.time - time) < EXACT_HIT_EPSILON:
            return dict(prev.properties)
        if nxt is not None:
            tween = layer.find_tween(prev.id, nxt.id)
            if tween is not None:
                progress = (time - prev.time) / (nxt.time - prev.time)
                return interpolate_properties(prev.properties, nxt.properties, progress, tween.easing_function)
        # hold at the last keyframe
        return dict(prev.properties)

    def get_objects_at_time(self, time: float) -> List[ObjectState]:
        """Resolve the properties of every visible layer at ``time``."""
        return [
            ObjectState(layer=layer, properties=self.get_layer_properties_at_time(layer, time))
            for layer in self._layers.values()
            if layer.visible
        ]

    # ------------------------------------------------------------------
    # Layers

    def add_layer(self, spec: LayerSpec = None) -> Layer:
        req = _coerce(LayerCreate, spec)
        layer_id = req.id or self._ids("layer")
        if self._layer_id_in_use(layer_id):
            raise DuplicateIdError("layer", layer_id)
        if req.parent_id is not None and req.parent_id not in self._layers:
            raise NotFoundError("layer", req.parent_id)

        count = len(self._layers)
        order = req.order
        if order is None:
            order = sum(1 for layer in self._layers.values() if layer.parent_id == req.parent_id)
        layer = Layer(
            id=layer_id,
            name=req.name or f"Layer {count + 1}",
            visible=req.visible,
            locked=req.locked,
            color=req.color or LAYER_COLORS[count % len(LAYER_COLORS)],
            order=order,
            parent_id=req.parent_id,
            is_expanded=req.is_expanded,
        )
        self._layers[layer.id] = layer
        self._emit(TimelineEvent.LAYER_ADDED, ev.LayerEvent(layer=layer))
        return layer

    def update_layer(self, layer_id: str, partial: Union[LayerUpdate, Mapping[str, Any]]) -> Layer:
        layer = self.get_layer(layer_id)
        req = _coerce(LayerUpdate, partial)
        changes = req.model_dump(exclude_unset=True)
        # only parent_id may be explicitly cleared
        changes = {k: v for k, v in changes.items() if v is not None or k == "parent_id"}

        if "parent_id" in changes and changes["parent_id"] != layer.parent_id:
            new_parent = changes["parent_id"]
            if new_parent is not None:
                if new_parent not in self._layers:
                    raise NotFoundError("layer", new_parent)
                if layer_id in self.get_ancestors(new_parent):
                    raise CircularReferenceError(layer_id, new_parent)

        previous = {key: getattr(layer, key) for key in changes}
        for key, value in changes.items():
            setattr(layer, key, value)

        self._emit(TimelineEvent.LAYER_UPDATED, ev.LayerUpdatedEvent(layer=layer, changes=changes))
        if "name" in changes and changes["name"] != previous["name"]:
            self._emit(
                TimelineEvent.LAYER_RENAMED,
                ev.LayerRenamedEvent(layer_id=layer_id, name=layer.name, previous_name=previous["name"]),
            )
        if "visible" in changes and changes["visible"] != previous["visible"]:
            self._emit(
                TimelineEvent.LAYER_VISIBILITY_CHANGED,
                ev.LayerVisibilityEvent(layer_id=layer_id, visible=layer.visible),
            )
        if "locked" in changes and changes["locked"] != previous["locked"]:
            self._emit(
                TimelineEvent.LAYER_LOCK_CHANGED,
                ev.LayerLockEvent(layer_id=layer_id, locked=layer.locked),
            )
        return layer

    def remove_layer(self, layer_id: str) -> bool:
        """
        Remove a layer with its keyframes and tweens.

        Children are not deleted: they are lifted to the removed layer's own
        parent so no ``parent_id`` is left dangling. Cascading deletes belong to
        the hierarchy manager.
        """
        layer = self._layers.get(layer_id)
        if layer is None:
            return False

        self.deselect_layer(layer_id)
        for keyframe_id in list(self._state.selected_keyframe_ids.get(layer_id, ())):
            self.deselect_keyframe(layer_id, keyframe_id)

        lifted = []
        for child in self.get_children(layer_id):
            child.parent_id = layer.parent_id
            lifted.append(child)

        del self._layers[layer_id]
        for child in lifted:
            self._emit(
                TimelineEvent.LAYER_UPDATED,
                ev.LayerUpdatedEvent(layer=child, changes={"parent_id": child.parent_id}),
            )
        self._emit(TimelineEvent.LAYER_REMOVED, ev.LayerRemovedEvent(layer_id=layer_id))
        return True

    def move_layer(self, layer_id: str, new_index: int) -> bool:
        """Reorder a layer among its siblings; ``order`` is renumbered 0..n-1."""
        layer = self.get_layer(layer_id)
        siblings = [s for s in self._layers.values() if s.parent_id == layer.parent_id]
        siblings.sort(key=lambda s: s.order)
        from_index = siblings.index(layer)
        to_index = max(0, min(len(siblings) - 1, new_index))
        if from_index == to_index:
            return False
        siblings.pop(from_index)
        siblings.insert(to_index, layer)
        for index, sibling in enumerate(siblings):
            sibling.order = index
        self._emit(
            TimelineEvent.LAYER_MOVED,
            ev.LayerMovedEvent(layer_id=layer_id, from_index=from_index, to_index=to_index),
        )
        return True

    # ------------------------------------------------------------------
    # Keyframes

    def add_keyframe(self, layer_id: str, spec: KeyframeSpec, extend_duration: bool = False) -> Keyframe:
        layer = self.get_layer(layer_id)
        req = _coerce(KeyframeCreate, spec)
        keyframe_id = req.id or self._ids("keyframe")
        if keyframe_id in layer.keyframes:
            raise DuplicateIdError("keyframe", keyframe_id)

        keyframe = Keyframe(id=keyframe_id, time=req.time, properties=dict(req.properties))
        layer.keyframes[keyframe.id] = keyframe
        if extend_duration:
            self.extend_duration_if_needed(keyframe.time)
        self._emit(TimelineEvent.KEYFRAME_ADDED, ev.KeyframeEvent(layer_id=layer_id, keyframe=keyframe))
        return keyframe

    def update_keyframe(
        self,
        layer_id: str,
        keyframe_id: str,
        partial: Union[KeyframeUpdate, Mapping[str, Any]],
        extend_duration: bool = False,
    ) -> Keyframe:
        layer = self.get_layer(layer_id)
        keyframe = self._get_keyframe(layer, keyframe_id)
        req = _coerce(KeyframeUpdate, partial)

        previous_time = keyframe.time
        if req.time is not None:
            keyframe.time = req.time
        if req.properties is not None:
            keyframe.properties = dict(req.properties)

        moved = keyframe.time != previous_time
        broken: List[str] = []
        if moved:
            for tween in list(layer.motion_tweens.values()):
                if keyframe_id not in (tween.start_keyframe_id, tween.end_keyframe_id):
                    continue
                start = layer.keyframes[tween.start_keyframe_id]
                end = layer.keyframes[tween.end_keyframe_id]
                if start.time >= end.time:
                    del layer.motion_tweens[tween.id]
                    broken.append(tween.id)
            if extend_duration:
                self.extend_duration_if_needed(keyframe.time)

        for tween_id in broken:
            logger.warning("Dropped tween %s on layer %s: keyframe %s moved past its partner", tween_id, layer_id, keyframe_id)
            self._emit(TimelineEvent.TWEEN_REMOVED, ev.TweenRemovedEvent(layer_id=layer_id, tween_id=tween_id))
        self._emit(TimelineEvent.KEYFRAME_UPDATED, ev.KeyframeEvent(layer_id=layer_id, keyframe=keyframe))
        if moved:
            self._emit(
                TimelineEvent.KEYFRAME_MOVED,
                ev.KeyframeMovedEvent(
                    layer_id=layer_id,
                    keyframe_id=keyframe_id,
                    time=keyframe.time,
                    previous_time=previous_time,
                ),
            )
        return keyframe

    def remove_keyframe(self, layer_id: str, keyframe_id: str) -> bool:
        layer = self.get_layer(layer_id)
        if keyframe_id not in layer.keyframes:
            return False

        self.deselect_keyframe(layer_id, keyframe_id)
        for tween in list(layer.motion_tweens.values()):
            if keyframe_id in (tween.start_keyframe_id, tween.end_keyframe_id):
                self.remove_motion_tween(layer_id, tween.id)

        del layer.keyframes[keyframe_id]
        self._emit(TimelineEvent.KEYFRAME_REMOVED, ev.KeyframeRemovedEvent(layer_id=layer_id, keyframe_id=keyframe_id))
        return True

    # ------------------------------------------------------------------
    # Motion tweens

    def add_motion_tween(self, layer_id: str, spec: TweenSpec) -> Tween:
        layer = self.get_layer(layer_id)
        req = _coerce(TweenCreate, spec)
        self._check_tween_order(layer, req.start_keyframe_id, req.end_keyframe_id)
        tween_id = req.id or self._ids("tween")
        if tween_id in layer.motion_tweens:
            raise DuplicateIdError("tween", tween_id)

        tween = Tween(
            id=tween_id,
            start_keyframe_id=req.start_keyframe_id,
            end_keyframe_id=req.end_keyframe_id,
            easing_function=req.easing_function,
            properties=dict(req.properties),
        )
        layer.motion_tweens[tween.id] = tween
        self._emit(TimelineEvent.TWEEN_ADDED, ev.TweenEvent(layer_id=layer_id, tween=tween))
        return tween

    def update_motion_tween(self, layer_id: str, tween_id: str, partial: Union[TweenUpdate, Mapping[str, Any]]) -> Tween:
        layer = self.get_layer(layer_id)
        tween = layer.motion_tweens.get(tween_id)
        if tween is None:
            raise NotFoundError("tween", tween_id, scope=layer_id)
        req = _coerce(TweenUpdate, partial)

        start_id = req.start_keyframe_id or tween.start_keyframe_id
        end_id = req.end_keyframe_id or tween.end_keyframe_id
        if (start_id, end_id) != (tween.start_keyframe_id, tween.end_keyframe_id):
            if start_id == end_id:
                raise InvalidTweenError("tween endpoints must be different keyframes")
            self._check_tween_order(layer, start_id, end_id)

        tween.start_keyframe_id = start_id
        tween.end_keyframe_id = end_id
        if req.easing_function is not None:
            tween.easing_function = req.easing_function
        if req.properties is not None:
            tween.properties = dict(req.properties)
        self._emit(TimelineEvent.TWEEN_UPDATED, ev.TweenEvent(layer_id=layer_id, tween=tween))
        return tween

    def remove_motion_tween(self, layer_id: str, tween_id: str) -> bool:
        layer = self.get_layer(layer_id)
        if layer.motion_tweens.pop(tween_id, None) is None:
            return False
        self._emit(TimelineEvent.TWEEN_REMOVED, ev.TweenRemovedEvent(layer_id=layer_id, tween_id=tween_id))
        return True

    # ------------------------------------------------------------------
    # Layer / keyframe selection

    def select_layer(self, layer_id: str, multi_select: bool = False) -> bool:
        self.get_layer(layer_id)
        if not multi_select:
            for other in sorted(self._state.selected_layer_ids - {layer_id}):
                self.deselect_layer(other)
        if layer_id in self._state.selected_layer_ids:
            return False
        self._state.selected_layer_ids.add(layer_id)
        self._emit(
            TimelineEvent.LAYER_SELECTED,
            ev.LayerSelectionEvent(layer_id=layer_id, selected_layer_ids=self._selection_snapshot()),
        )
        return True

    def deselect_layer(self, layer_id: str) -> bool:
        if layer_id not in self._state.selected_layer_ids:
            return False
        self._state.selected_layer_ids.discard(layer_id)
        self._emit(
            TimelineEvent.LAYER_DESELECTED,
            ev.LayerSelectionEvent(layer_id=layer_id, selected_layer_ids=self._selection_snapshot()),
        )
        return True

    def clear_layer_selection(self) -> None:
        for layer_id in sorted(self._state.selected_layer_ids):
            self.deselect_layer(layer_id)

    def select_keyframe(self, layer_id: str, keyframe_id: str, multi_select: bool = False) -> bool:
        layer = self.get_layer(layer_id)
        keyframe = self._get_keyframe(layer, keyframe_id)
        if not multi_select:
            for other_layer, ids in list(self._state.selected_keyframe_ids.items()):
                for other in sorted(ids):
                    if (other_layer, other) != (layer_id, keyframe_id):
                        self.deselect_keyframe(other_layer, other)
        selected = self._state.selected_keyframe_ids.setdefault(layer_id, set())
        if keyframe_id in selected:
            return False
        selected.add(keyframe_id)
        keyframe.is_selected = True
        self._emit(
            TimelineEvent.KEYFRAME_SELECTED,
            ev.KeyframeSelectionEvent(layer_id=layer_id, keyframe_id=keyframe_id),
        )
        return True

    def deselect_keyframe(self, layer_id: str, keyframe_id: str) -> bool:
        selected = self._state.selected_keyframe_ids.get(layer_id)
        if not selected or keyframe_id not in selected:
            return False
        selected.discard(keyframe_id)
        if not selected:
            del self._state.selected_keyframe_ids[layer_id]
        layer = self._layers.get(layer_id)
        if layer is not None and keyframe_id in layer.keyframes:
            layer.keyframes[keyframe_id].is_selected = False
        self._emit(
            TimelineEvent.KEYFRAME_DESELECTED,
            ev.KeyframeSelectionEvent(layer_id=layer_id, keyframe_id=keyframe_id),
        )
        return True

    def clear_keyframe_selection(self) -> None:
        for layer_id, ids in list(self._state.selected_keyframe_ids.items()):
            for keyframe_id in sorted(ids):
                self.deselect_keyframe(layer_id, keyframe_id)

    # ------------------------------------------------------------------
    # Time, duration, zoom

    def set_current_time(self, time: float, extend_duration: bool = False) -> float:
        if extend_duration:
            self.extend_duration_if_needed(time)
        previous = self._state.current_time
        self._state.current_time = max(0.0, min(self._state.duration, time))
        self._emit(
            TimelineEvent.TIME_CHANGED,
            ev.TimeChangedEvent(time=self._state.current_time, previous_time=previous),
        )
        return self._state.current_time

    def set_duration(self, duration: float) -> bool:
        duration = max(self.settings.min_duration, duration)
        previous = self._state.duration
        if duration == previous:
            return False
        self._state.duration = duration
        self._emit(
            TimelineEvent.DURATION_CHANGED,
            ev.DurationChangedEvent(duration=duration, previous_duration=previous),
        )
        if self._state.current_time > duration:
            self.set_current_time(duration)
        return True

    def extend_duration_if_needed(self, time: float, padding: Optional[float] = None) -> bool:
        """Grow duration to ``time + padding`` when it falls short; never shrinks."""
        if padding is None:
            padding = self.settings.extend_padding
        target = time + padding
        if target > self._state.duration:
            return self.set_duration(target)
        return False

    def set_time_scale(self, scale: float) -> float:
        scale = self._clamp_time_scale(scale)
        previous = self._state.time_scale
        if scale != previous:
            self._state.time_scale = scale
            self._emit(
                TimelineEvent.ZOOM_CHANGED,
                ev.ZoomChangedEvent(time_scale=scale, previous_time_scale=previous),
            )
        return scale

    def set_fps(self, fps: float) -> float:
        fps = self._clamp_fps(fps)
        previous = self._state.fps
        if fps != previous:
            self._state.fps = fps
            self._emit(TimelineEvent.FPS_CHANGED, ev.FpsChangedEvent(fps=fps, previous_fps=previous))
        return fps

    # ------------------------------------------------------------------
    # Scenes

    def add_scene(self, name: Optional[str] = None, scene_id: Optional[str] = None) -> Scene:
        scene_id = scene_id or self._ids("scene")
        if scene_id in self._scenes:
            raise DuplicateIdError("scene", scene_id)
        scene = Scene(id=scene_id, name=name or f"Scene {len(self._scenes) + 1}")
        self._scenes[scene.id] = scene
        self._emit(TimelineEvent.SCENE_ADDED, ev.SceneEvent(scene_id=scene.id, name=scene.name))
        return scene

    def rename_scene(self, scene_id: str, name: str) -> Scene:
        scene = self._scenes.get(scene_id)
        if scene is None:
            raise NotFoundError("scene", scene_id)
        scene.name = name
        self._emit(TimelineEvent.SCENE_RENAMED, ev.SceneEvent(scene_id=scene_id, name=name))
        return scene

    def select_scene(self, scene_id: str) -> bool:
        if scene_id not in self._scenes:
            raise NotFoundError("scene", scene_id)
        if scene_id == self._current_scene_id:
            return False
        self.clear_keyframe_selection()
        self.clear_layer_selection()
        previous = self._current_scene_id
        self._current_scene_id = scene_id
        self._emit(
            TimelineEvent.SCENE_SELECTED,
            ev.SceneSelectedEvent(scene_id=scene_id, previous_scene_id=previous),
        )
        return True

    def remove_scene(self, scene_id: str) -> bool:
        if scene_id not in self._scenes:
            raise NotFoundError("scene", scene_id)
        if len(self._scenes) == 1:
            raise TimelineValidationError("Cannot remove the last scene", {"scene_id": scene_id})
        if scene_id == self._current_scene_id:
            fallback = next(sid for sid in self._scenes if sid != scene_id)
            self.select_scene(fallback)
        del self._scenes[scene_id]
        self._emit(TimelineEvent.SCENE_REMOVED, ev.SceneRemovedEvent(scene_id=scene_id))
        return True

    # ------------------------------------------------------------------
    # Persistence

    def to_document(self) -> TimelineDocument:
        return TimelineDocument(
            layers=[LayerRecord.from_layer(layer) for layer in self._layers.values()],
            duration=self._state.duration,
            current_time=self._state.current_time,
            time_scale=self._state.time_scale,
            fps=self._state.fps,
        )

    def to_json(self) -> str:
        text = self.to_document().model_dump_json(by_alias=True)
        self._emit(
            TimelineEvent.DATA_EXPORTED,
            ev.DataEvent(scene_id=self._current_scene_id, layer_count=len(self._layers)),
        )
        return text

    def _validate_document(self, doc: TimelineDocument) -> Dict[str, Layer]:
        layers: Dict[str, Layer] = {}
        for record in doc.layers:
            if record.id in layers:
                raise TimelineValidationError(f"duplicate layer id {record.id}")
            other_scenes = [s for sid, s in self._scenes.items() if sid != self._current_scene_id]
            if any(record.id in scene.layers for scene in other_scenes):
                raise TimelineValidationError(f"layer id {record.id} is used by another scene")
            if len({kf.id for kf in record.keyframes}) != len(record.keyframes):
                raise TimelineValidationError(f"layer {record.id} has duplicate keyframe ids")
            if len({tw.id for tw in record.motion_tweens}) != len(record.motion_tweens):
                raise TimelineValidationError(f"layer {record.id} has duplicate tween ids")
            layers[record.id] = record.to_layer()

        for layer in layers.values():
            if layer.parent_id is not None and layer.parent_id not in layers:
                raise TimelineValidationError(f"layer {layer.id} references missing parent {layer.parent_id}")
            for tween in layer.motion_tweens.values():
                start = layer.keyframes.get(tween.start_keyframe_id)
                end = layer.keyframes.get(tween.end_keyframe_id)
                if start is None or end is None:
                    raise TimelineValidationError(f"tween {tween.id} references a keyframe outside layer {layer.id}")
                if start.time >= end.time:
                    raise TimelineValidationError(f"tween {tween.id} endpoints are out of order")

        # acyclic parent graph
        for layer in layers.values():
            seen = set()
            current: Optional[str] = layer.id
            while current is not None:
                if current in seen:
                    raise TimelineValidationError(f"layer {layer.id} is part of a parent cycle")
                seen.add(current)
                current = layers[current].parent_id
        return layers

    def from_json(self, text: str) -> None:
        """
        Replace the current scene's layers and the time state from JSON.

        Everything is validated before any state is touched; a failed import
        leaves the store as it was.
        """
        try:
            data = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise TimelineValidationError("Invalid JSON") from exc
        if not isinstance(data, dict):
            raise TimelineValidationError("timeline data must be a JSON object")
        for required in ("layers", "duration"):
            if required not in data:
                raise TimelineValidationError(f"missing {required} field")
        try:
            doc = TimelineDocument.model_validate(data)
        except ValidationError as exc:
            raise TimelineValidationError(f"invalid timeline data: {exc}") from exc
        layers = self._validate_document(doc)

        self.clear_keyframe_selection()
        self.clear_layer_selection()
        self.current_scene.layers = layers
        for layer in layers.values():
            for keyframe in sorted(layer.keyframes.values(), key=lambda kf: kf.id):
                if not keyframe.is_selected:
                    continue
                self._state.selected_keyframe_ids.setdefault(layer.id, set()).add(keyframe.id)
                self._emit(
                    TimelineEvent.KEYFRAME_SELECTED,
                    ev.KeyframeSelectionEvent(layer_id=layer.id, keyframe_id=keyframe.id),
                )

        duration = max(self.settings.min_duration, doc.duration)
        previous_duration = self._state.duration
        if duration != previous_duration:
            self._state.duration = duration
            self._emit(
                TimelineEvent.DURATION_CHANGED,
                ev.DurationChangedEvent(duration=duration, previous_duration=previous_duration),
            )
        current_time = max(0.0, min(doc.current_time, duration))
        previous_time = self._state.current_time
        if current_time != previous_time:
            self._state.current_time = current_time
            self._emit(
                TimelineEvent.TIME_CHANGED,
                ev.TimeChangedEvent(time=current_time, previous_time=previous_time),
            )
        self.set_time_scale(doc.time_scale)
        if doc.fps is not None:
            self.set_fps(doc.fps)
        self._emit(
            TimelineEvent.DATA_IMPORTED,
            ev.DataEvent(scene_id=self._current_scene_id, layer_count=len(layers)),
        )
