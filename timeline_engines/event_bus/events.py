"""
Closed event catalogue of the timeline.

Every ``TimelineEvent`` member maps to exactly one payload model in
``EVENT_PAYLOADS``; the bus refuses to dispatch a payload of any other type.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field

from timeline_engines.common.errors import ErrorDetail
from timeline_engines.timeline_core.models import Keyframe, Layer, Tween


class TimelineEvent(str, Enum):
    # layers
    LAYER_ADDED = "layer:added"
    LAYER_REMOVED = "layer:removed"
    LAYER_UPDATED = "layer:updated"
    LAYER_RENAMED = "layer:renamed"
    LAYER_MOVED = "layer:moved"
    LAYER_VISIBILITY_CHANGED = "layer:visibility-changed"
    LAYER_LOCK_CHANGED = "layer:lock-changed"
    LAYER_SELECTED = "layer:selected"
    LAYER_DESELECTED = "layer:deselected"
    # keyframes
    KEYFRAME_ADDED = "keyframe:added"
    KEYFRAME_REMOVED = "keyframe:removed"
    KEYFRAME_UPDATED = "keyframe:updated"
    KEYFRAME_MOVED = "keyframe:moved"
    KEYFRAME_SELECTED = "keyframe:selected"
    KEYFRAME_DESELECTED = "keyframe:deselected"
    # tweens
    TWEEN_ADDED = "tween:added"
    TWEEN_REMOVED = "tween:removed"
    TWEEN_UPDATED = "tween:updated"
    # groups
    GROUP_CREATED = "group:created"
    GROUP_DELETED = "group:deleted"
    GROUP_EXPANDED = "group:expanded"
    GROUP_COLLAPSED = "group:collapsed"
    # scenes
    SCENE_ADDED = "scene:added"
    SCENE_REMOVED = "scene:removed"
    SCENE_RENAMED = "scene:renamed"
    SCENE_SELECTED = "scene:selected"
    # time
    TIME_CHANGED = "time:changed"
    DURATION_CHANGED = "duration:changed"
    ZOOM_CHANGED = "zoom:changed"
    FPS_CHANGED = "fps:changed"
    # frame selection
    SELECTION_CHANGED = "selection:changed"
    # playback
    PLAY = "playback:play"
    PAUSE = "playback:pause"
    STOP = "playback:stop"
    PLAYBACK_LOOPED = "playback:looped"
    # data
    DATA_IMPORTED = "data:imported"
    DATA_EXPORTED = "data:exported"
    # undo/redo hooks
    UNDO = "history:undo"
    REDO = "history:redo"
    # diagnostics
    ERROR = "error"
    NOTIFICATION = "notification"


class LayerEvent(BaseModel):
    layer: Layer


class LayerUpdatedEvent(BaseModel):
    layer: Layer
    changes: Dict[str, Any] = Field(default_factory=dict)


class LayerRemovedEvent(BaseModel):
    layer_id: str


class LayerRenamedEvent(BaseModel):
    layer_id: str
    name: str
    previous_name: str


class LayerMovedEvent(BaseModel):
    layer_id: str
    from_index: int
    to_index: int


class LayerVisibilityEvent(BaseModel):
    layer_id: str
    visible: bool


class LayerLockEvent(BaseModel):
    layer_id: str
    locked: bool


class LayerSelectionEvent(BaseModel):
    layer_id: str
    selected_layer_ids: List[str] = Field(default_factory=list)


class KeyframeEvent(BaseModel):
    layer_id: str
    keyframe: Keyframe


class KeyframeRemovedEvent(BaseModel):
    layer_id: str
    keyframe_id: str


class KeyframeMovedEvent(BaseModel):
    layer_id: str
    keyframe_id: str
    time: float
    previous_time: float


class KeyframeSelectionEvent(BaseModel):
    layer_id: str
    keyframe_id: str


class TweenEvent(BaseModel):
    layer_id: str
    tween: Tween


class TweenRemovedEvent(BaseModel):
    layer_id: str
    tween_id: str


class GroupCreatedEvent(BaseModel):
    group_id: str
    child_ids: List[str] = Field(default_factory=list)


class GroupDeletedEvent(BaseModel):
    group_id: str
    preserve_children: bool


class GroupToggledEvent(BaseModel):
    group_id: str
    is_expanded: bool


class SceneEvent(BaseModel):
    scene_id: str
    name: str


class SceneRemovedEvent(BaseModel):
    scene_id: str


class SceneSelectedEvent(BaseModel):
    scene_id: str
    previous_scene_id: Optional[str] = None


class TimeChangedEvent(BaseModel):
    time: float
    previous_time: float


class DurationChangedEvent(BaseModel):
    duration: float
    previous_duration: float


class ZoomChangedEvent(BaseModel):
    time_scale: float
    previous_time_scale: float


class FpsChangedEvent(BaseModel):
    fps: float
    previous_fps: float


class SelectionChangedEvent(BaseModel):
    selected_frames: List[str] = Field(default_factory=list)
    selected_ids: List[str] = Field(default_factory=list)
    count: int = 0


class PlaybackEvent(BaseModel):
    time: float


class DataEvent(BaseModel):
    scene_id: str
    layer_count: int


class HistoryEvent(BaseModel):
    action: Optional[str] = None


class ErrorEvent(BaseModel):
    error: ErrorDetail


class NotificationEvent(BaseModel):
    message: str
    level: str = "info"


EVENT_PAYLOADS: Dict[TimelineEvent, Type[BaseModel]] = {
    TimelineEvent.LAYER_ADDED: LayerEvent,
    TimelineEvent.LAYER_REMOVED: LayerRemovedEvent,
    TimelineEvent.LAYER_UPDATED: LayerUpdatedEvent,
    TimelineEvent.LAYER_RENAMED: LayerRenamedEvent,
    TimelineEvent.LAYER_MOVED: LayerMovedEvent,
    TimelineEvent.LAYER_VISIBILITY_CHANGED: LayerVisibilityEvent,
    TimelineEvent.LAYER_LOCK_CHANGED: LayerLockEvent,
    TimelineEvent.LAYER_SELECTED: LayerSelectionEvent,
    TimelineEvent.LAYER_DESELECTED: LayerSelectionEvent,
    TimelineEvent.KEYFRAME_ADDED: KeyframeEvent,
    TimelineEvent.KEYFRAME_REMOVED: KeyframeRemovedEvent,
    TimelineEvent.KEYFRAME_UPDATED: KeyframeEvent,
    TimelineEvent.KEYFRAME_MOVED: KeyframeMovedEvent,
    TimelineEvent.KEYFRAME_SELECTED: KeyframeSelectionEvent,
    TimelineEvent.KEYFRAME_DESELECTED: KeyframeSelectionEvent,
    TimelineEvent.TWEEN_ADDED: TweenEvent,
    TimelineEvent.TWEEN_REMOVED: TweenRemovedEvent,
    TimelineEvent.TWEEN_UPDATED: TweenEvent,
    TimelineEvent.GROUP_CREATED: GroupCreatedEvent,
    TimelineEvent.GROUP_DELETED: GroupDeletedEvent,
    TimelineEvent.GROUP_EXPANDED: GroupToggledEvent,
    TimelineEvent.GROUP_COLLAPSED: GroupToggledEvent,
    TimelineEvent.SCENE_ADDED: SceneEvent,
    TimelineEvent.SCENE_REMOVED: SceneRemovedEvent,
    TimelineEvent.SCENE_RENAMED: SceneEvent,
    TimelineEvent.SCENE_SELECTED: SceneSelectedEvent,
    TimelineEvent.TIME_CHANGED: TimeChangedEvent,
    TimelineEvent.DURATION_CHANGED: DurationChangedEvent,
    TimelineEvent.ZOOM_CHANGED: ZoomChangedEvent,
    TimelineEvent.FPS_CHANGED: FpsChangedEvent,
    TimelineEvent.SELECTION_CHANGED: SelectionChangedEvent,
    TimelineEvent.PLAY: PlaybackEvent,
    TimelineEvent.PAUSE: PlaybackEvent,
    TimelineEvent.STOP: PlaybackEvent,
    TimelineEvent.PLAYBACK_LOOPED: PlaybackEvent,
    TimelineEvent.DATA_IMPORTED: DataEvent,
    TimelineEvent.DATA_EXPORTED: DataEvent,
    TimelineEvent.UNDO: HistoryEvent,
    TimelineEvent.REDO: HistoryEvent,
    TimelineEvent.ERROR: ErrorEvent,
    TimelineEvent.NOTIFICATION: NotificationEvent,
}
