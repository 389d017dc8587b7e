"""
Timeline Core Models.

Entities of the animation timeline: scenes own layers, layers own keyframes and
motion tweens. Layers reference their parent by id only; ``children`` is always
derived from the store, never stored.

Persisted JSON keeps camelCase keys (``parentId``, ``motionTweens``,
``currentTime``), so every model accepts both the snake_case field name and its
camelCase alias.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from timeline_engines.interpolation.easing import DEFAULT_EASING

LAYER_COLORS = [
    "#FF5252",
    "#FFAB40",
    "#FFEB3B",
    "#66BB6A",
    "#42A5F5",
    "#7E57C2",
    "#EC407A",
    "#26A69A",
]


class TimelineModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class KeyframeType(str, Enum):
    """Display type of a keyframe."""
    SOLID = "solid"    # has properties
    HOLLOW = "hollow"  # empty property bag


class Keyframe(TimelineModel):
    """
    A property snapshot anchored at a time on a layer.
    """
    id: str
    time: float = Field(..., ge=0)
    properties: Dict[str, Any] = Field(default_factory=dict)
    is_selected: bool = False

    @property
    def type(self) -> KeyframeType:
        return KeyframeType.SOLID if self.properties else KeyframeType.HOLLOW


class Tween(TimelineModel):
    """
    An interpolation edge between two keyframes of the same layer.
    """
    id: str
    start_keyframe_id: str
    end_keyframe_id: str
    easing_function: str = DEFAULT_EASING
    properties: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_endpoints(self):
        if self.start_keyframe_id == self.end_keyframe_id:
            raise ValueError("tween endpoints must be different keyframes")
        return self


class Layer(TimelineModel):
    """
    A timeline row. A layer with at least one child acts as a group.
    """
    id: str
    name: str
    visible: bool = True
    locked: bool = False
    color: str = LAYER_COLORS[0]
    order: int = 0
    parent_id: Optional[str] = None
    is_expanded: bool = True
    keyframes: Dict[str, Keyframe] = Field(default_factory=dict)
    motion_tweens: Dict[str, Tween] = Field(default_factory=dict)

    def sorted_keyframes(self) -> List[Keyframe]:
        return sorted(self.keyframes.values(), key=lambda k: k.time)

    def find_tween(self, start_keyframe_id: str, end_keyframe_id: str) -> Optional[Tween]:
        for tween in self.motion_tweens.values():
            if tween.start_keyframe_id == start_keyframe_id and tween.end_keyframe_id == end_keyframe_id:
                return tween
        return None


class Scene(TimelineModel):
    """A named, independent set of layers."""
    id: str
    name: str
    layers: Dict[str, Layer] = Field(default_factory=dict)


# Creation / update requests

class LayerCreate(TimelineModel):
    id: Optional[str] = None
    name: Optional[str] = None
    visible: bool = True
    locked: bool = False
    color: Optional[str] = None
    order: Optional[int] = None
    parent_id: Optional[str] = None
    is_expanded: bool = True


class LayerUpdate(TimelineModel):
    name: Optional[str] = None
    visible: Optional[bool] = None
    locked: Optional[bool] = None
    color: Optional[str] = None
    order: Optional[int] = None
    parent_id: Optional[str] = None
    is_expanded: Optional[bool] = None


class KeyframeCreate(TimelineModel):
    id: Optional[str] = None
    time: float = Field(..., ge=0)
    properties: Dict[str, Any] = Field(default_factory=dict)


class KeyframeUpdate(TimelineModel):
    time: Optional[float] = Field(None, ge=0)
    properties: Optional[Dict[str, Any]] = None


class TweenCreate(TimelineModel):
    id: Optional[str] = None
    start_keyframe_id: str
    end_keyframe_id: str
    easing_function: str = DEFAULT_EASING
    properties: Dict[str, Any] = Field(default_factory=dict)


class TweenUpdate(TimelineModel):
    start_keyframe_id: Optional[str] = None
    end_keyframe_id: Optional[str] = None
    easing_function: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None


# Read models

class TimelineState(TimelineModel):
    """Playhead, zoom and selection state of the store."""
    current_time: float = 0.0
    duration: float
    time_scale: float = 1.0
    fps: float = 24.0
    selected_layer_ids: Set[str] = Field(default_factory=set)
    selected_keyframe_ids: Dict[str, Set[str]] = Field(default_factory=dict)


class ObjectState(BaseModel):
    """Resolved properties of one visible layer at a point in time."""
    layer: Layer
    properties: Dict[str, Any] = Field(default_factory=dict)


# Persisted flat document

class LayerRecord(TimelineModel):
    """Serialized layer: keyframes and tweens as ordered lists."""
    id: str
    name: str
    visible: bool = True
    locked: bool = False
    color: str = LAYER_COLORS[0]
    order: int = 0
    parent_id: Optional[str] = None
    is_expanded: bool = True
    keyframes: List[Keyframe] = Field(default_factory=list)
    motion_tweens: List[Tween] = Field(default_factory=list)

    @classmethod
    def from_layer(cls, layer: Layer) -> "LayerRecord":
        return cls(
            id=layer.id,
            name=layer.name,
            visible=layer.visible,
            locked=layer.locked,
            color=layer.color,
            order=layer.order,
            parent_id=layer.parent_id,
            is_expanded=layer.is_expanded,
            keyframes=[kf.model_copy(deep=True) for kf in layer.sorted_keyframes()],
            motion_tweens=[tw.model_copy(deep=True) for tw in layer.motion_tweens.values()],
        )

    def to_layer(self) -> Layer:
        return Layer(
            id=self.id,
            name=self.name,
            visible=self.visible,
            locked=self.locked,
            color=self.color,
            order=self.order,
            parent_id=self.parent_id,
            is_expanded=self.is_expanded,
            keyframes={kf.id: kf for kf in self.keyframes},
            motion_tweens={tw.id: tw for tw in self.motion_tweens},
        )


class TimelineDocument(TimelineModel):
    """
    Flat-hierarchy export format:
    {"layers": [...], "duration": 600, "currentTime": 0, "timeScale": 1, "fps": 24}
    """
    layers: List[LayerRecord]
    duration: float = Field(..., gt=0)
    current_time: float = Field(0.0, ge=0)
    time_scale: float = Field(1.0, gt=0)
    fps: Optional[float] = Field(None, gt=0)
