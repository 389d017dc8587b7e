"""
Frame-addressed timeline document.

{
  "version": "1.0.0",
  "settings": {"totalFrames": 100, "frameRate": 24, "frameWidth": 15, "rowHeight": 30},
  "layers": [{"id": "...", "type": "layer|folder", "keyframes": [...], "tweens": [...], "children": [...]}]
}
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_VERSION = "1.0.0"
DEFAULT_TOTAL_FRAMES = 100
DEFAULT_FRAME_RATE = 24.0
DEFAULT_FRAME_WIDTH = 15
DEFAULT_ROW_HEIGHT = 30


class FrameModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrameType(str, Enum):
    EMPTY = "empty"        # no content
    STANDARD = "standard"  # holds the previous keyframe
    KEYFRAME = "keyframe"
    TWEEN = "tween"        # inside a tween span


class LayerKind(str, Enum):
    LAYER = "layer"
    FOLDER = "folder"


class TweenKind(str, Enum):
    MOTION = "motion"
    SHAPE = "shape"


class FrameSettings(FrameModel):
    total_frames: int = Field(DEFAULT_TOTAL_FRAMES, gt=0)
    frame_rate: float = Field(DEFAULT_FRAME_RATE, gt=0)
    frame_width: int = Field(DEFAULT_FRAME_WIDTH, gt=0)
    row_height: int = Field(DEFAULT_ROW_HEIGHT, gt=0)
    move_playhead_on_frame_click: bool = True


class FrameKeyframe(FrameModel):
    frame: int = Field(..., ge=1)
    is_empty: bool = False


class FrameTween(FrameModel):
    start_frame: int = Field(..., ge=1)
    end_frame: int = Field(..., ge=1)
    type: TweenKind = TweenKind.MOTION

    @model_validator(mode="after")
    def validate_span(self):
        if self.start_frame >= self.end_frame:
            raise ValueError("tween startFrame must be before endFrame")
        return self


class FrameLayer(FrameModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    type: LayerKind = LayerKind.LAYER
    visible: bool = True
    locked: bool = False
    keyframes: List[FrameKeyframe] = Field(default_factory=list)
    tweens: List[FrameTween] = Field(default_factory=list)
    children: Optional[List["FrameLayer"]] = None


class FrameTimelineDocument(FrameModel):
    version: str = DEFAULT_VERSION
    settings: FrameSettings = Field(default_factory=FrameSettings)
    layers: List[FrameLayer] = Field(default_factory=list)


FrameLayer.model_rebuild()
