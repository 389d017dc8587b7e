"""Loading, validation and frame queries for the frame-addressed document."""
from __future__ import annotations

import json
import logging
from numbers import Real
from typing import Any, Iterator, List, Optional, Union

from pydantic import ValidationError

from timeline_engines.common.errors import NotFoundError, TimelineValidationError
from timeline_engines.frame_document.models import (
    FrameKeyframe,
    FrameLayer,
    FrameTimelineDocument,
    FrameType,
)

logger = logging.getLogger(__name__)


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and value > 0


def _check_layers(layers: Any) -> None:
    if not isinstance(layers, list):
        raise TimelineValidationError("layers must be an array")
    for layer in layers:
        if not isinstance(layer, dict):
            raise TimelineValidationError("layer must be an object")
        layer_id = layer.get("id")
        if not isinstance(layer_id, str) or not layer_id:
            raise TimelineValidationError("layer must have a valid id")
        if layer.get("children") is not None:
            _check_layers(layer["children"])


def validate_document(data: Any) -> FrameTimelineDocument:
    """Validate raw decoded JSON into a document; never fills in missing required fields."""
    if not isinstance(data, dict):
        raise TimelineValidationError("timeline data must be an object")
    if "version" not in data:
        raise TimelineValidationError("missing version field")
    if "settings" not in data:
        raise TimelineValidationError("missing settings field")
    if "layers" not in data:
        raise TimelineValidationError("missing layers field")
    settings = data["settings"]
    if not isinstance(settings, dict):
        raise TimelineValidationError("settings must be an object")
    if not _is_positive_number(settings.get("totalFrames")):
        raise TimelineValidationError("totalFrames must be a positive number")
    if not _is_positive_number(settings.get("frameRate")):
        raise TimelineValidationError("frameRate must be a positive number")
    _check_layers(data["layers"])
    try:
        return FrameTimelineDocument.model_validate(data)
    except ValidationError as exc:
        raise TimelineValidationError(f"invalid timeline data: {exc}") from exc


class FrameTimelineData:
    """Holder of one frame-addressed document."""

    def __init__(self, data: Optional[Union[FrameTimelineDocument, dict]] = None) -> None:
        self._doc = FrameTimelineDocument()
        if data is not None:
            self.load(data)

    def load(self, data: Union[FrameTimelineDocument, dict]) -> None:
        if isinstance(data, FrameTimelineDocument):
            self._doc = data.model_copy(deep=True)
        else:
            self._doc = FrameTimelineDocument.model_validate(data)

    def get_data(self) -> FrameTimelineDocument:
        return self._doc.model_copy(deep=True)

    def to_json(self) -> str:
        return self._doc.model_dump_json(by_alias=True, exclude_none=True)

    def from_json(self, text: str) -> None:
        try:
            raw = json.loads(text)
        except (TypeError, json.JSONDecodeError) as exc:
            raise TimelineValidationError("Invalid JSON") from exc
        self._doc = validate_document(raw)
        logger.debug("Loaded frame document with %s top-level layers", len(self._doc.layers))

    def get_duration(self) -> float:
        """Length in seconds."""
        settings = self._doc.settings
        return settings.total_frames / settings.frame_rate

    def iter_layers(self) -> Iterator[FrameLayer]:
        """Pre-order walk through folders."""
        stack = list(reversed(self._doc.layers))
        while stack:
            layer = stack.pop()
            yield layer
            if layer.children:
                stack.extend(reversed(layer.children))

    def get_layer(self, layer_id: str) -> FrameLayer:
        for layer in self.iter_layers():
            if layer.id == layer_id:
                return layer
        raise NotFoundError("layer", layer_id)

    def get_keyframes_at_frame(self, frame: int) -> List[str]:
        """Keyframe ids (``kf-<layerId>-<frame>``) sitting on ``frame``."""
        return [
            f"kf-{layer.id}-{frame}"
            for layer in self.iter_layers()
            if any(kf.frame == frame for kf in layer.keyframes)
        ]

    def get_frame_type(self, layer_id: str, frame: int) -> FrameType:
        layer = self.get_layer(layer_id)
        if any(kf.frame == frame for kf in layer.keyframes):
            return FrameType.KEYFRAME
        if any(tw.start_frame <= frame <= tw.end_frame for tw in layer.tweens):
            return FrameType.TWEEN
        previous: Optional[FrameKeyframe] = None
        for kf in sorted(layer.keyframes, key=lambda k: k.frame):
            if kf.frame > frame:
                break
            previous = kf
        if previous is None or previous.is_empty:
            return FrameType.EMPTY
        return FrameType.STANDARD
