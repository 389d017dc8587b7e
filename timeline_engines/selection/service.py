"""Frame-addressed selection (``"<layerId>:<frame>"`` ids)."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from timeline_engines.common.errors import InvalidRangeError
from timeline_engines.event_bus import events as ev
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.event_bus.service import EventBus

logger = logging.getLogger(__name__)


def parse_frame_id(frame_id: str) -> Tuple[str, int]:
    """Split ``"<layerId>:<frame>"``; raises ValueError when malformed."""
    layer_id, sep, frame = frame_id.rpartition(":")
    if not sep or not layer_id:
        raise ValueError(f"frame id must look like '<layerId>:<frame>', got {frame_id!r}")
    try:
        return layer_id, int(frame)
    except ValueError as exc:
        raise ValueError(f"frame number in {frame_id!r} is not an integer") from exc


def make_frame_id(layer_id: str, frame: int) -> str:
    return f"{layer_id}:{frame}"


def to_keyframe_id(frame_id: str) -> str:
    layer_id, frame = parse_frame_id(frame_id)
    return f"kf-{layer_id}-{frame}"


class FrameSelectionManager:
    def __init__(self, bus: EventBus) -> None:
        self.bus = bus
        # dict keeps selection order
        self._selected: Dict[str, None] = {}
        self._last_selected: Optional[str] = None

    def _emit_changed(self) -> None:
        frames = self.get_selected_frames()
        self.bus.emit(
            TimelineEvent.SELECTION_CHANGED,
            ev.SelectionChangedEvent(
                selected_frames=frames,
                selected_ids=[to_keyframe_id(frame_id) for frame_id in frames],
                count=len(frames),
            ),
        )

    def select_frame(self, frame_id: str) -> None:
        parse_frame_id(frame_id)
        self._selected = {frame_id: None}
        self._last_selected = frame_id
        self._emit_changed()

    def deselect_frame(self, frame_id: str) -> None:
        self._selected.pop(frame_id, None)
        if self._last_selected == frame_id:
            self._last_selected = None
        self._emit_changed()

    def toggle_selection(self, frame_id: str) -> None:
        parse_frame_id(frame_id)
        if frame_id in self._selected:
            self.deselect_frame(frame_id)
            return
        self._selected[frame_id] = None
        self._last_selected = frame_id
        self._emit_changed()

    def select_range(self, start_frame_id: str, end_frame_id: str) -> bool:
        """
        Add every frame between the two ids (inclusive) on their shared layer.

        Ids on different layers are rejected: a warning is logged, an ``ERROR``
        event is published and the selection is left untouched.
        """
        start_layer, start_frame = parse_frame_id(start_frame_id)
        end_layer, end_frame = parse_frame_id(end_frame_id)
        if start_layer != end_layer:
            error = InvalidRangeError(start_frame_id, end_frame_id)
            logger.warning("%s (%s -> %s)", error, start_frame_id, end_frame_id)
            self.bus.emit(TimelineEvent.ERROR, ev.ErrorEvent(error=error.detail()))
            return False

        low, high = min(start_frame, end_frame), max(start_frame, end_frame)
        for frame in range(low, high + 1):
            self._selected[make_frame_id(start_layer, frame)] = None
        self._last_selected = end_frame_id
        self._emit_changed()
        return True

    def clear_selection(self) -> None:
        self._selected = {}
        self._last_selected = None
        self._emit_changed()

    def get_selected_frames(self) -> List[str]:
        return list(self._selected)

    def is_selected(self, frame_id: str) -> bool:
        return frame_id in self._selected

    def get_selection_count(self) -> int:
        return len(self._selected)

    def get_last_selected_frame(self) -> Optional[str]:
        return self._last_selected
