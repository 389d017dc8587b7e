"""Interpolation of keyframe property bags."""
from __future__ import annotations

from typing import Any, Dict

from timeline_engines.interpolation.easing import DEFAULT_EASING, apply_easing
from timeline_engines.interpolation.values import ColorValue, NumberValue, classify


def lerp(start: float, end: float, q: float) -> float:
    return start + (end - start) * q


def interpolate_color(start: ColorValue, end: ColorValue, q: float) -> str:
    r, g, b, a = (lerp(s, e, q) for s, e in zip(start.channels(), end.channels()))
    return ColorValue(r=r, g=g, b=b, a=a).to_css()


def interpolate_value(start: Any, end: Any, q: float) -> Any:
    """Blend two raw property values at eased progress ``q``."""
    s = classify(start)
    e = classify(end)
    if isinstance(s, NumberValue) and isinstance(e, NumberValue):
        return lerp(s.value, e.value, q)
    if isinstance(s, ColorValue) and isinstance(e, ColorValue):
        return interpolate_color(s, e, q)
    # Mixed or opaque values step over at the halfway mark.
    return start if q < 0.5 else end


def interpolate_properties(
    start: Dict[str, Any],
    end: Dict[str, Any],
    progress: float,
    easing_function: str = DEFAULT_EASING,
) -> Dict[str, Any]:
    """
    Interpolate between two property bags.

    Args:
        start: Properties of the earlier keyframe
        end: Properties of the later keyframe
        progress: Linear progress between the keyframes (clamped to [0, 1])
        easing_function: Name of the easing to apply to ``progress``

    Returns:
        New dict over the union of keys. Keys present on one side only keep
        that side's value.
    """
    q = apply_easing(progress, easing_function)
    result: Dict[str, Any] = {}
    for key in list(start.keys()) + [k for k in end.keys() if k not in start]:
        if key in start and key in end:
            result[key] = interpolate_value(start[key], end[key], q)
        elif key in start:
            result[key] = start[key]
        else:
            result[key] = end[key]
    return result
