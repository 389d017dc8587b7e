"""Tagged property values.

Keyframe property bags hold plain JSON values. Before interpolation each value
is classified into one variant (number, color or opaque) so the interpolator
dispatches on ``kind`` instead of probing types at every step.
"""
from __future__ import annotations

import re
from typing import Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel

RGBA = Tuple[float, float, float, float]

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_RGB_RE = re.compile(
    r"^rgba?\(\s*(\d+(?:\.\d+)?|\.\d+)\s*,\s*(\d+(?:\.\d+)?|\.\d+)\s*,\s*(\d+(?:\.\d+)?|\.\d+)\s*(?:,\s*(\d+(?:\.\d+)?|\.\d+)\s*)?\)$",
    re.IGNORECASE,
)


class NumberValue(BaseModel):
    kind: Literal["number"] = "number"
    value: float


class ColorValue(BaseModel):
    kind: Literal["color"] = "color"
    r: float
    g: float
    b: float
    a: float = 1.0

    def channels(self) -> RGBA:
        return (self.r, self.g, self.b, self.a)

    def to_css(self) -> str:
        r, g, b = (int(round(c)) for c in (self.r, self.g, self.b))
        if self.a == 1:
            return f"rgb({r}, {g}, {b})"
        return f"rgba({r}, {g}, {b}, {round(self.a, 3)})"


class OpaqueValue(BaseModel):
    kind: Literal["opaque"] = "opaque"
    value: Any = None


PropertyValue = Union[NumberValue, ColorValue, OpaqueValue]


def parse_color(raw: str) -> Optional[RGBA]:
    """Parse ``#RGB``, ``#RRGGBB``, ``rgb()`` or ``rgba()``; None if unrecognised."""
    text = raw.strip()
    match = _HEX_RE.match(text)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return (
            float(int(digits[0:2], 16)),
            float(int(digits[2:4], 16)),
            float(int(digits[4:6], 16)),
            1.0,
        )
    match = _RGB_RE.match(text)
    if match:
        r, g, b, a = match.groups()
        channels = [float(r), float(g), float(b)]
        if any(c > 255 for c in channels):
            return None
        alpha = float(a) if a is not None else 1.0
        if alpha > 1:
            return None
        return (channels[0], channels[1], channels[2], alpha)
    return None


def classify(raw: Any) -> PropertyValue:
    # bool is an int subclass but never animates numerically
    if isinstance(raw, bool):
        return OpaqueValue(value=raw)
    if isinstance(raw, (int, float)):
        return NumberValue(value=float(raw))
    if isinstance(raw, str):
        rgba = parse_color(raw)
        if rgba is not None:
            r, g, b, a = rgba
            return ColorValue(r=r, g=g, b=b, a=a)
    return OpaqueValue(value=raw)
