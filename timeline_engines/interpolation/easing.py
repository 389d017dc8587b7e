"""Easing functions for motion tweens.

Each function maps linear progress ``p`` in [0, 1] to eased progress.
"""
from __future__ import annotations

from typing import Callable, Dict, List

EasingFn = Callable[[float], float]

DEFAULT_EASING = "linear"


def linear(p: float) -> float:
    return p


def ease_in_quad(p: float) -> float:
    return p * p


def ease_out_quad(p: float) -> float:
    return p * (2 - p)


def ease_in_out_quad(p: float) -> float:
    return 2 * p * p if p < 0.5 else -1 + (4 - 2 * p) * p


def ease_in_cubic(p: float) -> float:
    return p ** 3


def ease_out_cubic(p: float) -> float:
    return (p - 1) ** 3 + 1


def ease_in_out_cubic(p: float) -> float:
    return 4 * p ** 3 if p < 0.5 else (p - 1) * (2 * p - 2) * (2 * p - 2) + 1


def ease_in_quart(p: float) -> float:
    return p ** 4


def ease_out_quart(p: float) -> float:
    return 1 - (p - 1) ** 4


def ease_in_out_quart(p: float) -> float:
    return 8 * p ** 4 if p < 0.5 else 1 - 8 * (p - 1) ** 4


def ease_in_quint(p: float) -> float:
    return p ** 5


def ease_out_quint(p: float) -> float:
    return 1 + (p - 1) ** 5


def ease_in_out_quint(p: float) -> float:
    return 16 * p ** 5 if p < 0.5 else 1 + 16 * (p - 1) ** 5


# Names match the ones tweens persist in their easingFunction field.
EASING_FUNCTIONS: Dict[str, EasingFn] = {
    "linear": linear,
    "easeInQuad": ease_in_quad,
    "easeOutQuad": ease_out_quad,
    "easeInOutQuad": ease_in_out_quad,
    "easeInCubic": ease_in_cubic,
    "easeOutCubic": ease_out_cubic,
    "easeInOutCubic": ease_in_out_cubic,
    "easeInQuart": ease_in_quart,
    "easeOutQuart": ease_out_quart,
    "easeInOutQuart": ease_in_out_quart,
    "easeInQuint": ease_in_quint,
    "easeOutQuint": ease_out_quint,
    "easeInOutQuint": ease_in_out_quint,
}


def get_easing_function(name: str | None) -> EasingFn:
    """Look up an easing function by name; unknown names fall back to linear."""
    if not name:
        return linear
    return EASING_FUNCTIONS.get(name, linear)


def list_easing_functions() -> List[str]:
    return list(EASING_FUNCTIONS.keys())


def apply_easing(progress: float, name: str | None = DEFAULT_EASING) -> float:
    """Clamp ``progress`` to [0, 1] and run it through the named easing."""
    progress = max(0.0, min(1.0, progress))
    return get_easing_function(name)(progress)
