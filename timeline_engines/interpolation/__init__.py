from timeline_engines.interpolation.easing import (
    DEFAULT_EASING,
    EASING_FUNCTIONS,
    apply_easing,
    get_easing_function,
    list_easing_functions,
)
from timeline_engines.interpolation.service import interpolate_properties, interpolate_value
from timeline_engines.interpolation.values import ColorValue, NumberValue, OpaqueValue, PropertyValue, classify

__all__ = [
    "DEFAULT_EASING",
    "EASING_FUNCTIONS",
    "apply_easing",
    "get_easing_function",
    "list_easing_functions",
    "interpolate_properties",
    "interpolate_value",
    "ColorValue",
    "NumberValue",
    "OpaqueValue",
    "PropertyValue",
    "classify",
]
