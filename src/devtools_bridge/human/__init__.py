"""human: gesture synthesis helpers for continuous, human-like input."""
from .gestures import (  # noqa: F401
    DRAG_STEPS,
    DIRECTIONS,
    GestureStep,
    interpolate,
    modifier_mask,
    wheel_delta,
    viewport_center,
)
