"""Gesture math for synthetic input: drag paths, modifier masks, wheel deltas.

Pure functions only; the controller turns their output into
``Input.dispatchMouseEvent`` / ``Input.dispatchKeyEvent`` calls.
"""
from typing import Iterable, NamedTuple

from ..errors import InvalidArguments

DRAG_STEPS = 20

DIRECTIONS = ("up", "down", "left", "right")

# CDP Input modifier bits
ALT = 1
CTRL = 2
META = 4
SHIFT = 8

MODIFIER_BITS = {
    "Alt": ALT,
    "Ctrl": CTRL,
    "Cmd": META,
    "Meta": META,
    "Shift": SHIFT,
}


class GestureStep(NamedTuple):
    x: float
    y: float


def interpolate(
    start: tuple[float, float],
    end: tuple[float, float],
    steps: int = DRAG_STEPS,
) -> list[GestureStep]:
    """Linear path from *start* to *end*, excluding the start point.

    The last step is exactly *end*. Listeners that need continuous movement
    (drag handles, sliders) see *steps* intermediate moves instead of one jump.
    """
    if steps < 1:
        raise InvalidArguments(f"steps must be >= 1, got {steps}")
    sx, sy = start
    ex, ey = end
    return [
        GestureStep(sx + (ex - sx) * (i / steps), sy + (ey - sy) * (i / steps))
        for i in range(1, steps + 1)
    ]


def modifier_mask(modifiers: Iterable[str] | None) -> int:
    """OR together the CDP bits for modifier names (Alt, Ctrl, Cmd/Meta, Shift)."""
    mask = 0
    for name in modifiers or ():
        try:
            mask |= MODIFIER_BITS[name]
        except KeyError:
            raise InvalidArguments(
                f"Unknown modifier {name!r}; expected one of {sorted(MODIFIER_BITS)}"
            ) from None
    return mask


def wheel_delta(direction: str, amount: float) -> tuple[float, float]:
    """Map a scroll direction to a ``(deltaX, deltaY)`` wheel vector."""
    if direction == "up":
        return 0, -amount
    if direction == "down":
        return 0, amount
    if direction == "left":
        return -amount, 0
    if direction == "right":
        return amount, 0
    raise InvalidArguments(
        f"Invalid scroll direction {direction!r}; expected one of {', '.join(DIRECTIONS)}"
    )


def viewport_center(width: float, height: float) -> GestureStep:
    return GestureStep(int(width // 2), int(height // 2))
