"""Tests for gesture math: interpolation, modifier masks, wheel deltas."""
import pytest

from devtools_bridge.errors import InvalidArguments
from devtools_bridge.human.gestures import (
    DRAG_STEPS,
    GestureStep,
    interpolate,
    modifier_mask,
    viewport_center,
    wheel_delta,
)


def test_interpolate_default_steps_end_exactly_at_target():
    path = interpolate((0, 0), (100, 100))
    assert len(path) == DRAG_STEPS == 20
    assert path[0] == GestureStep(5.0, 5.0)
    assert path[-1] == GestureStep(100.0, 100.0)


def test_interpolate_is_monotonic():
    path = interpolate((10, 200), (90, 20), steps=8)
    xs = [p.x for p in path]
    ys = [p.y for p in path]
    assert xs == sorted(xs)
    assert ys == sorted(ys, reverse=True)


def test_interpolate_rejects_zero_steps():
    with pytest.raises(InvalidArguments):
        interpolate((0, 0), (1, 1), steps=0)


def test_modifier_mask_bits():
    assert modifier_mask([]) == 0
    assert modifier_mask(None) == 0
    assert modifier_mask(["Alt"]) == 1
    assert modifier_mask(["Ctrl", "Shift"]) == 10
    assert modifier_mask(["Cmd"]) == modifier_mask(["Meta"]) == 4
    assert modifier_mask(["Alt", "Ctrl", "Meta", "Shift"]) == 15


def test_modifier_mask_duplicates_are_idempotent():
    assert modifier_mask(["Cmd", "Meta", "Cmd"]) == 4


def test_modifier_mask_unknown_name():
    with pytest.raises(InvalidArguments, match="Hyper"):
        modifier_mask(["Hyper"])


@pytest.mark.parametrize("direction,expected", [
    ("up", (0, -300)),
    ("down", (0, 300)),
    ("left", (-300, 0)),
    ("right", (300, 0)),
])
def test_wheel_delta(direction, expected):
    assert wheel_delta(direction, 300) == expected


def test_wheel_delta_invalid_direction():
    with pytest.raises(InvalidArguments):
        wheel_delta("sideways", 100)


def test_viewport_center_floors():
    assert viewport_center(1281, 721) == GestureStep(640, 360)
