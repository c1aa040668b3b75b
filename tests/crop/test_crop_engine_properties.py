"""Randomised invariant checks for crop gestures."""

import random

import pytest

from thermo_overlay.crop.engine import ContainerBox, GestureAction, begin_gesture, update_gesture
from thermo_overlay.crop.geometry import NormalisedRect


def _random_rect(rng: random.Random) -> NormalisedRect:
    w = rng.uniform(10.0, 100.0)
    h = rng.uniform(10.0, 100.0)
    return NormalisedRect(rng.uniform(0.0, 100.0 - w), rng.uniform(0.0, 100.0 - h), w, h)


def _random_gesture(seed: int):
    rng = random.Random(seed)
    start = _random_rect(rng)
    action = rng.choice(list(GestureAction))
    anchor = (rng.uniform(-500, 2500), rng.uniform(-500, 2500))
    pos = (rng.uniform(-3000, 3000), rng.uniform(-3000, 3000))
    box = ContainerBox.from_size(rng.uniform(1, 2000), rng.uniform(1, 2000))
    session = begin_gesture(anchor, action, start)
    return start, action, update_gesture(session, pos, box)


@pytest.mark.parametrize("seed", range(300))
def test_every_gesture_preserves_rect_invariants(seed):
    _start, _action, rect = _random_gesture(seed)
    assert rect.is_valid(), rect


@pytest.mark.parametrize("seed", range(300))
def test_gestures_only_touch_their_own_edges(seed):
    start, action, rect = _random_gesture(seed)

    if action is GestureAction.MOVE:
        assert rect.w == start.w
        assert rect.h == start.h
        return

    edges = action.edges
    if "e" in edges:
        assert rect.x == start.x
    if "w" in edges:
        # West resize moves x and w together around a fixed east edge.
        assert rect.right == pytest.approx(start.right)
    if "s" in edges:
        assert rect.y == start.y
    if "n" in edges:
        assert rect.bottom == pytest.approx(start.bottom)
