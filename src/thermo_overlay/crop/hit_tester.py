"""
Hit testing for crop handles.

Pure geometric helpers deciding which gesture a pointer-down should start,
with no dependency on Qt events or widget state.
"""

from __future__ import annotations

import math
from typing import Optional

from ..config import HANDLE_HIT_PADDING
from .engine import GestureAction, Point

ViewRect = tuple[float, float, float, float]


class HitTester:
    """Map a pointer position onto a crop gesture."""

    def __init__(self, hit_padding: float = HANDLE_HIT_PADDING) -> None:
        """Initialize hit tester.

        Parameters
        ----------
        hit_padding:
            Distance threshold for detecting corner hits, in viewport pixels.
        """
        self._hit_padding = float(hit_padding)

    def test(self, point: Point, view_rect: ViewRect) -> Optional[GestureAction]:
        """Return the gesture for *point*, or ``None`` when it misses the box.

        Parameters
        ----------
        point:
            The pointer position in viewport coordinates.
        view_rect:
            ``(left, top, right, bottom)`` of the crop box in viewport coordinates.
        """
        px, py = float(point[0]), float(point[1])
        left, top, right, bottom = view_rect

        # Corners take priority so handles stay grabbable on small boxes.
        corners = (
            (GestureAction.RESIZE_NW, left, top),
            (GestureAction.RESIZE_NE, right, top),
            (GestureAction.RESIZE_SE, right, bottom),
            (GestureAction.RESIZE_SW, left, bottom),
        )
        for action, cx, cy in corners:
            if math.hypot(px - cx, py - cy) <= self._hit_padding:
                return action

        if left <= px <= right and top <= py <= bottom:
            return GestureAction.MOVE
        return None
