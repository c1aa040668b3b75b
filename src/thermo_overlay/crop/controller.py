"""
Crop interaction controller.

Sits between a view and the pure gesture engine. It keeps the current
rectangle and the single active gesture session, which doubles as the
pointer-capture reference: while a session exists every pointer event is
routed to it, whatever element the pointer is over.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Union

from ..config import FULL_EXTENT
from ..errors import InvalidArgumentError
from .engine import (
    ContainerBox,
    CropEngineState,
    GestureAction,
    Phase,
    Point,
    PointerCancel,
    PointerDown,
    PointerMove,
    PointerUp,
    reduce,
)
from .geometry import NormalisedRect
from .hit_tester import HitTester, ViewRect

_LOGGER = logging.getLogger(__name__)


class CropInteractionController:
    """Drive crop gestures from raw pointer input."""

    def __init__(
        self,
        *,
        container_provider: Callable[[], ContainerBox],
        on_crop_changed: Callable[[NormalisedRect], None] | None = None,
        on_capture: Callable[[], None] | None = None,
        on_release: Callable[[], None] | None = None,
        hit_tester: HitTester | None = None,
    ) -> None:
        """Initialize the controller.

        Parameters
        ----------
        container_provider:
            Callable returning the current on-screen box of the image.
        on_crop_changed:
            Called with the new rectangle whenever a gesture changes it.
        on_capture, on_release:
            Called when a gesture starts or ends so the view can grab and
            release the pointer.
        hit_tester:
            Maps pointer-down positions to gestures.
        """
        self._container_provider = container_provider
        self._on_crop_changed = on_crop_changed
        self._on_capture = on_capture
        self._on_release = on_release
        self._hit_tester = hit_tester or HitTester()
        self._state = CropEngineState()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def crop_rect(self) -> NormalisedRect:
        return self._state.rect

    def is_dragging(self) -> bool:
        return self._state.phase is Phase.DRAGGING

    def active_action(self) -> GestureAction | None:
        session = self._state.session
        return session.action if session is not None else None

    def view_rect(self) -> ViewRect:
        """Return the crop box as ``(left, top, right, bottom)`` in view units."""
        box = self._container_provider()
        rect = self._state.rect
        sx = box.width / FULL_EXTENT
        sy = box.height / FULL_EXTENT
        return (
            box.left + rect.x * sx,
            box.top + rect.y * sy,
            box.left + rect.right * sx,
            box.top + rect.bottom * sy,
        )

    def action_at(self, pos: Point) -> GestureAction | None:
        return self._hit_tester.test(pos, self.view_rect())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def set_crop_rect(self, rect: NormalisedRect) -> None:
        """Replace the rectangle outside of a gesture."""
        if self.is_dragging():
            _LOGGER.debug("Ignoring crop replacement during an active gesture")
            return
        self._apply(CropEngineState(rect=rect.clamped()))

    def reset(self) -> None:
        """Return to the full frame and drop any active gesture."""
        if self.is_dragging():
            self.cancel()
        self._apply(CropEngineState())

    def press(self, pos: Point, action: Union[GestureAction, str, None] = None) -> bool:
        """Start a gesture at *pos*; return True when one was started.

        When *action* is omitted the hit tester decides. A malformed action is
        logged and ignored so the last valid rectangle stays in place.
        """
        if self.is_dragging():
            return False
        if action is None:
            action = self.action_at(pos)
            if action is None:
                return False
        try:
            self._apply(reduce(self._state, PointerDown(pos, action)))
        except InvalidArgumentError as exc:
            _LOGGER.warning("Rejected crop gesture: %s", exc)
            return False
        if self._on_capture is not None:
            self._on_capture()
        return True

    def move(self, pos: Point) -> None:
        if not self.is_dragging():
            return
        self._apply(reduce(self._state, PointerMove(pos, self._container_provider())))

    def release(self) -> None:
        self._finish(PointerUp())

    def cancel(self) -> None:
        self._finish(PointerCancel())

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _finish(self, event: Union[PointerUp, PointerCancel]) -> None:
        if not self.is_dragging():
            return
        self._apply(reduce(self._state, event))
        if self._on_release is not None:
            self._on_release()

    def _apply(self, state: CropEngineState) -> None:
        previous = self._state.rect
        self._state = state
        if state.rect != previous and self._on_crop_changed is not None:
            self._on_crop_changed(state.rect)
