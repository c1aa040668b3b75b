"""
Crop gesture engine.

Pointer gestures over the displayed image are interpreted as translations or
corner resizes of a :class:`NormalisedRect`. Every function here is pure: the
engine never stores the rectangle it edits, it returns the next value for the
caller to keep. The only state that outlives a single call is the
:class:`GestureSession` created on pointer-down, and the caller owns it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from ..config import FULL_EXTENT, MIN_SIZE
from ..errors import InvalidArgumentError
from .geometry import NormalisedRect, clamp

_LOGGER = logging.getLogger(__name__)

Point = tuple[float, float]


class GestureAction(str, enum.Enum):
    """The five gestures a pointer-down can start."""

    MOVE = "move"
    RESIZE_NW = "resize-nw"
    RESIZE_NE = "resize-ne"
    RESIZE_SW = "resize-sw"
    RESIZE_SE = "resize-se"

    @classmethod
    def parse(cls, value: Union[GestureAction, str]) -> GestureAction:
        """Return the action named by *value*.

        Accepts the canonical names as well as the bare corner names
        (``"nw"``, ``"ne"``, ``"sw"``, ``"se"``) emitted by the handles.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            for action in cls:
                if name == action.value or (action.is_resize and name == action.corner):
                    return action
        raise InvalidArgumentError(f"Unknown gesture action: {value!r}")

    @property
    def is_resize(self) -> bool:
        return self is not GestureAction.MOVE

    @property
    def corner(self) -> str:
        """Return the compass corner (``"nw"`` ...) or ``""`` for move."""
        return self.value.partition("-")[2]

    @property
    def edges(self) -> frozenset[str]:
        """Return the edges (``n``, ``s``, ``e``, ``w``) this action drags."""
        return frozenset(self.corner)


@dataclass(frozen=True)
class ContainerBox:
    """On-screen bounding box of the displayed image, in pointer units."""

    left: float
    top: float
    width: float
    height: float

    @classmethod
    def from_size(cls, width: float, height: float) -> ContainerBox:
        return cls(0.0, 0.0, float(width), float(height))


@dataclass(frozen=True)
class GestureSession:
    """One pointer-down to pointer-up interaction."""

    anchor: Point
    start_rect: NormalisedRect
    action: GestureAction


def begin_gesture(
    pointer_pos: Point,
    action: Union[GestureAction, str],
    current_rect: NormalisedRect,
) -> GestureSession:
    """Start a gesture anchored at *pointer_pos*.

    Raises :class:`InvalidArgumentError` for an unknown *action* or a
    *current_rect* that violates the rectangle invariants.
    """
    parsed = GestureAction.parse(action)
    if not current_rect.is_valid():
        raise InvalidArgumentError(f"Crop rectangle out of range: {current_rect}")
    anchor = (float(pointer_pos[0]), float(pointer_pos[1]))
    _LOGGER.debug("Begin %s gesture at %s from %s", parsed.value, anchor, current_rect)
    return GestureSession(anchor=anchor, start_rect=current_rect, action=parsed)


def pointer_delta(session: GestureSession, pointer_pos: Point, container: ContainerBox) -> Point:
    """Return the pointer travel since pointer-down in percent of *container*."""
    dx_px = float(pointer_pos[0]) - session.anchor[0]
    dy_px = float(pointer_pos[1]) - session.anchor[1]
    dx = dx_px / container.width * FULL_EXTENT if container.width > 0 else 0.0
    dy = dy_px / container.height * FULL_EXTENT if container.height > 0 else 0.0
    return dx, dy


def update_gesture(
    session: Optional[GestureSession],
    pointer_pos: Point,
    container: ContainerBox,
) -> Optional[NormalisedRect]:
    """Return the rectangle produced by moving the pointer to *pointer_pos*.

    The result is always computed from ``session.start_rect`` so repeated
    updates never accumulate rounding drift. Without a session (a stray move
    with no matching pointer-down) the call is ignored and returns ``None``.
    """
    if session is None:
        return None

    dx, dy = pointer_delta(session, pointer_pos, container)
    start = session.start_rect

    if session.action is GestureAction.MOVE:
        return replace(
            start,
            x=clamp(start.x + dx, 0.0, FULL_EXTENT - start.w),
            y=clamp(start.y + dy, 0.0, FULL_EXTENT - start.h),
        )

    x, y, w, h = start.x, start.y, start.w, start.h
    edges = session.action.edges

    if "e" in edges:
        w = clamp(start.w + dx, MIN_SIZE, FULL_EXTENT - start.x)
    if "s" in edges:
        h = clamp(start.h + dy, MIN_SIZE, FULL_EXTENT - start.y)
    if "w" in edges:
        # The east edge stays put; shrinking stops at MIN_SIZE and growing
        # stops at the left border.
        valid_delta = min(start.w - MIN_SIZE, dx)
        x = max(0.0, start.x + valid_delta)
        w = start.right - x
    if "n" in edges:
        valid_delta = min(start.h - MIN_SIZE, dy)
        y = max(0.0, start.y + valid_delta)
        h = start.bottom - y

    return NormalisedRect(x, y, w, h)


def end_gesture(session: Optional[GestureSession]) -> None:
    """Finish *session*.

    The last :func:`update_gesture` result is already authoritative, so no
    rectangle is touched here. Releasing pointer capture is the caller's job.
    """
    if session is not None:
        _LOGGER.debug("End %s gesture", session.action.value)


# ---------------------------------------------------------------------------
# State machine view: (state, event) -> state
# ---------------------------------------------------------------------------


class Phase(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class PointerDown:
    pos: Point
    action: Union[GestureAction, str]


@dataclass(frozen=True)
class PointerMove:
    pos: Point
    container: ContainerBox


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class PointerCancel:
    pass


PointerEvent = Union[PointerDown, PointerMove, PointerUp, PointerCancel]


@dataclass(frozen=True)
class CropEngineState:
    """Current rectangle plus the active gesture, if any."""

    rect: NormalisedRect = NormalisedRect()
    session: Optional[GestureSession] = None

    @property
    def phase(self) -> Phase:
        return Phase.IDLE if self.session is None else Phase.DRAGGING


def reduce(state: CropEngineState, event: PointerEvent) -> CropEngineState:
    """Return the state that follows *state* after *event*.

    Moves and releases while idle are ignored, and so is a second
    pointer-down during a drag: the first gesture keeps the capture. A
    malformed pointer-down raises :class:`InvalidArgumentError` and leaves
    *state* untouched.
    """
    if isinstance(event, PointerDown):
        if state.session is not None:
            return state
        return replace(state, session=begin_gesture(event.pos, event.action, state.rect))

    if isinstance(event, PointerMove):
        rect = update_gesture(state.session, event.pos, event.container)
        if rect is None:
            return state
        return replace(state, rect=rect)

    if isinstance(event, (PointerUp, PointerCancel)):
        if state.session is None:
            return state
        end_gesture(state.session)
        return replace(state, session=None)

    raise InvalidArgumentError(f"Unsupported pointer event: {event!r}")
