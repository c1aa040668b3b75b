"""
Crop selection package.

Pure gesture engine, geometry helpers and the controller that binds them to
pointer input.
"""

from .controller import CropInteractionController
from .engine import (
    ContainerBox,
    CropEngineState,
    GestureAction,
    GestureSession,
    Phase,
    PointerCancel,
    PointerDown,
    PointerMove,
    PointerUp,
    begin_gesture,
    end_gesture,
    reduce,
    update_gesture,
)
from .geometry import NormalisedRect, PixelRect, clamp, crop_image, rect_to_pixels
from .hit_tester import HitTester

__all__ = [
    "ContainerBox",
    "CropEngineState",
    "CropInteractionController",
    "GestureAction",
    "GestureSession",
    "HitTester",
    "NormalisedRect",
    "Phase",
    "PixelRect",
    "PointerCancel",
    "PointerDown",
    "PointerMove",
    "PointerUp",
    "begin_gesture",
    "clamp",
    "crop_image",
    "end_gesture",
    "rect_to_pixels",
    "reduce",
    "update_gesture",
]
