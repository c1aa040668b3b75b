"""Photo crop and temperature-readout overlay toolkit."""

from .core.overlay import render, render_artifact
from .crop.engine import begin_gesture, end_gesture, update_gesture
from .crop.geometry import NormalisedRect, rect_to_pixels
from .models import CompositedArtifact, ReadingsRecord

__all__ = [
    "CompositedArtifact",
    "NormalisedRect",
    "ReadingsRecord",
    "begin_gesture",
    "end_gesture",
    "rect_to_pixels",
    "render",
    "render_artifact",
    "update_gesture",
]
