"""
Normalised crop geometry.

Crop rectangles live in percent space (0-100 on both axes) relative to the
displayed image box. This module holds the value types and the pure helpers
that convert them into pixel regions of the decoded source image.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ..config import FULL_EXTENT, MIN_SIZE, RECT_EPSILON
from ..errors import InvalidArgumentError

if TYPE_CHECKING:  # pragma: no cover - typing only
    from PIL import Image


def clamp(value: float, lower: float, upper: float) -> float:
    """Return *value* limited to ``[lower, upper]``."""
    return max(lower, min(upper, value))


@dataclass(frozen=True)
class NormalisedRect:
    """Crop rectangle in percent of the displayed image box."""

    x: float = 0.0
    y: float = 0.0
    w: float = FULL_EXTENT
    h: float = FULL_EXTENT

    @classmethod
    def full(cls) -> NormalisedRect:
        """Return the full-frame rectangle ``(0, 0, 100, 100)``."""
        return cls(0.0, 0.0, FULL_EXTENT, FULL_EXTENT)

    @classmethod
    def parse(cls, text: str) -> NormalisedRect:
        """Build a rect from ``"x,y,w,h"`` and repair it into valid bounds."""
        parts = [part.strip() for part in text.split(",")]
        if len(parts) != 4:
            raise InvalidArgumentError(f"Expected 'x,y,w,h', got {text!r}")
        try:
            x, y, w, h = (float(part) for part in parts)
        except ValueError as exc:
            raise InvalidArgumentError(f"Non-numeric crop value in {text!r}") from exc
        if not all(math.isfinite(v) for v in (x, y, w, h)):
            raise InvalidArgumentError(f"Non-finite crop value in {text!r}")
        return cls(x, y, w, h).clamped()

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def is_valid(self) -> bool:
        """Return True when every bound and minimum-size invariant holds."""
        eps = RECT_EPSILON
        return (
            self.x >= -eps
            and self.y >= -eps
            and self.right <= FULL_EXTENT + eps
            and self.bottom <= FULL_EXTENT + eps
            and self.w >= MIN_SIZE - eps
            and self.h >= MIN_SIZE - eps
        )

    def clamped(self) -> NormalisedRect:
        """Return the closest rect that satisfies the invariants."""
        w = clamp(self.w, MIN_SIZE, FULL_EXTENT)
        h = clamp(self.h, MIN_SIZE, FULL_EXTENT)
        x = clamp(self.x, 0.0, FULL_EXTENT - w)
        y = clamp(self.y, 0.0, FULL_EXTENT - h)
        return replace(self, x=x, y=y, w=w, h=h)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.w, self.h)

    def to_text(self) -> str:
        """Return the ``"x,y,w,h"`` form accepted by :meth:`parse`."""
        return ",".join(f"{round(value, 4):g}" for value in self.as_tuple())


@dataclass(frozen=True)
class PixelRect:
    """Integer source region in image pixels."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    def as_box(self) -> tuple[int, int, int, int]:
        """Return ``(left, top, right, bottom)`` as accepted by Pillow."""
        return (self.left, self.top, self.right, self.bottom)


def _snap(value: float) -> float:
    # Percent arithmetic produces values like 300.00000000000006; snap them
    # before flooring/ceiling so exact boundaries stay exact.
    return round(value, 6)


def rect_to_pixels(rect: NormalisedRect, natural_width: int, natural_height: int) -> PixelRect:
    """Map *rect* onto an image of ``natural_width`` x ``natural_height`` pixels.

    The origin is floored and the far edge is ceiled, both clamped to the
    image, so neighbouring selections share their boundary pixels instead of
    leaving a one-pixel seam. The full frame maps to the whole image.
    """
    if natural_width <= 0 or natural_height <= 0:
        raise InvalidArgumentError(
            f"Image dimensions must be positive, got {natural_width}x{natural_height}"
        )
    scale_x = natural_width / FULL_EXTENT
    scale_y = natural_height / FULL_EXTENT

    left = int(clamp(math.floor(_snap(rect.x * scale_x)), 0, natural_width - 1))
    top = int(clamp(math.floor(_snap(rect.y * scale_y)), 0, natural_height - 1))
    right = int(clamp(math.ceil(_snap(rect.right * scale_x)), left + 1, natural_width))
    bottom = int(clamp(math.ceil(_snap(rect.bottom * scale_y)), top + 1, natural_height))
    return PixelRect(left, top, right - left, bottom - top)


def crop_image(image: Image.Image, rect: NormalisedRect) -> Image.Image:
    """Return the region of *image* selected by *rect*."""
    region = rect_to_pixels(rect, image.width, image.height)
    if region.as_box() == (0, 0, image.width, image.height):
        return image.copy()
    return image.crop(region.as_box())
