"""Readings overlay compositor.

Given a decoded source image and a :class:`ReadingsRecord` this module
produces the output buffer: the source (downscaled when oversized) with a
semi-transparent rounded label box in the top-left corner holding one line
per reading. All sizes derive from the output width so the box looks the
same at any resolution.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont

from ..config import (
    BOLD_FONT_CANDIDATES,
    BOX_COLOR,
    BOX_OPACITY,
    CORNER_RADIUS_RATIO,
    FONT_WIDTH_RATIO,
    JPEG_QUALITY,
    LINE_HEIGHT_RATIO,
    MAX_DIMENSION,
    MIN_FONT_SIZE,
    TEMPERATURE_UNIT,
    TEXT_COLOR,
)
from ..errors import EncodingError, InvalidArgumentError
from ..models import CompositedArtifact, ReadingsRecord

_LOGGER = logging.getLogger(__name__)

_RESAMPLE = Image.Resampling.LANCZOS


def fit_within(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> tuple[int, int]:
    """Return the output size for a ``width`` x ``height`` source.

    Sources larger than *max_dimension* on either side shrink by a single
    ratio, floored; anything smaller passes through untouched.
    """
    if width <= max_dimension and height <= max_dimension:
        return width, height
    ratio = min(max_dimension / width, max_dimension / height)
    # Snap before flooring so 3000 * (2560 / 3000) lands on 2560, not 2559.
    return (
        max(1, math.floor(round(width * ratio, 6))),
        max(1, math.floor(round(height * ratio, 6))),
    )


def reading_lines(readings: ReadingsRecord) -> list[str]:
    """Return the label lines, e.g. ``"T1: 23.5°C"``."""
    return [f"{key.upper()}: {value}{TEMPERATURE_UNIT}" for key, value in readings.items()]


def font_size_for(output_width: int, font_scale: float = 1.0) -> int:
    return max(MIN_FONT_SIZE, math.floor(output_width * FONT_WIDTH_RATIO * font_scale))


@dataclass(frozen=True)
class OverlayLayout:
    """Resolved label box geometry, in output pixels."""

    lines: tuple[str, ...]
    font_size: int
    line_height: float
    padding: float
    margin: float
    box_x: float
    box_y: float
    box_width: float
    box_height: float
    radius: float

    def line_origin(self, index: int) -> tuple[float, float]:
        """Top-left anchor of line *index*."""
        return (
            self.box_x + self.padding,
            self.box_y + self.padding + index * self.line_height,
        )

    @property
    def line_origins(self) -> list[tuple[float, float]]:
        return [self.line_origin(index) for index in range(len(self.lines))]


def compute_layout(
    output_width: int,
    readings: ReadingsRecord,
    font_scale: float,
    measure: Callable[[str, int], float],
) -> OverlayLayout:
    """Size the label box for *readings* on an image *output_width* wide.

    *measure* returns the advance width of a line at a given font size.
    """
    font_size = font_size_for(output_width, font_scale)
    line_height = font_size * LINE_HEIGHT_RATIO
    padding = float(font_size)
    margin = float(font_size)
    lines = tuple(reading_lines(readings))
    text_width = max((measure(line, font_size) for line in lines), default=0.0)
    return OverlayLayout(
        lines=lines,
        font_size=font_size,
        line_height=line_height,
        padding=padding,
        margin=margin,
        box_x=margin,
        box_y=margin,
        box_width=text_width + padding * 2,
        box_height=len(lines) * line_height + padding * 2,
        radius=font_size * CORNER_RADIUS_RATIO,
    )


@lru_cache(maxsize=32)
def load_bold_font(size: int) -> ImageFont.FreeTypeFont:
    """Return a bold sans-serif font at *size* pixels."""
    for name in BOLD_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    _LOGGER.warning("No bold TrueType font found; using Pillow's default font")
    return ImageFont.load_default(size=size)


def measure_text(line: str, font_size: int) -> float:
    return float(load_bold_font(font_size).getlength(line))


def _validate_scale(font_scale: float) -> float:
    scale = float(font_scale)
    if not math.isfinite(scale) or scale <= 0:
        raise InvalidArgumentError(f"font_scale must be a positive number, got {font_scale!r}")
    return scale


def _draw_base(source: Image.Image, size: tuple[int, int]) -> Image.Image:
    """Draw *source* into a fresh opaque buffer of exactly *size*."""
    canvas = Image.new("RGBA", size, (0, 0, 0, 255))
    scaled = source if source.size == size else source.resize(size, _RESAMPLE)
    try:
        rgba = scaled if scaled.mode == "RGBA" else scaled.convert("RGBA")
        try:
            canvas.alpha_composite(rgba)
        finally:
            if rgba is not scaled:
                rgba.close()
    finally:
        if scaled is not source:
            scaled.close()
    return canvas


def render(
    source_image: Image.Image,
    readings: ReadingsRecord,
    font_scale: float = 1.0,
) -> Image.Image:
    """Return an RGB buffer with the readings box composited onto *source_image*."""
    scale = _validate_scale(font_scale)
    width, height = fit_within(source_image.width, source_image.height)
    base = _draw_base(source_image, (width, height))

    layout = compute_layout(width, readings, scale, measure_text)
    font = load_bold_font(layout.font_size)

    box = Image.new("RGBA", base.size, (0, 0, 0, 0))
    box_draw = ImageDraw.Draw(box)
    # Pillow treats the far corner as inclusive.
    box_draw.rounded_rectangle(
        (
            round(layout.box_x),
            round(layout.box_y),
            round(layout.box_x + layout.box_width) - 1,
            round(layout.box_y + layout.box_height) - 1,
        ),
        radius=round(layout.radius),
        fill=BOX_COLOR + (round(255 * BOX_OPACITY),),
    )
    base.alpha_composite(box)
    box.close()

    text_draw = ImageDraw.Draw(base)
    for index, line in enumerate(layout.lines):
        text_draw.text(layout.line_origin(index), line, font=font, fill=TEXT_COLOR, anchor="la")

    _LOGGER.debug(
        "Rendered %dx%d overlay with %d lines at %dpx",
        width,
        height,
        len(layout.lines),
        layout.font_size,
    )
    output = base.convert("RGB")
    base.close()
    return output


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    """Encode *image* as JPEG bytes; raise :class:`EncodingError` on failure."""
    buffer = BytesIO()
    rgb = image if image.mode == "RGB" else image.convert("RGB")
    try:
        rgb.save(buffer, format="JPEG", quality=quality)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodingError(f"JPEG encoding failed: {exc}") from exc
    finally:
        if rgb is not image:
            rgb.close()
    data = buffer.getvalue()
    if not data:
        raise EncodingError("JPEG encoder produced no data")
    return data


def render_artifact(
    source_image: Image.Image,
    readings: ReadingsRecord,
    font_scale: float = 1.0,
) -> CompositedArtifact:
    """Render and encode in one step."""
    output = render(source_image, readings, font_scale)
    try:
        data = encode_jpeg(output)
        return CompositedArtifact(data=data, width=output.width, height=output.height)
    finally:
        output.close()
