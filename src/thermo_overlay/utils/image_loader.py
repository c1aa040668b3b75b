"""Helpers for decoding source images with Pillow."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image, ImageOps

from ..errors import ImageDecodeError

_LOGGER = logging.getLogger(__name__)

ImageSource = Union[Path, str, bytes, bytearray]

_DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


def read_source_bytes(source: ImageSource) -> bytes:
    """Return the raw encoded bytes of *source*."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    try:
        return Path(source).read_bytes()
    except OSError as exc:
        raise ImageDecodeError(f"Cannot read image {source}: {exc}") from exc


def describe_source(source: ImageSource) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return str(source)


@contextmanager
def open_image(source: ImageSource) -> Iterator[Image.Image]:
    """Decode *source* and yield an upright, fully loaded image.

    The decoder handle and any intermediate image are closed when the block
    exits, whether or not it raised.
    """
    stream = BytesIO(bytes(source)) if isinstance(source, (bytes, bytearray)) else Path(source)
    try:
        handle = Image.open(stream)
    except _DECODE_ERRORS as exc:
        raise ImageDecodeError(f"Cannot decode image {describe_source(source)}: {exc}") from exc

    upright = None
    try:
        try:
            # EXIF orientation has to be applied here; the pixels are copied
            # verbatim afterwards.
            upright = ImageOps.exif_transpose(handle)
            upright.load()
        except _DECODE_ERRORS as exc:
            raise ImageDecodeError(
                f"Cannot decode image {describe_source(source)}: {exc}"
            ) from exc
        yield upright
    finally:
        if upright is not None and upright is not handle:
            upright.close()
        handle.close()


def load_image(source: ImageSource) -> Image.Image:
    """Return a detached copy of *source* that outlives the decoder."""
    with open_image(source) as image:
        return image.copy()
