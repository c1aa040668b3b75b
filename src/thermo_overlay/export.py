"""Writing rendered artifacts to disk under deterministic names."""

from __future__ import annotations

import logging
import time
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image

from .config import (
    ADHOC_EXPORT_PREFIX,
    EXPORT_SUFFIX,
    RECORD_EXPORT_PREFIX,
    RECORD_ORIGINAL_PREFIX,
)
from .errors import InvalidArgumentError

_LOGGER = logging.getLogger(__name__)


def download_name(record_id: Optional[int] = None, timestamp_ms: Optional[int] = None) -> str:
    """Return the file name offered for a download.

    Stored records are named after their id; ad-hoc renders after the
    millisecond timestamp (the current time when omitted).
    """
    if record_id is not None:
        return f"{RECORD_EXPORT_PREFIX}_{int(record_id)}{EXPORT_SUFFIX}"
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{ADHOC_EXPORT_PREFIX}_{int(timestamp_ms)}{EXPORT_SUFFIX}"


def get_unique_destination(destination: Path) -> Path:
    """Return *destination* or a variant with a counter if it exists."""
    if not destination.exists():
        return destination

    parent = destination.parent
    stem = destination.stem
    suffix = destination.suffix
    counter = 1
    while True:
        candidate = parent / f"{stem} ({counter}){suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


def write_artifact(data: bytes, destination_dir: Path, name: str) -> Path:
    """Write *data* as *name* inside *destination_dir* without overwriting."""
    if not data:
        raise InvalidArgumentError("Refusing to export an empty artifact")
    destination_dir.mkdir(parents=True, exist_ok=True)
    target = get_unique_destination(destination_dir / name)
    target.write_bytes(data)
    _LOGGER.info("Exported %d bytes to %s", len(data), target)
    return target


def original_name(record_id: int, data: bytes) -> str:
    """Return the file name for a stored source image, keeping its real format."""
    suffix = EXPORT_SUFFIX
    try:
        with Image.open(BytesIO(data)) as image:
            fmt = (image.format or "").lower()
    except (OSError, ValueError):
        fmt = ""
    if fmt and fmt not in {"jpeg", "mpo"}:
        suffix = f".{fmt}"
    return f"{RECORD_ORIGINAL_PREFIX}_{int(record_id)}{suffix}"
