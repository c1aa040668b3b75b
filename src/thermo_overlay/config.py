"""Default configuration values for thermo-overlay."""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Crop selection
# ---------------------------------------------------------------------------

# Crop rectangles are expressed in percent of the displayed image box, so the
# full frame is ``(0, 0, 100, 100)`` regardless of the source resolution.
FULL_EXTENT: Final[float] = 100.0
MIN_SIZE: Final[float] = 10.0
RECT_EPSILON: Final[float] = 1e-6

# Corner handle hit radius in viewport pixels.
HANDLE_HIT_PADDING: Final[float] = 16.0
HANDLE_LENGTH: Final[float] = 24.0

# ---------------------------------------------------------------------------
# Overlay compositing
# ---------------------------------------------------------------------------

# Sources larger than this on either side are downscaled before drawing so
# the persisted artifacts stay small.
MAX_DIMENSION: Final[int] = 2560

FONT_WIDTH_RATIO: Final[float] = 0.03
MIN_FONT_SIZE: Final[int] = 24
LINE_HEIGHT_RATIO: Final[float] = 1.4
CORNER_RADIUS_RATIO: Final[float] = 0.5

BOX_OPACITY: Final[float] = 0.6
BOX_COLOR: Final[tuple[int, int, int]] = (0, 0, 0)
TEXT_COLOR: Final[tuple[int, int, int, int]] = (255, 255, 255, 255)

# Bold sans-serif faces tried in order before Pillow's bundled default.
BOLD_FONT_CANDIDATES: Final[tuple[str, ...]] = (
    "DejaVuSans-Bold.ttf",
    "LiberationSans-Bold.ttf",
    "Arial Bold.ttf",
    "arialbd.ttf",
)

READING_KEYS: Final[tuple[str, ...]] = ("t1", "t2", "t3", "t4")
OPTIONAL_READING_KEYS: Final[tuple[str, ...]] = ("pt",)
TEMPERATURE_UNIT: Final[str] = "°C"

JPEG_QUALITY: Final[int] = 92
JPEG_MIME_TYPE: Final[str] = "image/jpeg"

# The font scale slider in the UI covers this range; the compositor itself
# accepts any positive value.
FONT_SCALE_RANGE: Final[tuple[float, float]] = (0.5, 2.0)
FONT_SCALE_STEP: Final[float] = 0.1
DEFAULT_FONT_SCALE: Final[float] = 1.0

# ---------------------------------------------------------------------------
# Persistence and export
# ---------------------------------------------------------------------------

APP_DIR_NAME: Final[str] = "thermo-overlay"
DATABASE_FILE_NAME: Final[str] = "history.db"
SETTINGS_FILE_NAME: Final[str] = "settings.json"
RECORD_EXPORT_PREFIX: Final[str] = "experiment_overlay"
RECORD_ORIGINAL_PREFIX: Final[str] = "experiment_original"
ADHOC_EXPORT_PREFIX: Final[str] = "sash_overlay"
EXPORT_SUFFIX: Final[str] = ".jpg"
