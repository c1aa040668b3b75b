import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Allow running the suite from a checkout without installing the package.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from thermo_overlay.models import ReadingsRecord  # noqa: E402


@pytest.fixture
def readings() -> ReadingsRecord:
    return ReadingsRecord(t1="21.5", t2="22.0", t3="23.25", t4="19.8")


@pytest.fixture
def make_image():
    """Factory returning a solid-colour Pillow image."""

    def _make(width: int = 640, height: int = 480, color=(255, 0, 0), mode: str = "RGB") -> Image.Image:
        return Image.new(mode, (width, height), color)

    return _make


@pytest.fixture
def image_file(tmp_path, make_image):
    """Factory writing an image to disk and returning its path."""

    def _write(name: str = "photo.png", width: int = 640, height: int = 480, color=(255, 0, 0)) -> Path:
        path = tmp_path / name
        make_image(width, height, color).save(path)
        return path

    return _write


@pytest.fixture
def encode_image():
    """Return a helper encoding a Pillow image to bytes."""

    def _encode(image: Image.Image, fmt: str = "PNG") -> bytes:
        buffer = BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _encode
