"""Tests for the readings overlay compositor."""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image

from thermo_overlay.core import overlay
from thermo_overlay.core.overlay import (
    compute_layout,
    encode_jpeg,
    fit_within,
    font_size_for,
    reading_lines,
    render,
    render_artifact,
)
from thermo_overlay.errors import EncodingError, InvalidArgumentError
from thermo_overlay.models import ReadingsRecord


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        ((3000, 1500), (2560, 1280)),
        ((1500, 3000), (1280, 2560)),
        ((1200, 800), (1200, 800)),
        ((2560, 2560), (2560, 2560)),
        ((5000, 100), (2560, 51)),
        ((4032, 3024), (2560, 1920)),
    ],
)
def test_fit_within(size, expected):
    assert fit_within(*size) == expected


def test_reading_lines_skip_blank_pt(readings):
    assert reading_lines(readings) == ["T1: 21.5°C", "T2: 22.0°C", "T3: 23.25°C", "T4: 19.8°C"]


@pytest.mark.parametrize("pt", ["", "   "])
def test_blank_pt_gives_four_lines(pt):
    record = ReadingsRecord(t1="1", t2="2", t3="3", t4="4", pt=pt)
    assert len(reading_lines(record)) == 4


def test_pt_appended_as_fifth_line():
    record = ReadingsRecord(t1="1", t2="2", t3="3", t4="4", pt="12.5")
    lines = reading_lines(record)
    assert len(lines) == 5
    assert lines[4] == "PT: 12.5°C"


@pytest.mark.parametrize(
    ("width", "scale", "expected"),
    [(1000, 1.0, 30), (500, 1.0, 24), (2560, 2.0, 153), (2560, 0.5, 38), (100, 3.0, 24)],
)
def test_font_size_for(width, scale, expected):
    assert font_size_for(width, scale) == expected


def test_compute_layout_sizes_box_from_widest_line(readings):
    layout = compute_layout(1000, readings, 1.0, lambda line, size: len(line) * 10.0)

    assert layout.font_size == 30
    assert layout.line_height == pytest.approx(42.0)
    assert layout.padding == 30
    assert (layout.box_x, layout.box_y) == (30, 30)
    assert layout.box_width == pytest.approx(len("T3: 23.25°C") * 10.0 + 60)
    assert layout.box_height == pytest.approx(4 * 42.0 + 60)
    assert layout.radius == pytest.approx(15.0)
    assert layout.line_origins == [
        pytest.approx((60.0, 60.0)),
        pytest.approx((60.0, 102.0)),
        pytest.approx((60.0, 144.0)),
        pytest.approx((60.0, 186.0)),
    ]


def test_render_downscales_oversized_sources(make_image, readings):
    output = render(make_image(3000, 1500), readings)
    assert output.size == (2560, 1280)
    assert output.mode == "RGB"


def test_render_keeps_small_sources_unchanged(make_image, readings):
    assert render(make_image(1200, 800), readings).size == (1200, 800)


def test_render_draws_translucent_box_and_white_text(make_image, readings):
    output = render(make_image(1000, 600, (255, 0, 0)), readings)
    layout = compute_layout(1000, readings, 1.0, overlay.measure_text)

    # Outside the box the source is untouched.
    assert output.getpixel((990, 590)) == (255, 0, 0)

    # Bottom padding of the box: 60% black over red.
    inside = output.getpixel(
        (int(layout.box_x + layout.box_width / 2), int(layout.box_y + layout.box_height - layout.padding / 2))
    )
    assert inside[0] == pytest.approx(102, abs=3)
    assert inside[1] == 0 and inside[2] == 0

    # Somewhere on the first line there is white text.
    x, y = layout.line_origin(0)
    line_area = output.crop((int(x), int(y), int(x + layout.box_width - 2 * layout.padding), int(y + layout.font_size)))
    assert max(min(pixel) for pixel in line_area.getdata()) >= 240


def test_box_covers_exactly_its_layout_extent(make_image, readings):
    output = render(make_image(1000, 600, (255, 0, 0)), readings)
    layout = compute_layout(1000, readings, 1.0, overlay.measure_text)
    left = round(layout.box_x)
    top = round(layout.box_y)
    right = round(layout.box_x + layout.box_width)
    bottom = round(layout.box_y + layout.box_height)
    mid_x = (left + right) // 2
    mid_y = (top + bottom) // 2

    # Last covered column and row are darkened, the next ones are not.
    assert output.getpixel((right - 1, mid_y))[0] == pytest.approx(102, abs=3)
    assert output.getpixel((right, mid_y)) == (255, 0, 0)
    assert output.getpixel((mid_x, bottom - 1))[0] == pytest.approx(102, abs=3)
    assert output.getpixel((mid_x, bottom)) == (255, 0, 0)
    assert output.getpixel((left - 1, mid_y)) == (255, 0, 0)
    assert output.getpixel((left, mid_y))[0] == pytest.approx(102, abs=3)


def test_render_flattens_transparency_onto_black(make_image, readings):
    source = make_image(800, 600, (0, 255, 0, 0), mode="RGBA")
    output = render(source, readings)
    assert output.mode == "RGB"
    assert output.getpixel((799, 599)) == (0, 0, 0)


def test_render_is_deterministic(make_image, readings):
    source = make_image(900, 700, (12, 34, 56))
    first = render(source, readings, 1.3)
    second = render(source, readings, 1.3)
    assert first.size == second.size
    assert first.tobytes() == second.tobytes()


def test_font_scale_grows_the_box(make_image, readings):
    small = compute_layout(1000, readings, 0.5, overlay.measure_text)
    large = compute_layout(1000, readings, 2.0, overlay.measure_text)
    assert large.box_width > small.box_width
    assert large.box_height > small.box_height


@pytest.mark.parametrize("scale", [0, -1, float("nan"), float("inf")])
def test_render_rejects_non_positive_scale(make_image, readings, scale):
    with pytest.raises(InvalidArgumentError):
        render(make_image(100, 100), readings, scale)


def test_encode_jpeg_produces_decodable_bytes(make_image):
    data = encode_jpeg(make_image(320, 240))
    assert data[:2] == b"\xff\xd8"
    with Image.open(BytesIO(data)) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.size == (320, 240)


def test_encode_jpeg_wraps_encoder_errors():
    image = MagicMock()
    image.mode = "RGB"
    image.save.side_effect = OSError("encoder exploded")
    with pytest.raises(EncodingError):
        encode_jpeg(image)


def test_encode_jpeg_rejects_empty_output():
    image = MagicMock()
    image.mode = "RGB"
    with pytest.raises(EncodingError):
        encode_jpeg(image)


def test_render_artifact_reports_dimensions(make_image, readings):
    artifact = render_artifact(make_image(3000, 1500), readings)
    assert (artifact.width, artifact.height) == (2560, 1280)
    assert artifact.mime_type == "image/jpeg"
    assert artifact.size_bytes == len(artifact.data) > 0


def test_render_artifact_twice_decodes_to_same_dimensions(make_image, readings):
    source = make_image(1024, 768, (200, 200, 200))
    first = render_artifact(source, readings)
    second = render_artifact(source, readings)
    with Image.open(BytesIO(first.data)) as a, Image.open(BytesIO(second.data)) as b:
        assert a.size == b.size == (1024, 768)
