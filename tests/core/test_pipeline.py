import logging
from io import BytesIO
from unittest.mock import Mock

import pytest
from PIL import Image

from thermo_overlay.core.pipeline import process_batch, process_image
from thermo_overlay.crop import NormalisedRect
from thermo_overlay.errors import ImageDecodeError
from thermo_overlay.errors.handler import ErrorHandler, ErrorOccurredEvent
from thermo_overlay.events.bus import ArtifactRenderedEvent, EventBus


def _decoded_size(data: bytes) -> tuple[int, int]:
    with Image.open(BytesIO(data)) as image:
        return image.size


def test_process_image_keeps_original_bytes(image_file, readings):
    path = image_file("source.png", 320, 240)

    processed = process_image(path, readings)

    assert processed.original_bytes == path.read_bytes()
    assert processed.artifact.mime_type == "image/jpeg"
    assert _decoded_size(processed.artifact.data) == (320, 240)


def test_process_image_accepts_raw_bytes(make_image, encode_image, readings):
    data = encode_image(make_image(200, 100), "PNG")

    processed = process_image(data, readings)

    assert processed.original_bytes == data
    assert (processed.artifact.width, processed.artifact.height) == (200, 100)


def test_process_image_applies_crop(image_file, readings):
    path = image_file("wide.png", 400, 200)

    processed = process_image(path, readings, crop=NormalisedRect(0, 0, 50, 50))

    assert (processed.artifact.width, processed.artifact.height) == (200, 100)
    assert _decoded_size(processed.artifact.data) == (200, 100)


def test_full_frame_crop_is_a_no_op(image_file, readings):
    path = image_file("full.png", 300, 150)

    processed = process_image(path, readings, crop=NormalisedRect.full())

    assert (processed.artifact.width, processed.artifact.height) == (300, 150)


def test_process_image_rejects_garbage(readings):
    with pytest.raises(ImageDecodeError):
        process_image(b"definitely not an image", readings)


def test_process_image_rejects_missing_file(tmp_path, readings):
    with pytest.raises(ImageDecodeError):
        process_image(tmp_path / "missing.png", readings)


@pytest.mark.parametrize("workers", [1, 2])
def test_batch_isolates_failures_and_keeps_order(tmp_path, image_file, readings, workers):
    first = image_file("first.png", 120, 80)
    missing = tmp_path / "missing.png"
    last = image_file("last.png", 90, 60)

    error_handler = Mock(spec=ErrorHandler)
    seen = []

    results = process_batch(
        [first, missing, last],
        readings,
        max_workers=workers,
        error_handler=error_handler,
        on_result=seen.append,
    )

    assert [result.source for result in results] == [first, missing, last]
    assert [result.ok for result in results] == [True, False, True]
    assert isinstance(results[1].error, ImageDecodeError)
    assert results[0].processed.artifact.width == 120
    assert results[2].processed.artifact.width == 90
    assert seen == results

    error_handler.handle.assert_called_once()
    call = error_handler.handle.call_args
    assert call.args[0] is results[1].error
    assert call.kwargs["context"] == {"source": str(missing)}


def test_batch_publishes_rendered_events(tmp_path, image_file, readings):
    bus = EventBus()
    events = []
    bus.subscribe(ArtifactRenderedEvent, events.append)

    sources = [image_file("a.png", 64, 48), tmp_path / "nope.png", image_file("b.png", 32, 24)]
    process_batch(sources, readings, event_bus=bus)

    assert [(event.width, event.height) for event in events] == [(64, 48), (32, 24)]
    assert all(event.size_bytes > 0 for event in events)
    assert events[0].source == sources[0]


def test_batch_without_handler_logs_failures(tmp_path, readings, caplog):
    with caplog.at_level("ERROR", logger="thermo_overlay.core.pipeline"):
        results = process_batch([tmp_path / "gone.png"], readings)

    assert not results[0].ok
    assert "gone.png" in caplog.text


def test_empty_batch(readings):
    assert process_batch([], readings) == []


@pytest.mark.parametrize("workers", [1, 2])
def test_failing_result_callback_only_fails_that_item(image_file, readings, workers):
    sources = [image_file("one.png", 40, 30), image_file("two.png", 50, 30)]
    bus = EventBus()
    errors = []
    bus.subscribe(ErrorOccurredEvent, errors.append)
    seen = []

    def _store(result):
        seen.append(result.source)
        if result.source == sources[0]:
            raise FileExistsError("exports is a file")

    results = process_batch(
        sources,
        readings,
        max_workers=workers,
        error_handler=ErrorHandler(logging.getLogger("test"), bus),
        on_result=_store,
    )

    assert seen == sources
    assert [result.ok for result in results] == [False, True]
    assert isinstance(results[0].error, FileExistsError)
    assert [event.source for event in errors] == [str(sources[0])]


def test_unexpected_callback_errors_propagate(image_file, readings):
    def _broken(result):
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        process_batch([image_file("x.png", 8, 8)], readings, on_result=_broken)
