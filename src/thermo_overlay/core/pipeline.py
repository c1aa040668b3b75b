"""Decode, crop, composite and encode source images."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from ..crop.geometry import NormalisedRect, crop_image
from ..errors import ThermoOverlayError
from ..errors.handler import ErrorHandler
from ..events.bus import ArtifactRenderedEvent, EventBus
from ..models import BatchItemResult, ProcessedImage, ReadingsRecord
from ..utils.image_loader import ImageSource, describe_source, open_image, read_source_bytes
from .overlay import render_artifact

_LOGGER = logging.getLogger(__name__)


def process_image(
    source: ImageSource,
    readings: ReadingsRecord,
    font_scale: float = 1.0,
    crop: Optional[NormalisedRect] = None,
) -> ProcessedImage:
    """Render the overlay for a single *source*.

    When *crop* is given the selected region replaces the source before
    compositing. The returned original bytes are the untouched input.
    """
    original = read_source_bytes(source)
    with open_image(original) as image:
        if crop is not None and crop != NormalisedRect.full():
            with crop_image(image, crop) as region:
                artifact = render_artifact(region, readings, font_scale)
        else:
            artifact = render_artifact(image, readings, font_scale)
    _LOGGER.info(
        "Processed %s -> %dx%d (%d bytes)",
        describe_source(source),
        artifact.width,
        artifact.height,
        artifact.size_bytes,
    )
    return ProcessedImage(original_bytes=original, artifact=artifact)


def process_batch(
    sources: Iterable[ImageSource],
    readings: ReadingsRecord,
    font_scale: float = 1.0,
    crop: Optional[NormalisedRect] = None,
    *,
    max_workers: int = 1,
    error_handler: Optional[ErrorHandler] = None,
    event_bus: Optional[EventBus] = None,
    on_result: Optional[Callable[[BatchItemResult], None]] = None,
) -> list[BatchItemResult]:
    """Process every source exactly once, isolating failures per item.

    Results come back in input order. A failing item is reported through
    *error_handler* and recorded in its result; the rest of the batch keeps
    going. *on_result* runs on the calling thread, in input order, so it can
    persist each success as it arrives. When it raises a
    :class:`ThermoOverlayError` or :class:`OSError` the item is reported and
    recorded as failed like any other.
    """
    items = list(sources)

    def _run(source: ImageSource) -> BatchItemResult:
        try:
            processed = process_image(source, readings, font_scale, crop)
        except ThermoOverlayError as exc:
            return BatchItemResult(source=source, error=exc)
        return BatchItemResult(source=source, processed=processed)

    if max_workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = executor.map(_run, items)
            results = _collect(outcomes, error_handler, event_bus, on_result)
    else:
        results = _collect(map(_run, items), error_handler, event_bus, on_result)

    failed = sum(1 for result in results if not result.ok)
    _LOGGER.info("Batch finished: %d succeeded, %d failed", len(results) - failed, failed)
    return results


def _collect(
    outcomes: Iterable[BatchItemResult],
    error_handler: Optional[ErrorHandler],
    event_bus: Optional[EventBus],
    on_result: Optional[Callable[[BatchItemResult], None]],
) -> list[BatchItemResult]:
    results: list[BatchItemResult] = []
    for result in outcomes:
        if result.error is not None:
            _report(result, error_handler)
        elif event_bus is not None and result.processed is not None:
            artifact = result.processed.artifact
            event_bus.publish(ArtifactRenderedEvent(
                source=result.source,
                width=artifact.width,
                height=artifact.height,
                size_bytes=artifact.size_bytes,
            ))
        if on_result is not None:
            try:
                on_result(result)
            except (ThermoOverlayError, OSError) as exc:
                result = BatchItemResult(source=result.source, error=exc)
                _report(result, error_handler)
        results.append(result)
    return results


def _report(result: BatchItemResult, error_handler: Optional[ErrorHandler]) -> None:
    if error_handler is not None:
        error_handler.handle(result.error, context={"source": result.label})
    else:
        _LOGGER.error("Failed to process %s: %s", result.label, result.error)
