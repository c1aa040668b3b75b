"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_FONT_SCALE
from .core.pipeline import process_batch, process_image
from .crop.geometry import NormalisedRect
from .errors import BatchProcessingError, ThermoOverlayError
from .errors.handler import ErrorHandler, ErrorOccurredEvent
from .events.bus import ArtifactExportedEvent, ArtifactRenderedEvent, EventBus
from .export import download_name, original_name, write_artifact
from .infrastructure.db.pool import ConnectionPool
from .infrastructure.repositories.sqlite_record_repository import SQLiteRecordRepository
from .models import BatchItemResult, ProcessedImage, ReadingsRecord
from .settings.manager import SettingsManager
from .utils.image_loader import load_image

_LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="Burn temperature readouts onto photos and keep a history of them")
console = Console()


@dataclass
class _AppContext:
    settings: SettingsManager
    pool: Optional[ConnectionPool] = field(default=None, repr=False)

    def repository(self) -> SQLiteRecordRepository:
        if self.pool is None:
            self.pool = ConnectionPool(self.settings.database_path())
        return SQLiteRecordRepository(self.pool)

    def close(self) -> None:
        if self.pool is not None:
            self.pool.close_all()


class _StampSummary:
    """Collects rendered, exported and failed items into a rich table."""

    def __init__(self, bus: EventBus) -> None:
        self.table = Table(title="Rendered images")
        for column in ("Source", "Size", "Record", "Output"):
            self.table.add_column(column)
        self.rendered = 0
        self.failed = 0
        self.total_bytes = 0
        self._bus = bus
        self._subscriptions = [
            bus.subscribe(ArtifactRenderedEvent, self._on_rendered),
            bus.subscribe(ArtifactExportedEvent, self._on_exported),
            bus.subscribe(ErrorOccurredEvent, self._on_error),
        ]

    def close(self) -> None:
        for subscription in self._subscriptions:
            self._bus.unsubscribe(subscription)
        self._subscriptions = []

    def _on_rendered(self, event: ArtifactRenderedEvent) -> None:
        self.rendered += 1
        self.total_bytes += event.size_bytes

    def _on_exported(self, event: ArtifactExportedEvent) -> None:
        self.table.add_row(
            escape(str(event.source)),
            f"{event.width}x{event.height}",
            "-" if event.record_id is None else str(event.record_id),
            escape(str(event.path)),
        )

    def _on_error(self, event: ErrorOccurredEvent) -> None:
        self.failed += 1
        self.table.add_row(escape(event.source or "-"), "-", "-", f"[red]{escape(str(event.error))}")


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ThermoOverlayError as exc:
            print(f"[red]Error: {escape(str(exc))}")
            raise typer.Exit(1) from exc

    return wrapper


def _store_and_export(
    repository: Optional[SQLiteRecordRepository],
    readings: ReadingsRecord,
    processed: ProcessedImage,
    destination: Path,
) -> tuple[Optional[int], Path]:
    """Record *processed* in the history and write its artifact.

    A record whose artifact could not be written is removed again, so the
    history only ever lists images that were exported.
    """
    artifact = processed.artifact
    record_id = None
    if repository is not None:
        record_id = repository.add(readings, processed.original_bytes, artifact.data)
    try:
        target = write_artifact(artifact.data, destination, download_name(record_id=record_id))
    except (ThermoOverlayError, OSError):
        if record_id is not None:
            repository.delete(record_id)
        raise
    return record_id, target


def _resolve_scale(settings: SettingsManager, font_scale: Optional[float]) -> float:
    return font_scale if font_scale is not None else settings.get("font_scale", DEFAULT_FONT_SCALE)


@app.callback()
def main(
    ctx: typer.Context,
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file to use"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Load settings and configure logging for every command."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = SettingsManager(settings_path)
    try:
        settings.load()
    except ThermoOverlayError as exc:
        print(f"[red]Error: {escape(str(exc))}")
        raise typer.Exit(1) from exc
    app_ctx = _AppContext(settings=settings)
    ctx.obj = app_ctx
    ctx.call_on_close(app_ctx.close)


@app.command()
@_handle_errors
def stamp(
    ctx: typer.Context,
    images: List[Path] = typer.Argument(..., help="Source images"),
    t1: str = typer.Option(..., "--t1", help="T1 reading"),
    t2: str = typer.Option(..., "--t2", help="T2 reading"),
    t3: str = typer.Option(..., "--t3", help="T3 reading"),
    t4: str = typer.Option(..., "--t4", help="T4 reading"),
    pt: str = typer.Option("", "--pt", help="Optional PT reading"),
    font_scale: Optional[float] = typer.Option(None, "--font-scale", help="Label size multiplier"),
    crop: Optional[str] = typer.Option(None, "--crop", help="Crop as 'x,y,w,h' in percent"),
    out: Optional[Path] = typer.Option(None, "--out", help="Directory for rendered images"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not record in history"),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Parallel renders"),
) -> None:
    """Render the readings box onto each image."""

    app_ctx: _AppContext = ctx.obj
    settings = app_ctx.settings
    readings = ReadingsRecord(t1=t1, t2=t2, t3=t3, t4=t4, pt=pt)
    crop_rect = NormalisedRect.parse(crop) if crop else None
    destination = out or settings.export_dir()
    repository = None if no_save else app_ctx.repository()

    bus = EventBus()
    summary = _StampSummary(bus)

    def _persist(result: BatchItemResult) -> None:
        if not result.ok:
            return
        record_id, target = _store_and_export(repository, readings, result.processed, destination)
        artifact = result.processed.artifact
        bus.publish(ArtifactExportedEvent(
            source=result.label,
            path=target,
            width=artifact.width,
            height=artifact.height,
            record_id=record_id,
        ))

    try:
        results = process_batch(
            images,
            readings,
            _resolve_scale(settings, font_scale),
            crop_rect,
            max_workers=workers or settings.get("batch_workers", 1),
            error_handler=ErrorHandler(_LOGGER, bus),
            event_bus=bus,
            on_result=_persist,
        )
    finally:
        summary.close()
    console.print(summary.table)
    failed = sum(1 for result in results if not result.ok)
    if failed:
        raise BatchProcessingError(f"{failed} of {len(results)} images failed")
    print(f"[green]Processed {len(results)} images ({summary.total_bytes} bytes)")


@app.command()
@_handle_errors
def crop(
    ctx: typer.Context,
    image: Path = typer.Argument(..., help="Image to crop"),
    initial: Optional[str] = typer.Option(None, "--crop", help="Starting crop as 'x,y,w,h'"),
    t1: Optional[str] = typer.Option(None, "--t1", help="T1 reading"),
    t2: Optional[str] = typer.Option(None, "--t2", help="T2 reading"),
    t3: Optional[str] = typer.Option(None, "--t3", help="T3 reading"),
    t4: Optional[str] = typer.Option(None, "--t4", help="T4 reading"),
    pt: str = typer.Option("", "--pt", help="Optional PT reading"),
    font_scale: Optional[float] = typer.Option(None, "--font-scale", help="Label size multiplier"),
    out: Optional[Path] = typer.Option(None, "--out", help="Directory for the rendered image"),
    no_save: bool = typer.Option(False, "--no-save", help="Do not record in history"),
) -> None:
    """Pick a crop interactively; with readings, stamp the cropped image."""

    # Qt widgets are only loaded for the interactive command.
    from .gui import crop_dialog

    app_ctx: _AppContext = ctx.obj
    values = {"t1": t1, "t2": t2, "t3": t3, "t4": t4}
    readings = None
    if any(value is not None for value in values.values()):
        readings = ReadingsRecord.from_mapping({**values, "pt": pt})

    source = load_image(image)
    try:
        rect = crop_dialog.run_crop_dialog(source, NormalisedRect.parse(initial) if initial else None)
    finally:
        source.close()
    if rect is None:
        print("[yellow]Crop cancelled")
        return
    print(rect.to_text())
    if readings is None:
        return

    processed = process_image(image, readings, _resolve_scale(app_ctx.settings, font_scale), rect)
    repository = None if no_save else app_ctx.repository()
    record_id, target = _store_and_export(
        repository, readings, processed, out or app_ctx.settings.export_dir()
    )
    suffix = "" if record_id is None else f" as record {record_id}"
    print(f"[green]Saved {escape(str(target))}{suffix}")


@app.command()
@_handle_errors
def history(ctx: typer.Context) -> None:
    """List stored records, newest first."""

    repository = ctx.obj.repository()
    records = repository.list_all()
    if not records:
        print("No records yet")
        return
    table = Table(title="History")
    table.add_column("ID", justify="right")
    table.add_column("Taken")
    for key in ("T1", "T2", "T3", "T4", "PT"):
        table.add_column(key, justify="right")
    for record in records:
        readings = record.readings
        table.add_row(
            str(record.id),
            record.created_at.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            escape(readings.t1),
            escape(readings.t2),
            escape(readings.t3),
            escape(readings.t4),
            escape(readings.pt) or "-",
        )
    console.print(table)


@app.command()
@_handle_errors
def export(
    ctx: typer.Context,
    record_id: int = typer.Argument(..., help="Record to export"),
    out: Optional[Path] = typer.Option(None, "--out", help="Destination directory"),
    original: bool = typer.Option(False, "--original", help="Export the unprocessed source"),
) -> None:
    """Write a stored image to disk."""

    record = ctx.obj.repository().get(record_id)
    data = record.original_bytes if original else record.processed_bytes
    name = original_name(record.id, data) if original else download_name(record_id=record.id)
    try:
        target = write_artifact(data, out or ctx.obj.settings.export_dir(), name)
    except OSError as exc:
        print(f"[red]Error: {escape(str(exc))}")
        raise typer.Exit(1) from exc
    print(f"[green]Exported record {record.id} to {escape(str(target))}")


@app.command()
@_handle_errors
def delete(
    ctx: typer.Context,
    record_id: int = typer.Argument(..., help="Record to delete"),
) -> None:
    """Remove a record from the history."""

    ctx.obj.repository().delete(record_id)
    print(f"[green]Deleted record {record_id}")


if __name__ == "__main__":
    app()
