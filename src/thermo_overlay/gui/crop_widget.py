"""
Crop selection widget.

Paints the source image with the current selection, darkens everything
outside it and forwards mouse input to :class:`CropInteractionController`.
The widget grabs the mouse for the duration of a gesture so a drag that
leaves the selection keeps resizing it. Anything that ends the grab early,
Escape included, cancels the gesture and keeps the last rectangle.
"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image
from PIL.ImageQt import ImageQt
from PySide6.QtCore import QEvent, QPointF, QRectF, QSize, Qt, Signal
from PySide6.QtGui import (
    QColor,
    QHideEvent,
    QImage,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPaintEvent,
    QPen,
    QPixmap,
)
from PySide6.QtWidgets import QWidget

from ..config import BOX_OPACITY, HANDLE_LENGTH
from ..crop.controller import CropInteractionController
from ..crop.engine import ContainerBox, GestureAction
from ..crop.geometry import NormalisedRect

_LOGGER = logging.getLogger(__name__)

_MASK_COLOR = QColor(0, 0, 0, round(255 * BOX_OPACITY))
_GRID_COLOR = QColor(255, 255, 255, 77)


def qimage_from_pil(image: Image.Image) -> QImage:
    """Return a detached :class:`QImage` copy of *image*."""
    return QImage(ImageQt(image.convert("RGBA"))).copy()


def cursor_for_action(action: Optional[GestureAction]) -> Qt.CursorShape:
    """Return the appropriate cursor shape for a given gesture."""
    return {
        GestureAction.RESIZE_NW: Qt.CursorShape.SizeFDiagCursor,
        GestureAction.RESIZE_SE: Qt.CursorShape.SizeFDiagCursor,
        GestureAction.RESIZE_NE: Qt.CursorShape.SizeBDiagCursor,
        GestureAction.RESIZE_SW: Qt.CursorShape.SizeBDiagCursor,
        GestureAction.MOVE: Qt.CursorShape.SizeAllCursor,
    }.get(action, Qt.CursorShape.ArrowCursor)


class CropSelectionWidget(QWidget):
    """Interactive crop rectangle over a single image."""

    cropChanged = Signal(object)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._pixmap = QPixmap()
        self._controller = CropInteractionController(
            container_provider=self.container_box,
            on_crop_changed=self._handle_crop_changed,
            on_capture=self.grabMouse,
            on_release=self.releaseMouse,
        )
        self.setMouseTracking(True)
        self.setMinimumSize(QSize(120, 120))
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def set_image(self, image: QImage | Image.Image) -> None:
        """Show *image* and reset the selection to the full frame."""
        if isinstance(image, Image.Image):
            image = qimage_from_pil(image)
        self._pixmap = QPixmap.fromImage(image)
        self._controller.reset()
        self.update()

    def has_image(self) -> bool:
        return not self._pixmap.isNull()

    def crop_rect(self) -> NormalisedRect:
        return self._controller.crop_rect()

    def set_crop_rect(self, rect: NormalisedRect) -> None:
        self._controller.set_crop_rect(rect)

    def reset_crop(self) -> None:
        self._controller.reset()

    def controller(self) -> CropInteractionController:
        return self._controller

    def image_rect(self) -> QRectF:
        """Return where the image is drawn, letterboxed inside the widget."""
        if self._pixmap.isNull():
            return QRectF(0.0, 0.0, float(self.width()), float(self.height()))
        size = self._pixmap.size().scaled(self.size(), Qt.AspectRatioMode.KeepAspectRatio)
        left = (self.width() - size.width()) / 2.0
        top = (self.height() - size.height()) / 2.0
        return QRectF(left, top, float(size.width()), float(size.height()))

    def container_box(self) -> ContainerBox:
        rect = self.image_rect()
        return ContainerBox(rect.left(), rect.top(), rect.width(), rect.height())

    # ------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------
    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() != Qt.MouseButton.LeftButton or self._pixmap.isNull():
            super().mousePressEvent(event)
            return
        if self._controller.press(_point(event.position())):
            self.setCursor(cursor_for_action(self._controller.active_action()))
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        pos = _point(event.position())
        if self._controller.is_dragging():
            self._controller.move(pos)
            event.accept()
            return
        if not self._pixmap.isNull():
            self.setCursor(cursor_for_action(self._controller.action_at(pos)))
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton and self._controller.is_dragging():
            self._controller.release()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        if event.key() == Qt.Key.Key_Escape and self._controller.is_dragging():
            self._controller.cancel()
            event.accept()
            return
        super().keyPressEvent(event)

    def event(self, event: QEvent) -> bool:  # noqa: A003
        # Losing the grab mid-drag (another window, a popup) ends the gesture.
        if event.type() == QEvent.Type.UngrabMouse and self._controller.is_dragging():
            _LOGGER.debug("Mouse grab lost; cancelling crop gesture")
            self._controller.cancel()
        return super().event(event)

    def hideEvent(self, event: QHideEvent) -> None:  # noqa: N802
        self._controller.cancel()
        super().hideEvent(event)

    def paintEvent(self, event: QPaintEvent) -> None:  # noqa: N802
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), Qt.GlobalColor.black)
            if self._pixmap.isNull():
                return
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            image_rect = self.image_rect()
            painter.drawPixmap(image_rect, self._pixmap, QRectF(self._pixmap.rect()))
            self._paint_selection(painter, image_rect)
        finally:
            painter.end()

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _handle_crop_changed(self, rect: NormalisedRect) -> None:
        self.update()
        self.cropChanged.emit(rect)

    def _paint_selection(self, painter: QPainter, image_rect: QRectF) -> None:
        left, top, right, bottom = self._controller.view_rect()
        selection = QRectF(QPointF(left, top), QPointF(right, bottom))

        # Mask: top, bottom, left, right bands around the selection.
        painter.fillRect(
            QRectF(image_rect.left(), image_rect.top(), image_rect.width(), top - image_rect.top()),
            _MASK_COLOR,
        )
        painter.fillRect(
            QRectF(image_rect.left(), bottom, image_rect.width(), image_rect.bottom() - bottom),
            _MASK_COLOR,
        )
        painter.fillRect(QRectF(image_rect.left(), top, left - image_rect.left(), bottom - top), _MASK_COLOR)
        painter.fillRect(QRectF(right, top, image_rect.right() - right, bottom - top), _MASK_COLOR)

        # Rule-of-thirds grid.
        painter.setPen(QPen(_GRID_COLOR, 1.0))
        for step in (1, 2):
            x = left + selection.width() * step / 3.0
            y = top + selection.height() * step / 3.0
            painter.drawLine(QPointF(x, top), QPointF(x, bottom))
            painter.drawLine(QPointF(left, y), QPointF(right, y))

        painter.setPen(QPen(Qt.GlobalColor.white, 2.0))
        painter.drawRect(selection)

        # Corner handles drawn as thick L shapes.
        painter.setPen(QPen(Qt.GlobalColor.white, 4.0))
        length = min(HANDLE_LENGTH, selection.width() / 2.0, selection.height() / 2.0)
        for cx, cy, sx, sy in (
            (left, top, 1, 1),
            (right, top, -1, 1),
            (left, bottom, 1, -1),
            (right, bottom, -1, -1),
        ):
            painter.drawLine(QPointF(cx, cy), QPointF(cx + sx * length, cy))
            painter.drawLine(QPointF(cx, cy), QPointF(cx, cy + sy * length))


def _point(position: QPointF) -> tuple[float, float]:
    return (float(position.x()), float(position.y()))
