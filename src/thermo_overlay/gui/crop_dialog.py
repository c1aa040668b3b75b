"""Modal crop picker hosting :class:`CropSelectionWidget`."""

from __future__ import annotations

from typing import Optional

from PIL import Image
from PySide6.QtWidgets import QApplication, QDialog, QDialogButtonBox, QVBoxLayout, QWidget

from ..crop.geometry import NormalisedRect
from .crop_widget import CropSelectionWidget


class CropDialog(QDialog):
    """Let the user drag a crop over *image*, then confirm with Done or Cancel."""

    def __init__(
        self,
        image: Image.Image,
        initial: Optional[NormalisedRect] = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Crop image")
        self._accepted_rect: Optional[NormalisedRect] = None

        self._view = CropSelectionWidget(self)
        self._view.set_image(image)
        if initial is not None:
            self._view.set_crop_rect(initial)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel,
            parent=self,
        )
        buttons.button(QDialogButtonBox.StandardButton.Ok).setText("Done")
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(self._view, 1)
        layout.addWidget(buttons)
        self.resize(960, 720)

    def crop_widget(self) -> CropSelectionWidget:
        return self._view

    def accepted_rect(self) -> Optional[NormalisedRect]:
        """The rectangle confirmed with Done, or ``None`` if the dialog was cancelled."""
        return self._accepted_rect

    def accept(self) -> None:
        self._view.controller().release()
        self._accepted_rect = self._view.crop_rect()
        super().accept()

    def reject(self) -> None:
        self._view.controller().cancel()
        self._accepted_rect = None
        super().reject()


def run_crop_dialog(
    image: Image.Image,
    initial: Optional[NormalisedRect] = None,
) -> Optional[NormalisedRect]:
    """Show a modal :class:`CropDialog` and return the confirmed rectangle."""
    app = QApplication.instance() or QApplication([])
    dialog = CropDialog(image, initial)
    try:
        dialog.exec()
        return dialog.accepted_rect()
    finally:
        dialog.deleteLater()
        app.processEvents()
