"""Qt widgets for interactive crop selection."""

from .crop_dialog import CropDialog, run_crop_dialog
from .crop_widget import CropSelectionWidget, cursor_for_action, qimage_from_pil

__all__ = ["CropDialog", "CropSelectionWidget", "cursor_for_action", "qimage_from_pil", "run_crop_dialog"]
