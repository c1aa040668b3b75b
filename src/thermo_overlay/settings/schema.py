"""Schema helpers for the application settings file."""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import DEFAULT_FONT_SCALE, FONT_SCALE_RANGE

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "thermo-overlay/settings.schema.json",
    "type": "object",
    "required": ["schema", "font_scale"],
    "properties": {
        "schema": {"const": "thermo-overlay/settings@1"},
        "font_scale": {
            "type": "number",
            "minimum": FONT_SCALE_RANGE[0],
            "maximum": FONT_SCALE_RANGE[1],
        },
        "export_dir": {"type": ["string", "null"]},
        "database_path": {"type": ["string", "null"]},
        "batch_workers": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "thermo-overlay/settings@1",
    "font_scale": DEFAULT_FONT_SCALE,
    "export_dir": None,
    "database_path": None,
    "batch_workers": 1,
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)

_PATH_KEYS = ("export_dir", "database_path")


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _PATH_KEYS:
                if value in {None, ""}:
                    merged[key] = None
                    continue
                try:
                    merged[key] = os.fspath(value)
                except TypeError:
                    continue
                continue
            if key == "font_scale" and isinstance(value, (int, float)) and not isinstance(value, bool):
                # The slider steps by 0.1; keep the stored value on that grid.
                merged[key] = round(float(value), 1)
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
