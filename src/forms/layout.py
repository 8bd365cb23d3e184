"""Overlay layout map: which record field is drawn where on the template.

Positions are millimetres from the top-left corner of the page, measured
from the printed application template. Swapping templates means swapping
the JSON file, not the drawing code.
"""

import json
import logging

from src.core.paths import LAYOUT_PATH

log = logging.getLogger("hiring.layout")

FIELD_KINDS = ("text", "checkbox", "box")
_REQUIRED_KEYS = ("kind", "x", "y", "w", "h")


class LayoutError(ValueError):
    pass


def load_layout(path: str = None) -> dict:
    """Load and sanity-check a layout map."""
    path = path or LAYOUT_PATH
    with open(path, "r") as f:
        layout = json.load(f)
    validate_layout(layout)
    return layout


def validate_layout(layout: dict):
    page = layout.get("page") or {}
    if not page.get("width_mm") or not page.get("height_mm"):
        raise LayoutError("layout page size missing")

    fields = layout.get("fields")
    if not isinstance(fields, dict) or not fields:
        raise LayoutError("layout has no fields")

    for name, spec in fields.items():
        missing = [k for k in _REQUIRED_KEYS if k not in spec]
        if missing:
            raise LayoutError(f"field {name} missing {', '.join(missing)}")
        if spec["kind"] not in FIELD_KINDS:
            raise LayoutError(f"field {name} has unknown kind {spec['kind']!r}")
        if spec["w"] <= 0 or spec["h"] <= 0:
            raise LayoutError(f"field {name} has an empty box")
        if (spec["x"] + spec["w"] > page["width_mm"]
                or spec["y"] + spec["h"] > page["height_mm"]):
            raise LayoutError(f"field {name} runs off the page")


def field_value(record, name: str, spec: dict):
    """Value for one layout slot. Missing attributes render as an empty cell."""
    value = getattr(record, spec.get("source", name), "")
    if value is None:
        return ""
    return value
