"""Pricing modifiers and measurement-mode aliases."""

from __future__ import annotations

from src.models.enums import MeasurementMode

# Applied to a product's base price when the selected material has no price of its own
SUBTYPE_FACTORS: dict[str, float] = {
    "normal": 1.0,
    "center": 1.1,
    "double": 1.2,
}

COLOR_FACTORS: dict[str, float] = {
    "white": 1.00,
    "black": 1.05,
    "silver": 1.07,
    "bronze": 1.10,
    "gray": 1.05,
    "beige": 1.05,
}

DEFAULT_FACTOR = 1.0

DEFAULT_MEASUREMENT_MODE = MeasurementMode.AREA_WIDTH_HEIGHT

# Short codes still written by older catalog documents
MEASUREMENT_MODE_ALIASES: dict[str, MeasurementMode] = {
    "area_wh": MeasurementMode.AREA_WIDTH_HEIGHT,
    "area_wl": MeasurementMode.AREA_WIDTH_LENGTH,
    "custom_wh": MeasurementMode.CUSTOM_WIDTH_HEIGHT,
    "other_3d": MeasurementMode.OTHER_FREEFORM,
}

# Largest accepted width/height/length; larger inputs are clamped to it
MAX_DIMENSION = 10_000.0
