"""Measurement calculator: turns raw dimensions into a single scalar measure."""

from __future__ import annotations

import math
from collections.abc import Callable

from src.models.enums import MeasurementMode
from src.modules.pricing.constants import (
    DEFAULT_MEASUREMENT_MODE,
    MAX_DIMENSION,
    MEASUREMENT_MODE_ALIASES,
)


def clamp_dimension(value: float | int | str | None) -> float:
    """Coerce a raw dimension into ``[0, MAX_DIMENSION]`` (0 when unusable)."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return min(number, MAX_DIMENSION)


def parse_measurement_mode(raw: MeasurementMode | str | None) -> MeasurementMode:
    """Map a catalog mode string (long or legacy short form) onto the enum.

    Unknown or missing values fall back to ``area_width_height``.
    """
    if isinstance(raw, MeasurementMode):
        return raw
    if not raw:
        return DEFAULT_MEASUREMENT_MODE
    key = str(raw).strip().lower()
    if key in MEASUREMENT_MODE_ALIASES:
        return MEASUREMENT_MODE_ALIASES[key]
    try:
        return MeasurementMode(key)
    except ValueError:
        return DEFAULT_MEASUREMENT_MODE


_MEASURE_RULES: dict[MeasurementMode, Callable[[float, float, float], float]] = {
    MeasurementMode.AREA_WIDTH_HEIGHT: lambda w, h, ln: w * h,
    MeasurementMode.AREA_WIDTH_LENGTH: lambda w, h, ln: w * ln,
    MeasurementMode.HEIGHT_ONLY: lambda w, h, ln: h,
    MeasurementMode.LENGTH_ONLY: lambda w, h, ln: ln,
    MeasurementMode.CUSTOM_WIDTH_HEIGHT: lambda w, h, ln: w * h,
    # Freeform items are never priced; the measure is informational only
    MeasurementMode.OTHER_FREEFORM: lambda w, h, ln: w * h,
}


def compute_measure(
    mode: MeasurementMode | str | None,
    width: float | None = 0,
    height: float | None = 0,
    length: float | None = 0,
) -> float:
    """Return the non-negative measure for *mode*.

    Negative, NaN, infinite or missing dimensions are clamped to 0 and
    oversized ones to ``MAX_DIMENSION`` before the rule is applied, so the
    result is always a finite value >= 0.
    """
    rule = _MEASURE_RULES[parse_measurement_mode(mode)]
    measure = rule(
        clamp_dimension(width),
        clamp_dimension(height),
        clamp_dimension(length),
    )
    return measure if math.isfinite(measure) else 0.0
