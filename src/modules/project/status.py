"""Conversion between the string and integer encodings of project status."""

from __future__ import annotations

from src.exceptions import ValidationException
from src.models.enums import ProjectStatus
from src.modules.project.constants import STATUS_BY_CODE, STATUS_CODES

_BY_LOWER_NAME: dict[str, ProjectStatus] = {
    **{status.value.lower(): status for status in ProjectStatus},
    **{status.name.lower(): status for status in ProjectStatus},
}


def normalize_status(raw: ProjectStatus | str | int) -> ProjectStatus:
    """Accept ``ProjectStatus``, its value or name in any case, or its integer code."""
    if isinstance(raw, ProjectStatus):
        return raw
    if isinstance(raw, int) and not isinstance(raw, bool):
        status = STATUS_BY_CODE.get(raw)
    elif isinstance(raw, str):
        key = raw.strip()
        if key.isdecimal():
            try:
                status = STATUS_BY_CODE.get(int(key))
            except ValueError:
                # Longer than the int digit limit; no such code
                status = None
        else:
            status = _BY_LOWER_NAME.get(key.lower())
    else:
        status = None
    if status is None:
        raise ValidationException(
            f"Unknown project status {raw!r}",
            details=[{"field": "status", "value": str(raw)}],
        )
    return status


def encode_status(status: ProjectStatus) -> int:
    return STATUS_CODES[status]
