"""Structural validation of catalog documents read from the options store."""

from __future__ import annotations

from jsonschema import Draft7Validator

from src.exceptions import ValidationException
from src.modules.catalog.constants import CATALOG_DOCUMENT_SCHEMA

_validator = Draft7Validator(CATALOG_DOCUMENT_SCHEMA)


def validate_catalog_document(document: object) -> None:
    """Check *document* against the catalog JSON Schema (Draft 7).

    Raises :class:`ValidationException` with per-path detail on failure.
    Value-level leniency (unparseable prices, unknown modes) is left to the
    pydantic models.
    """
    errors = sorted(_validator.iter_errors(document), key=lambda e: list(e.absolute_path))
    if not errors:
        return

    details = []
    for error in errors:
        field_path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        details.append({"field": field_path, "message": error.message})

    raise ValidationException(
        message="Catalog document does not match the expected structure",
        details=details,
    )
