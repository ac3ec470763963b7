"""Catalog cache keys and the structural schema of the catalog document."""

from __future__ import annotations

CACHE_PREFIX = "catalog"
CACHE_KEY_FRESH = f"{CACHE_PREFIX}:fresh"
# Never expires; served when the store is unreachable
CACHE_KEY_LAST_GOOD = f"{CACHE_PREFIX}:last_good"

_ENTRY_REF = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {
            "type": "object",
            "anyOf": [{"required": ["id"]}, {"required": ["value"]}],
        },
    ]
}

_PRICE = {"type": ["number", "string", "null"]}

CATALOG_DOCUMENT_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["products"],
    "properties": {
        "products": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": ["string", "number"]},
                    "measurementMode": {"type": ["string", "null"]},
                    "basePricePerM2": _PRICE,
                    "dimensions": {
                        "type": ["object", "null"],
                        "properties": {
                            "width": {"type": "boolean"},
                            "height": {"type": "boolean"},
                            "length": {"type": "boolean"},
                        },
                    },
                    "subtypes": {
                        "type": "array",
                        "items": {
                            "allOf": [
                                _ENTRY_REF,
                                {
                                    "properties": {
                                        "materials": {"type": "array", "items": _ENTRY_REF},
                                    }
                                },
                            ]
                        },
                    },
                    "materials": {"type": "array", "items": _ENTRY_REF},
                    "colors": {"type": "array", "items": _ENTRY_REF},
                    "accessories": {
                        "type": "array",
                        "items": {
                            "allOf": [_ENTRY_REF, {"properties": {"price": _PRICE}}]
                        },
                    },
                },
            },
        },
    },
}
