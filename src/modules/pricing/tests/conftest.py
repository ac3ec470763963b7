"""Shared catalog fixtures for pricing tests."""

from __future__ import annotations

import pytest

from src.modules.catalog.schemas import Catalog


def make_catalog(**overrides) -> Catalog:
    """A small catalog: a door with priced and unpriced materials, a curtain
    measured by length, and the freeform "other" product."""
    document = {
        "products": [
            {
                "id": "door",
                "en": "Door",
                "ar": "باب",
                "measurementMode": "area_width_height",
                "basePricePerM2": 400,
                "dimensions": {"width": True, "height": True, "length": False},
                "subtypes": [
                    {
                        "id": "normal",
                        "materials": [
                            {"id": "aluminum", "pricePerM2": 500},
                            {"id": "wood"},
                        ],
                    },
                    {"id": "double", "materials": [{"id": "wood"}]},
                ],
                "colors": [{"id": "white"}, {"id": "bronze"}],
                "accessories": [
                    {"id": "handle", "price": 50},
                    {"id": "lock", "price": 120},
                ],
            },
            {
                "id": "curtain",
                "measurementMode": "length_only",
                "dimensions": {"width": False, "height": False, "length": True},
                "subtypes": [{"id": "normal", "materials": ["fabric"]}],
            },
            {"id": "other", "measurementMode": "other_freeform"},
        ],
        "priceRules": {"curtain": 30},
    }
    document.update(overrides)
    return Catalog.model_validate(document)


@pytest.fixture
def catalog() -> Catalog:
    return make_catalog()
