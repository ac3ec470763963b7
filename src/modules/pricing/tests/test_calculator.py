"""Tests for line-item pricing and quote aggregation."""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.exceptions import NotFoundException, ValidationException
from src.models.enums import MeasurementMode
from src.modules.catalog.schemas import Catalog
from src.modules.pricing.calculator import (
    FreeformPricing,
    StructuredPricing,
    aggregate_totals,
    price_line_item,
    quote_project,
    resolve_pricing_inputs,
    round_currency,
    validate_line_item,
)
from src.modules.pricing.constants import MAX_DIMENSION
from src.modules.pricing.schemas import LineItemInput


def _door(**kwargs) -> LineItemInput:
    fields = {
        "product_type": "door",
        "subtype": "normal",
        "material": "aluminum",
        "color": "white",
        "width": 2,
        "height": 1,
    }
    fields.update(kwargs)
    return LineItemInput(**fields)


class TestPriceLineItem:
    def test_material_price_used(self, catalog):
        priced = price_line_item(_door(), catalog)
        assert priced.price_per_unit == 500
        assert priced.measure == 2.0
        assert priced.total == 1000

    def test_accessory_added_once_per_unit(self, catalog):
        priced = price_line_item(_door(selected_accessories=["handle"]), catalog)
        assert priced.accessory_cost == 50
        assert priced.total == 1050

    def test_quantity_multiplies_unit_total(self, catalog):
        priced = price_line_item(
            _door(selected_accessories=["handle"], quantity=3), catalog
        )
        assert priced.total == 3150

    def test_doubling_quantity_doubles_total(self, catalog):
        single = price_line_item(_door(width=1.3, height=0.7), catalog)
        double = price_line_item(_door(width=1.3, height=0.7, quantity=2), catalog)
        assert double.total >= 2 * single.total - 1
        assert double.total >= single.total

    def test_fallback_uses_base_price(self, catalog):
        priced = price_line_item(_door(material="wood"), catalog)
        assert priced.price_per_unit == 400
        assert priced.total == 800

    def test_fallback_applies_subtype_and_color_factors(self, catalog):
        priced = price_line_item(
            _door(subtype="double", material="wood", color="bronze"), catalog
        )
        # 400 x 1.2 x 1.1
        assert priced.price_per_unit == 528
        assert priced.total == 1056

    def test_unknown_factors_default_to_one(self, catalog):
        priced = price_line_item(_door(material="wood", color="teal"), catalog)
        assert priced.price_per_unit == 400

    def test_legacy_price_rules_used_without_base_price(self, catalog):
        item = LineItemInput(
            product_type="curtain", subtype="normal", material="fabric", length=4
        )
        priced = price_line_item(item, catalog)
        assert priced.price_per_unit == 30
        assert priced.total == 120

    def test_no_base_price_anywhere_prices_zero(self):
        catalog = Catalog.model_validate({"products": [{"id": "shelf"}]})
        priced = price_line_item(
            LineItemInput(product_type="shelf", width=2, height=2), catalog
        )
        assert priced.price_per_unit == 0
        assert priced.total == 0

    def test_negative_dimensions_never_produce_negative_total(self, catalog):
        priced = price_line_item(_door(width=-5, selected_accessories=["lock"]), catalog)
        assert priced.measure == 0.0
        assert priced.total == 120

    def test_unknown_accessory_ignored(self, catalog):
        priced = price_line_item(_door(selected_accessories=["ghost"]), catalog)
        assert priced.accessory_cost == 0
        assert priced.total == 1000

    def test_duplicate_accessories_counted_once(self, catalog):
        priced = price_line_item(
            _door(selected_accessories=["handle", "handle"]), catalog
        )
        assert priced.total == 1050

    def test_rounds_half_up(self):
        catalog = Catalog.model_validate(
            {
                "products": [
                    {
                        "id": "panel",
                        "subtypes": [
                            {"id": "normal", "materials": [{"id": "m", "pricePerM2": 2.5}]}
                        ],
                    }
                ]
            }
        )
        item = LineItemInput(
            product_type="panel", subtype="normal", material="m", width=1, height=1
        )
        assert price_line_item(item, catalog).total == 3

    def test_unknown_product_raises(self, catalog):
        with pytest.raises(NotFoundException):
            price_line_item(LineItemInput(product_type="window"), catalog)

    def test_same_inputs_same_total(self, catalog):
        item = _door(width=1.37, height=2.11, selected_accessories=["lock"])
        assert price_line_item(item, catalog) == price_line_item(item, catalog)


class TestFreeform:
    def test_freeform_product_id_is_never_priced(self, catalog):
        item = LineItemInput(
            product_type="other",
            width=3,
            height=3,
            description="Custom pergola",
            custom_details={"name": "Pergola", "accessories": ["lights"]},
        )
        priced = price_line_item(item, catalog)
        assert priced.is_freeform is True
        assert priced.price_per_unit == 0
        assert priced.total == 0
        assert priced.custom_details["name"] == "Pergola"

    def test_freeform_id_not_required_in_catalog(self):
        priced = price_line_item(
            LineItemInput(product_type="other"), Catalog(products=[])
        )
        assert priced.total == 0

    def test_catalog_freeform_mode_resolves_to_freeform_variant(self):
        catalog = Catalog.model_validate(
            {"products": [{"id": "special", "measurementMode": "other_3d", "basePricePerM2": 99}]}
        )
        resolved = resolve_pricing_inputs(
            LineItemInput(product_type="special", width=2, height=2), catalog
        )
        assert isinstance(resolved, FreeformPricing)
        assert resolved.total() == 0

    def test_structured_variant_for_catalog_products(self, catalog):
        resolved = resolve_pricing_inputs(_door(), catalog)
        assert isinstance(resolved, StructuredPricing)
        assert resolved.total() == 1000


class TestAggregation:
    def test_empty_is_zero(self):
        assert aggregate_totals([]) == 0

    def test_single_item(self, catalog):
        priced = price_line_item(_door(), catalog)
        assert aggregate_totals([priced]) == priced.total

    def test_order_independent(self, catalog):
        a = price_line_item(_door(), catalog)
        b = price_line_item(_door(material="wood", quantity=2), catalog)
        assert aggregate_totals([a, b]) == aggregate_totals([b, a]) == 1000 + 1600

    def test_quote_project_sums_main_and_additional(self, catalog):
        quote = quote_project(
            _door(),
            [_door(selected_accessories=["handle"])],
            catalog,
        )
        assert quote.baseline_total == 2050
        assert len(quote.additional_items) == 1

    def test_freeform_main_item_contributes_zero(self, catalog):
        quote = quote_project(
            LineItemInput(product_type="other", description="Anything"),
            [_door()],
            catalog,
        )
        assert quote.main_item.total == 0
        assert quote.baseline_total == 1000

    def test_all_freeform_project_totals_zero(self, catalog):
        quote = quote_project(LineItemInput(product_type="other"), [], catalog)
        assert quote.baseline_total == 0

    def test_no_items(self, catalog):
        quote = quote_project(None, [], catalog)
        assert quote.main_item is None
        assert quote.baseline_total == 0


class TestValidateLineItem:
    def test_valid_item_passes(self, catalog):
        validate_line_item(_door(selected_accessories=["handle"]), catalog)

    def test_missing_required_dimension(self, catalog):
        with pytest.raises(ValidationException) as exc_info:
            validate_line_item(_door(height=0), catalog)
        assert exc_info.value.details == [
            {"field": "height", "reason": "required", "value": 0}
        ]

    def test_unknown_references_reported_together(self, catalog):
        with pytest.raises(ValidationException) as exc_info:
            validate_line_item(
                _door(material="steel", color="teal", selected_accessories=["ghost"]),
                catalog,
            )
        fields = {d["field"] for d in exc_info.value.details}
        assert fields == {"material", "color", "selected_accessories"}

    def test_unknown_subtype(self, catalog):
        with pytest.raises(ValidationException):
            validate_line_item(_door(subtype="triple"), catalog)

    def test_length_required_for_curtain(self, catalog):
        with pytest.raises(ValidationException):
            validate_line_item(
                LineItemInput(product_type="curtain", subtype="normal", material="fabric"),
                catalog,
            )

    def test_freeform_skips_checks(self, catalog):
        validate_line_item(LineItemInput(product_type="other"), catalog)

    def test_unknown_product(self, catalog):
        with pytest.raises(NotFoundException):
            validate_line_item(LineItemInput(product_type="window"), catalog)


def test_round_currency_half_up():
    assert round_currency(0.5) == 1
    assert round_currency(2.5) == 3
    assert round_currency(2.4999) == 2
    assert round_currency(1049.5) == 1050


def test_round_currency_non_finite_is_zero():
    assert round_currency(math.inf) == 0
    assert round_currency(math.nan) == 0


class TestNumericLimits:
    def test_oversized_dimension_rejected_by_schema(self):
        with pytest.raises(PydanticValidationError):
            _door(width=1e200, height=1e200)

    def test_overflowing_total_does_not_raise(self):
        pricing = StructuredPricing(
            mode=MeasurementMode.AREA_WIDTH_HEIGHT,
            width=MAX_DIMENSION,
            height=MAX_DIMENSION,
            length=0,
            price_per_unit=1e308,
        )
        assert pricing.total() == 0

    def test_largest_dimensions_price_finitely(self, catalog):
        priced = price_line_item(_door(width=MAX_DIMENSION, height=MAX_DIMENSION), catalog)
        assert priced.total == int(MAX_DIMENSION * MAX_DIMENSION * 500)
