"""Line-item pricing and quote aggregation.

Pricing runs in two steps. ``resolve_pricing_inputs`` looks a line item up in
the catalog once and produces a flat, closed variant: ``StructuredPricing``
for catalog-priced products, ``FreeformPricing`` for the "other" product that
is specified in free text and never priced. ``price_line_item`` then applies
the pure rule of that variant. Nothing here performs I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from src.config import settings
from src.exceptions import NotFoundException, ValidationException
from src.models.enums import MeasurementMode
from src.modules.catalog.schemas import Catalog, CatalogProduct
from src.modules.pricing.constants import COLOR_FACTORS, DEFAULT_FACTOR, SUBTYPE_FACTORS
from src.modules.pricing.measurement import clamp_dimension, compute_measure
from src.modules.pricing.schemas import LineItemInput

logger = logging.getLogger(__name__)


def round_currency(value: float | int | Decimal) -> int:
    """Round to the nearest whole currency unit, halves away from zero.

    Non-finite values (an overflowed product) round to 0.
    """
    number = Decimal(str(value))
    if not number.is_finite():
        return 0
    return int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Resolved inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccessoryLine:
    id: str
    price: float


@dataclass(frozen=True)
class StructuredPricing:
    mode: MeasurementMode
    width: float
    height: float
    length: float
    price_per_unit: float
    accessories: tuple[AccessoryLine, ...] = ()
    quantity: int = 1

    @property
    def is_freeform(self) -> bool:
        return False

    @property
    def accessory_cost(self) -> float:
        return sum(a.price for a in self.accessories)

    def measure(self) -> float:
        return compute_measure(self.mode, self.width, self.height, self.length)

    def total(self) -> int:
        unit_total = max(0.0, self.measure() * self.price_per_unit + self.accessory_cost)
        return round_currency(unit_total * max(1, self.quantity))


@dataclass(frozen=True)
class FreeformPricing:
    width: float
    height: float
    length: float
    quantity: int = 1
    mode: MeasurementMode = MeasurementMode.OTHER_FREEFORM
    price_per_unit: float = 0.0
    accessories: tuple[AccessoryLine, ...] = ()

    @property
    def is_freeform(self) -> bool:
        return True

    @property
    def accessory_cost(self) -> float:
        return 0.0

    def measure(self) -> float:
        return compute_measure(self.mode, self.width, self.height, self.length)

    def total(self) -> int:
        return 0


ResolvedPricingInputs = StructuredPricing | FreeformPricing


@dataclass(frozen=True)
class PricedLineItem:
    """A line item with its price snapshot. Recomputing from the same inputs
    and catalog yields the same values."""

    product_type: str
    subtype: str | None
    material: str | None
    color: str | None
    width: float
    height: float
    length: float
    quantity: int
    selected_accessories: list[str]
    description: str | None
    is_freeform: bool
    price_per_unit: float
    measure: float
    accessory_cost: float
    total: int
    accessories: tuple[AccessoryLine, ...] = ()
    custom_details: dict | None = None


@dataclass(frozen=True)
class ProjectQuote:
    main_item: PricedLineItem | None
    additional_items: list[PricedLineItem] = field(default_factory=list)
    baseline_total: int = 0


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _fallback_price_per_unit(catalog: Catalog, product: CatalogProduct, item: LineItemInput) -> int:
    base = catalog.base_price_for(product)
    subtype_factor = SUBTYPE_FACTORS.get(item.subtype or "", DEFAULT_FACTOR)
    color_factor = COLOR_FACTORS.get(item.color or "", DEFAULT_FACTOR)
    return round_currency(base * subtype_factor * color_factor)


def _is_freeform_item(item: LineItemInput, freeform_product_id: str) -> bool:
    return item.product_type == freeform_product_id


def resolve_pricing_inputs(
    item: LineItemInput,
    catalog: Catalog,
    freeform_product_id: str | None = None,
) -> ResolvedPricingInputs:
    """Resolve *item* against *catalog* into a flat pricing variant.

    Price per unit is the material's own price when it has one, otherwise the
    product base price scaled by the subtype and color factors. Accessories
    the product does not offer contribute nothing here; strict reference
    checks live in ``validate_line_item``.

    Raises:
        NotFoundException: the product type is not in the catalog.
    """
    freeform_id = freeform_product_id or settings.freeform_product_id
    if _is_freeform_item(item, freeform_id):
        return FreeformPricing(
            width=clamp_dimension(item.width),
            height=clamp_dimension(item.height),
            length=clamp_dimension(item.length),
            quantity=max(1, item.quantity),
        )

    product = catalog.get_product(item.product_type)
    if product is None:
        raise NotFoundException(
            f"Product type '{item.product_type}' not found in catalog",
            details=[{"field": "product_type", "value": item.product_type}],
        )

    if product.is_freeform:
        return FreeformPricing(
            width=clamp_dimension(item.width),
            height=clamp_dimension(item.height),
            length=clamp_dimension(item.length),
            quantity=max(1, item.quantity),
        )

    material = product.find_material(item.subtype, item.material)
    if material is not None and material.price_per_m2 is not None:
        price_per_unit: float = material.price_per_m2
    else:
        price_per_unit = _fallback_price_per_unit(catalog, product, item)

    accessories = []
    for accessory_id in item.selected_accessories:
        accessory = product.find_accessory(accessory_id)
        if accessory is None:
            logger.debug(
                "Ignoring unknown accessory %s on product %s", accessory_id, product.id
            )
            continue
        accessories.append(AccessoryLine(id=accessory.id, price=accessory.price))

    return StructuredPricing(
        mode=product.measurement_mode,
        width=clamp_dimension(item.width),
        height=clamp_dimension(item.height),
        length=clamp_dimension(item.length),
        price_per_unit=price_per_unit,
        accessories=tuple(accessories),
        quantity=max(1, item.quantity),
    )


def validate_line_item(
    item: LineItemInput,
    catalog: Catalog,
    freeform_product_id: str | None = None,
) -> None:
    """Strict reference and dimension checks applied when a project is saved.

    Collects every problem and raises one ``ValidationException`` carrying a
    detail per offending field.
    """
    freeform_id = freeform_product_id or settings.freeform_product_id
    if _is_freeform_item(item, freeform_id):
        return

    product = catalog.get_product(item.product_type)
    if product is None:
        raise NotFoundException(
            f"Product type '{item.product_type}' not found in catalog",
            details=[{"field": "product_type", "value": item.product_type}],
        )
    if product.is_freeform:
        return

    errors: list[dict] = []

    subtype = product.find_subtype(item.subtype)
    if product.subtypes and subtype is None:
        errors.append({"field": "subtype", "reason": "unknown", "value": item.subtype})
    if product.materials_for(item.subtype) and product.find_material(item.subtype, item.material) is None:
        errors.append({"field": "material", "reason": "unknown", "value": item.material})
    if item.color and product.colors and product.find_color(item.color) is None:
        errors.append({"field": "color", "reason": "unknown", "value": item.color})

    for accessory_id in item.selected_accessories:
        if product.find_accessory(accessory_id) is None:
            errors.append({"field": "selected_accessories", "reason": "unknown", "value": accessory_id})

    for dimension in product.dimensions.required():
        if clamp_dimension(getattr(item, dimension)) <= 0:
            errors.append({"field": dimension, "reason": "required", "value": getattr(item, dimension)})

    if errors:
        raise ValidationException(
            f"Line item for product '{product.id}' is invalid", details=errors
        )


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------


def price_line_item(
    item: LineItemInput,
    catalog: Catalog,
    freeform_product_id: str | None = None,
) -> PricedLineItem:
    """Price a single line item against *catalog*."""
    resolved = resolve_pricing_inputs(item, catalog, freeform_product_id)
    return PricedLineItem(
        product_type=item.product_type,
        subtype=item.subtype,
        material=item.material,
        color=item.color,
        width=resolved.width,
        height=resolved.height,
        length=resolved.length,
        quantity=resolved.quantity,
        selected_accessories=list(item.selected_accessories),
        description=item.description,
        is_freeform=resolved.is_freeform,
        price_per_unit=resolved.price_per_unit,
        measure=resolved.measure(),
        accessory_cost=resolved.accessory_cost,
        total=resolved.total(),
        accessories=resolved.accessories,
        custom_details=item.custom_details.model_dump() if item.custom_details else None,
    )


def aggregate_totals(items: Iterable[PricedLineItem]) -> int:
    """Sum of item totals; an empty iterable totals 0."""
    return sum((item.total for item in items), 0)


def quote_project(
    main_item: LineItemInput | None,
    additional_items: Iterable[LineItemInput],
    catalog: Catalog,
    freeform_product_id: str | None = None,
) -> ProjectQuote:
    """Price a main item plus additional items and compute the baseline total.

    A freeform main item contributes zero, so an all-freeform project has a
    baseline of 0.
    """
    priced_main = (
        price_line_item(main_item, catalog, freeform_product_id)
        if main_item is not None
        else None
    )
    priced_additional = [
        price_line_item(item, catalog, freeform_product_id) for item in additional_items
    ]
    all_items = [priced_main, *priced_additional] if priced_main is not None else priced_additional
    return ProjectQuote(
        main_item=priced_main,
        additional_items=priced_additional,
        baseline_total=aggregate_totals(all_items),
    )
