"""Pydantic v2 models for the product catalog consumed by the pricing engine.

The catalog document is owned by an external store and arrives as JSON with
camelCase keys. Entries may be bare id strings in older documents; both forms
are accepted.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.enums import MeasurementMode
from src.modules.pricing.measurement import parse_measurement_mode


def _coerce_entry(value: Any) -> Any:
    if isinstance(value, str):
        return {"id": value}
    if isinstance(value, dict) and "id" not in value and "value" in value:
        return {**value, "id": value["value"]}
    return value


def _optional_price(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class CatalogEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    ar: str | None = None
    en: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, value: Any) -> Any:
        return _coerce_entry(value)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value


class CatalogMaterial(CatalogEntry):
    price_per_m2: float | None = Field(None, alias="pricePerM2")

    @field_validator("price_per_m2", mode="before")
    @classmethod
    def _finite_price(cls, value: Any) -> float | None:
        return _optional_price(value)


class CatalogColor(CatalogEntry):
    pass


class CatalogAccessory(CatalogEntry):
    price: float = 0.0

    @field_validator("price", mode="before")
    @classmethod
    def _price_or_zero(cls, value: Any) -> float:
        return _optional_price(value) or 0.0


class CatalogSubtype(CatalogEntry):
    materials: list[CatalogMaterial] = Field(default_factory=list)

    def find_material(self, material_id: str | None) -> CatalogMaterial | None:
        return next((m for m in self.materials if m.id == material_id), None)


class DimensionFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: bool = True
    height: bool = True
    length: bool = False

    def required(self) -> list[str]:
        return [name for name in ("width", "height", "length") if getattr(self, name)]


class CatalogProduct(CatalogEntry):
    measurement_mode: MeasurementMode = Field(
        MeasurementMode.AREA_WIDTH_HEIGHT, alias="measurementMode"
    )
    base_price_per_m2: float | None = Field(None, alias="basePricePerM2")
    dimensions: DimensionFlags = Field(default_factory=DimensionFlags)
    subtypes: list[CatalogSubtype] = Field(default_factory=list)
    # Product-level materials from documents that predate per-subtype materials
    materials: list[CatalogMaterial] = Field(default_factory=list)
    colors: list[CatalogColor] = Field(default_factory=list)
    accessories: list[CatalogAccessory] = Field(default_factory=list)

    @field_validator("measurement_mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> MeasurementMode:
        return parse_measurement_mode(value)

    @field_validator("base_price_per_m2", mode="before")
    @classmethod
    def _finite_base(cls, value: Any) -> float | None:
        return _optional_price(value)

    @field_validator("dimensions", mode="before")
    @classmethod
    def _default_dimensions(cls, value: Any) -> Any:
        return DimensionFlags() if value is None else value

    @property
    def is_freeform(self) -> bool:
        return self.measurement_mode == MeasurementMode.OTHER_FREEFORM

    def find_subtype(self, subtype_id: str | None) -> CatalogSubtype | None:
        return next((s for s in self.subtypes if s.id == subtype_id), None)

    def materials_for(self, subtype_id: str | None) -> list[CatalogMaterial]:
        """Materials offered for *subtype_id*, else the product-level list."""
        subtype = self.find_subtype(subtype_id)
        if subtype is not None and subtype.materials:
            return subtype.materials
        return self.materials

    def find_material(
        self, subtype_id: str | None, material_id: str | None
    ) -> CatalogMaterial | None:
        return next(
            (m for m in self.materials_for(subtype_id) if m.id == material_id), None
        )

    def find_accessory(self, accessory_id: str) -> CatalogAccessory | None:
        return next((a for a in self.accessories if a.id == accessory_id), None)

    def find_color(self, color_id: str | None) -> CatalogColor | None:
        return next((c for c in self.colors if c.id == color_id), None)


class Catalog(BaseModel):
    """A resolved catalog snapshot. Immutable within a pricing computation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    products: list[CatalogProduct] = Field(default_factory=list)
    # Legacy per-product base prices (product id -> price per unit area)
    price_rules: dict[str, float] = Field(default_factory=dict, alias="priceRules")

    @field_validator("price_rules", mode="before")
    @classmethod
    def _numeric_rules(cls, value: Any) -> dict[str, float]:
        if not isinstance(value, dict):
            return {}
        rules: dict[str, float] = {}
        for key, raw in value.items():
            price = _optional_price(raw)
            if price is not None:
                rules[str(key)] = price
        return rules

    def get_product(self, product_id: str | None) -> CatalogProduct | None:
        return next((p for p in self.products if p.id == product_id), None)

    def base_price_for(self, product: CatalogProduct) -> float:
        """Product base price, falling back to the legacy price rules, then 0."""
        if product.base_price_per_m2 is not None:
            return product.base_price_per_m2
        return self.price_rules.get(product.id, 0.0)


class CatalogResponse(BaseModel):
    products: list[CatalogProduct]
    price_rules: dict[str, float]
    stale: bool = False
