"""Pydantic v2 schemas for line items and quote previews."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.modules.pricing.constants import MAX_DIMENSION

# ---------------------------------------------------------------------------
# Line item input
# ---------------------------------------------------------------------------


class FreeformDetails(BaseModel):
    """Free-text specification collected for the freeform ("other") product."""

    name: str | None = Field(None, max_length=255)
    subtype: str | None = Field(None, max_length=255)
    material: str | None = Field(None, max_length=255)
    color: str | None = Field(None, max_length=255)
    notes: str | None = Field(None, max_length=2000)
    accessories: list[str] = Field(default_factory=list, max_length=50)


class LineItemInput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_type: str = Field(..., min_length=1, max_length=100)
    subtype: str | None = Field(None, max_length=100)
    material: str | None = Field(None, max_length=100)
    color: str | None = Field(None, max_length=100)
    # Negative values are clamped to 0 by the calculator
    width: float = Field(0, le=MAX_DIMENSION)
    height: float = Field(0, le=MAX_DIMENSION)
    length: float = Field(0, le=MAX_DIMENSION)
    quantity: int = Field(1, ge=1, le=100_000)
    selected_accessories: list[str] = Field(default_factory=list, max_length=50)
    description: str | None = Field(None, max_length=2000)
    custom_details: FreeformDetails | None = None

    @field_validator("selected_accessories")
    @classmethod
    def _unique_accessories(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


# ---------------------------------------------------------------------------
# Priced output
# ---------------------------------------------------------------------------


class AccessoryCharge(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    price: float


class PricedLineItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_type: str
    subtype: str | None = None
    material: str | None = None
    color: str | None = None
    width: float
    height: float
    length: float
    quantity: int
    selected_accessories: list[str]
    description: str | None = None
    is_freeform: bool
    price_per_unit: float
    measure: float
    accessory_cost: float
    accessories: list[AccessoryCharge] = Field(default_factory=list)
    total: int


class QuoteRequest(BaseModel):
    main_item: LineItemInput | None = None
    additional_items: list[LineItemInput] = Field(default_factory=list, max_length=50)


class QuoteResponse(BaseModel):
    main_item: PricedLineItemResponse | None = None
    additional_items: list[PricedLineItemResponse]
    baseline_total: int
