"""Split an agreed price into platform commission and vendor earnings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal

from src.modules.commission.constants import FALLBACK_PERCENT, MAX_PERCENT
from src.modules.pricing.calculator import round_currency


@dataclass(frozen=True)
class CommissionSplit:
    agreed_price: Decimal
    percent: float
    platform_commission: Decimal
    counterparty_earnings: Decimal


def normalize_percent(raw: object) -> float:
    """Parse a commission percentage; anything unusable becomes 0."""
    if raw is None or isinstance(raw, bool):
        return FALLBACK_PERCENT
    try:
        percent = float(raw)
    except (TypeError, ValueError):
        return FALLBACK_PERCENT
    if not math.isfinite(percent) or percent < 0 or percent > MAX_PERCENT:
        return FALLBACK_PERCENT
    return percent


def split_commission(agreed_price: Decimal | int | float, percent: object) -> CommissionSplit:
    """Commission is ``round(price * percent / 100)``; earnings take the rest.

    The two parts always add up to the agreed price exactly.
    """
    price = Decimal(str(agreed_price))
    rate = normalize_percent(percent)
    commission = Decimal(round_currency(price * Decimal(str(rate)) / Decimal(100)))
    return CommissionSplit(
        agreed_price=price,
        percent=rate,
        platform_commission=commission,
        counterparty_earnings=price - commission,
    )
