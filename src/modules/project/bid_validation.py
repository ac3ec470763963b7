"""Pure bid admission rules: open project, price window, duration window."""

from __future__ import annotations

from decimal import Decimal

from src.exceptions import (
    DurationOutOfBoundsException,
    PriceOutOfBoundsException,
    ProjectNotOpenException,
)
from src.models.enums import ProjectStatus
from src.modules.project.constants import BIDDABLE_STATUSES, MAX_EXECUTION_DAYS

MIN_DAYS = 1


def price_bounds(baseline: Decimal | int | float) -> tuple[Decimal, Decimal]:
    """Inclusive ``(minimum, maximum)`` price for a baseline: ``[b, 2b]``."""
    minimum = Decimal(str(baseline))
    return minimum, max(minimum, minimum * 2)


def validate_bid_price(price: Decimal | int | float, baseline: Decimal | int | float) -> None:
    minimum, maximum = price_bounds(baseline)
    value = Decimal(str(price))
    if value < minimum or value > maximum:
        raise PriceOutOfBoundsException(value, minimum, maximum)


def validate_bid_duration(days: int, requested_days: int | None) -> None:
    """``1 <= days <= requested_days``, or ``MAX_EXECUTION_DAYS`` when the project sets none."""
    maximum = min(requested_days, MAX_EXECUTION_DAYS) if requested_days else MAX_EXECUTION_DAYS
    if days < MIN_DAYS or days > maximum:
        raise DurationOutOfBoundsException(days, MIN_DAYS, maximum)


def ensure_project_open(status: ProjectStatus, baseline: Decimal | int | float) -> None:
    """Raise ProjectNotOpenException unless bids may be placed.

    A zero baseline (all items freeform) collapses the price window, so such
    projects do not take bids at all.
    """
    if status not in BIDDABLE_STATUSES:
        raise ProjectNotOpenException(
            f"Project is not accepting bids in status '{status.value}'",
            details=[{"reason": "status", "status": status.value}],
        )
    if Decimal(str(baseline)) <= 0:
        raise ProjectNotOpenException(
            "Project has no priced items and cannot take bids",
            details=[{"reason": "zero_baseline", "status": status.value}],
        )


def validate_bid(
    status: ProjectStatus,
    baseline: Decimal | int | float,
    requested_days: int | None,
    price: Decimal | int | float,
    days: int,
) -> None:
    """Run every admission rule; the first failure is raised."""
    ensure_project_open(status, baseline)
    validate_bid_price(price, baseline)
    validate_bid_duration(days, requested_days)
