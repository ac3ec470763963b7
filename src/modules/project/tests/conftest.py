"""Shared fixtures for project and bid tests."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.bid import Bid
from src.models.enums import BidStatus, ProjectStatus
from src.models.project import Project
from src.modules.catalog.schemas import Catalog


@pytest.fixture
def mock_db():
    """Create a mock AsyncSession."""
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    # Supports ``async with session.begin_nested():``
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.model_validate(
        {
            "products": [
                {
                    "id": "door",
                    "basePricePerM2": 400,
                    "subtypes": [
                        {"id": "normal", "materials": [{"id": "aluminum", "pricePerM2": 500}]}
                    ],
                    "colors": ["white"],
                    "accessories": [{"id": "handle", "price": 50}],
                },
                {"id": "other", "measurementMode": "other_freeform"},
            ]
        }
    )


@pytest.fixture
def catalog_service(catalog):
    service = MagicMock()
    service.get_catalog = AsyncMock(return_value=catalog)
    return service


@pytest.fixture
def make_project():
    def _make(
        status=ProjectStatus.IN_BIDDING,
        customer_id=None,
        baseline=Decimal("1000"),
        requested_days=10,
        **fields,
    ) -> Project:
        now = datetime.now(UTC)
        return Project(
            id=fields.pop("id", uuid.uuid4()),
            customer_id=customer_id or uuid.uuid4(),
            status=status,
            baseline_total=baseline,
            requested_days=requested_days,
            currency="SAR",
            delivery_files=[],
            version=1,
            created_at=now,
            updated_at=now,
            **fields,
        )

    return _make


@pytest.fixture
def make_bid():
    def _make(
        project: Project,
        vendor_id=None,
        price=Decimal("1500"),
        days=5,
        status=BidStatus.PENDING,
        **fields,
    ) -> Bid:
        now = datetime.now(UTC)
        return Bid(
            id=fields.pop("id", uuid.uuid4()),
            project_id=project.id,
            vendor_id=vendor_id or uuid.uuid4(),
            price=price,
            days=days,
            status=status,
            revision=fields.pop("revision", 1),
            created_at=now,
            updated_at=now,
            **fields,
        )

    return _make


def scalar_result(value):
    """Mock result for ``scalar_one_or_none`` / ``scalar`` lookups."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value
    scalars = MagicMock()
    scalars.all.return_value = [value] if value is not None else []
    result.scalars.return_value = scalars
    return result


def list_result(values):
    result = MagicMock()
    scalars = MagicMock()
    scalars.all.return_value = list(values)
    result.scalars.return_value = scalars
    result.all.return_value = list(values)
    return result


def rows_result(rows):
    """Mock result for ``.all()`` over tuples, e.g. grouped counts or RETURNING."""
    result = MagicMock()
    result.all.return_value = list(rows)
    scalars = MagicMock()
    scalars.all.return_value = [row[0] for row in rows]
    result.scalars.return_value = scalars
    return result


@pytest.fixture
def results():
    """Builders for mocked ``db.execute`` results."""
    return MagicMock(scalar=scalar_result, list=list_result, rows=rows_result)
