"""Tests for commission rate lookup."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.exceptions import DependencyUnavailableException
from src.modules.commission.service import CommissionRateService


def _service(value=None, side_effect=None) -> tuple[CommissionRateService, MagicMock]:
    client = MagicMock()
    client.get_option = AsyncMock(return_value=value, side_effect=side_effect)
    return CommissionRateService(client=client), client


class TestCommissionRateService:
    @pytest.mark.asyncio
    async def test_reads_project_category_by_default(self):
        service, client = _service(7)
        assert await service.get_rate() == 7.0
        client.get_option.assert_awaited_once_with("commission_projects_merchants")

    @pytest.mark.asyncio
    async def test_string_value_parsed(self):
        service, _ = _service("12.5")
        assert await service.get_rate("products") == 12.5

    @pytest.mark.asyncio
    async def test_missing_value_is_zero(self):
        service, _ = _service(None)
        assert await service.get_rate() == 0.0

    @pytest.mark.asyncio
    async def test_out_of_range_is_zero(self):
        service, _ = _service(250)
        assert await service.get_rate() == 0.0

    @pytest.mark.asyncio
    async def test_outage_is_zero(self):
        service, _ = _service(side_effect=DependencyUnavailableException("down"))
        assert await service.get_rate() == 0.0

    @pytest.mark.asyncio
    async def test_unknown_category_is_zero_without_lookup(self):
        service, client = _service(9)
        assert await service.get_rate("boats") == 0.0
        client.get_option.assert_not_awaited()
