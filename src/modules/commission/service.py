"""Commission rate lookup against the admin options store."""

from __future__ import annotations

import logging

from src.config import settings
from src.exceptions import DependencyUnavailableException
from src.modules.commission.constants import COMMISSION_OPTION_KEYS, FALLBACK_PERCENT
from src.modules.commission.calculator import normalize_percent
from src.modules.options.client import OptionsClient

logger = logging.getLogger(__name__)


class CommissionRateService:
    """Fetch the commission percentage for a category.

    Never raises: outages and bad values resolve to 0% so that completing a
    project cannot fail on configuration.
    """

    def __init__(self, client: OptionsClient | None = None) -> None:
        self.client = client or OptionsClient(
            base_url=settings.commission_base_url,
            timeout=settings.commission_timeout_seconds,
            max_retries=settings.commission_max_retries,
        )

    async def get_rate(self, category: str | None = None) -> float:
        category = category or settings.commission_project_category
        option_key = COMMISSION_OPTION_KEYS.get(category)
        if option_key is None:
            logger.warning("Unknown commission category %s, using %s%%", category, FALLBACK_PERCENT)
            return FALLBACK_PERCENT

        try:
            raw = await self.client.get_option(option_key)
        except DependencyUnavailableException as exc:
            logger.warning(
                "Commission rate for %s unavailable (%s), using %s%%",
                category, exc.message, FALLBACK_PERCENT,
            )
            return FALLBACK_PERCENT

        percent = normalize_percent(raw)
        logger.debug("Commission rate for %s: raw=%r resolved=%s%%", category, raw, percent)
        return percent
